"""
Exhaustive placement search for Idletris.

Every rotation of the current piece is dropped straight down from the top row in
every column where it fits, and the landed grid is scored by a BoardEvaluator.
The search works on cloned grids and never touches the real board. Pieces are
re-placed from y = 0 without wall kicks; live rotation on the board uses kicks.
"""

import logging
from typing import Iterator, Optional, Tuple
import numpy as np

from ..core.board import stamp_piece
from ..core.movement import would_collide
from ..core.pieces import Piece, PieceType, Placement, column_bounds, rotate_clockwise
from .evaluation import BoardEvaluator

logger = logging.getLogger(__name__)


def rotation_count(piece: Piece) -> int:
    """Number of distinct orientations searched for a piece."""
    return 1 if piece.piece_type == PieceType.O else 4


class HeuristicPlanner:
    """Finds the best (x, rotation) for a piece by scoring every straight drop."""

    def __init__(self, evaluator: Optional[BoardEvaluator] = None):
        self.evaluator = evaluator or BoardEvaluator()

    def simulate_placement(self, piece: Piece, grid: np.ndarray,
                           x: int, rotation: int) -> Optional[np.ndarray]:
        """Drop the rotated piece from (x, 0) onto a copy of the grid.

        Returns the landed copy, or None if the piece does not fit at (x, 0).
        """
        test_piece = piece.rotated(rotation)
        test_piece.x = x
        test_piece.y = 0

        if would_collide(test_piece, grid):
            return None

        while not would_collide(test_piece, grid):
            test_piece.y += 1
        test_piece.y -= 1

        landed = grid.copy()
        stamp_piece(landed, test_piece)
        return landed

    def iter_placements(self, piece: Piece, grid: np.ndarray) -> Iterator[Tuple[Placement, float]]:
        """Yield every legal placement with its score, rotation ascending then x ascending."""
        width = grid.shape[1]
        shape = piece.shape
        for rotation in range(rotation_count(piece)):
            if rotation > 0:
                shape = rotate_clockwise(shape)
            min_col, max_col = column_bounds(shape)
            actual_width = max_col - min_col + 1

            for x in range(-min_col, width - actual_width - min_col + 1):
                landed = self.simulate_placement(piece, grid, x, rotation)
                if landed is None:
                    continue
                yield Placement(x, rotation), self.evaluator.evaluate_grid(landed)

    def plan_best_placement(self, piece: Piece, grid: np.ndarray) -> Optional[Placement]:
        """Get the highest scoring placement; ties keep the first one found."""
        best_score = float('-inf')
        best_placement = None

        for placement, score in self.iter_placements(piece, grid):
            if score > best_score:
                best_score = score
                best_placement = placement

        if best_placement is None:
            logger.debug("No legal placement for %r", piece)
        return best_placement
