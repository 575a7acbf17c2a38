"""
Board state management for Idletris.
Handles the grid representation, piece locking, line clearing, and board features.
"""

from typing import List, Optional, Tuple
from enum import Enum
import numpy as np
from dataclasses import dataclass

from .pieces import Piece, PieceType, Placement

EMPTY = 0
DEFAULT_WIDTH = 10
DEFAULT_HEIGHT = 20
DEFAULT_AI_CADENCE_MS = 300.0
MAX_AI_SPEED_LEVEL = 5


class ControlMode(Enum):
    """Who drives a board's active piece."""
    HUMAN = 'human'
    AUTONOMOUS = 'autonomous'


def create_grid(width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> np.ndarray:
    """Create an empty height x width grid (0 = empty, otherwise a colour token)."""
    return np.zeros((height, width), dtype=np.int8)


def stamp_piece(grid: np.ndarray, piece: Piece):
    """Write the piece's colour into every in-bounds cell it occupies at y >= 0."""
    height, width = grid.shape
    for x, y in piece.get_occupied_cells():
        if 0 <= y < height and 0 <= x < width:
            grid[y, x] = piece.color


def clear_lines(grid: np.ndarray) -> int:
    """
    Clear full rows in place and return how many were cleared.

    Rows are scanned bottom to top. A full row is removed, an empty row is
    inserted at the top, and the same index is examined again since the row
    above has shifted into it.
    """
    lines_cleared = 0
    row = grid.shape[0] - 1
    while row >= 0:
        if np.all(grid[row] != EMPTY):
            grid[1:row + 1] = grid[:row].copy()
            grid[0] = EMPTY
            lines_cleared += 1
        else:
            row -= 1
    return lines_cleared


def count_complete_rows(grid: np.ndarray) -> int:
    return int(np.sum(np.all(grid != EMPTY, axis=1)))


def get_height_map(grid: np.ndarray) -> List[int]:
    """Get the height of each column (0 for an empty column)."""
    occupied = grid != EMPTY
    first_block = np.argmax(occupied, axis=0)
    heights = np.where(occupied.any(axis=0), grid.shape[0] - first_block, 0)
    return [int(h) for h in heights]


def get_max_height(grid: np.ndarray) -> int:
    return max(get_height_map(grid), default=0)


def count_holes(grid: np.ndarray) -> int:
    """Count empty cells with an occupied cell somewhere above them in the same column."""
    occupied = grid != EMPTY
    covered = np.logical_or.accumulate(occupied, axis=0)
    return int(np.sum(covered & ~occupied))


def get_bumpiness(grid: np.ndarray) -> int:
    """Calculate board bumpiness (sum of height differences between adjacent columns)."""
    heights = np.array(get_height_map(grid))
    return int(np.sum(np.abs(np.diff(heights))))


@dataclass
class AutonomyState:
    """Progress of the autonomous executor on a board's current piece."""
    target: Optional[Placement] = None
    moving: bool = False
    applied_rotations: int = 0
    piece_spawned_at: Optional[float] = None
    last_step_at: float = 0.0

    def clear_target(self):
        self.target = None
        self.moving = False

    def reset(self):
        """Forget everything about the previous piece."""
        self.clear_target()
        self.applied_rotations = 0
        self.piece_spawned_at = None


@dataclass(frozen=True)
class BoardSnapshot:
    """Read-only view of a board for renderers."""
    index: int
    grid: np.ndarray
    piece_cells: Tuple[Tuple[int, int], ...]
    piece_type: Optional[PieceType]
    piece_color: Optional[int]
    next_piece_type: Optional[PieceType]
    is_game_over: bool
    control_mode: ControlMode


class Board:
    """One playfield: its grid, active piece, queue, control mode and capabilities."""

    def __init__(self, index: int = 0, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 ai_cadence_ms: float = DEFAULT_AI_CADENCE_MS):
        self.index = index
        self.width = width
        self.height = height
        self.grid = create_grid(width, height)
        self.current_piece: Optional[Piece] = None
        self.next_piece_type: Optional[PieceType] = None
        self.is_game_over = False
        self.control_mode = ControlMode.HUMAN
        self.autonomy = AutonomyState()
        self.last_drop_time = 0.0
        self.lines_cleared = 0
        self.pieces_locked = 0

        # Capabilities, kept across reset()
        self.ai_hired = False
        self.ai_hard_drop_unlocked = False
        self.ai_speed_level = 0
        self.ai_cadence_ms = ai_cadence_ms
        self.manual_override_remaining = 0

    @property
    def is_autonomous(self) -> bool:
        return self.control_mode == ControlMode.AUTONOMOUS

    def is_maxed_out(self, max_speed_level: int = MAX_AI_SPEED_LEVEL) -> bool:
        """Agent hired, agent hard drop unlocked and agent speed at the top level."""
        return (self.ai_hired and self.ai_hard_drop_unlocked and
                self.ai_speed_level >= max_speed_level)

    def reset(self, now: float = 0.0):
        """Reset grid, piece, queue and timers. Capabilities and index are kept."""
        self.grid = create_grid(self.width, self.height)
        self.current_piece = None
        self.next_piece_type = None
        self.is_game_over = False
        self.autonomy = AutonomyState()
        self.last_drop_time = now
        self.lines_cleared = 0
        self.pieces_locked = 0
        self.manual_override_remaining = 0

    def get_height_map(self) -> List[int]:
        return get_height_map(self.grid)

    def get_holes(self) -> int:
        return count_holes(self.grid)

    def get_bumpiness(self) -> int:
        return get_bumpiness(self.grid)

    def snapshot(self) -> BoardSnapshot:
        piece = self.current_piece
        return BoardSnapshot(
            index=self.index,
            grid=self.grid.copy(),
            piece_cells=tuple(piece.get_occupied_cells()) if piece else (),
            piece_type=piece.piece_type if piece else None,
            piece_color=piece.color if piece else None,
            next_piece_type=self.next_piece_type,
            is_game_over=self.is_game_over,
            control_mode=self.control_mode,
        )

    def __str__(self):
        """String representation of the board."""
        result = []
        for y in range(self.height):
            row = ""
            for x in range(self.width):
                if self.grid[y][x]:
                    row += "█"
                else:
                    row += "·"
            result.append(row)

        if self.current_piece:
            for x, y in self.current_piece.get_occupied_cells():
                if 0 <= x < self.width and 0 <= y < self.height:
                    result[y] = result[y][:x] + "○" + result[y][x+1:]

        return "\n".join(result)

    def __repr__(self):
        return (f"Board(index={self.index}, mode={self.control_mode.value}, "
                f"lines_cleared={self.lines_cleared}, game_over={self.is_game_over})")
