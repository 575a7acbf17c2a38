"""
Tetromino piece definitions and operations for Idletris.
Includes the 7 canonical shapes, their colours, and a generic clockwise rotation.
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple
import random
import numpy as np
from dataclasses import dataclass


class PieceType(Enum):
    """The 7 standard pieces. The value doubles as the grid colour token."""
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


@dataclass(frozen=True)
class Placement:
    """Target column offset and number of clockwise turns for a piece."""
    x: int
    rotation: int  # 0, 1, 2, 3 clockwise turns from the shape at planning time


# Canonical spawn orientations: [y][x] where 1 = filled, 0 = empty
PIECE_SHAPES: Dict[PieceType, List[List[int]]] = {
    PieceType.I: [[0, 0, 0, 0],
                  [1, 1, 1, 1],
                  [0, 0, 0, 0],
                  [0, 0, 0, 0]],
    PieceType.O: [[1, 1],
                  [1, 1]],
    PieceType.T: [[0, 1, 0],
                  [1, 1, 1],
                  [0, 0, 0]],
    PieceType.S: [[0, 1, 1],
                  [1, 1, 0],
                  [0, 0, 0]],
    PieceType.Z: [[1, 1, 0],
                  [0, 1, 1],
                  [0, 0, 0]],
    PieceType.J: [[1, 0, 0],
                  [1, 1, 1],
                  [0, 0, 0]],
    PieceType.L: [[0, 0, 1],
                  [1, 1, 1],
                  [0, 0, 0]],
}

PIECE_COLORS: Dict[PieceType, str] = {
    PieceType.I: '#00F0F0',
    PieceType.O: '#F0F000',
    PieceType.T: '#A000F0',
    PieceType.S: '#00F000',
    PieceType.Z: '#F00000',
    PieceType.J: '#0000F0',
    PieceType.L: '#F0A000',
}


def shape_for(piece_type: PieceType) -> np.ndarray:
    """Return a fresh copy of the canonical shape for a piece type."""
    return np.array(PIECE_SHAPES[piece_type], dtype=np.int8)


def rotate_clockwise(shape: np.ndarray) -> np.ndarray:
    """Rotate any rectangular shape matrix a quarter turn clockwise."""
    return np.rot90(np.asarray(shape), k=-1).copy()


def column_bounds(shape: np.ndarray) -> Tuple[int, int]:
    """Get the (min, max) occupied column of a shape."""
    cols = np.nonzero(np.any(shape, axis=0))[0]
    return int(cols[0]), int(cols[-1])


def color_token(piece_type: PieceType) -> int:
    """Grid token written for locked cells of this piece type."""
    return piece_type.value


def color_for(token: int) -> Optional[str]:
    """Map a grid token back to its display colour (None for empty cells)."""
    if token == 0:
        return None
    return PIECE_COLORS[PieceType(int(token))]


class Piece:
    """The active piece on a board: type, shape matrix, top-left offset and colour."""

    def __init__(self, piece_type: PieceType, shape: Optional[np.ndarray] = None,
                 x: int = 0, y: int = 0):
        self.piece_type = piece_type
        if shape is None:
            self.shape = shape_for(piece_type)
        else:
            self.shape = np.array(shape, dtype=np.int8)
        self.x = x
        self.y = y
        self.color = color_token(piece_type)

    @property
    def width(self) -> int:
        return self.shape.shape[1]

    @property
    def height(self) -> int:
        return self.shape.shape[0]

    def get_occupied_cells(self) -> List[Tuple[int, int]]:
        """Get the board coordinates (x, y) occupied by this piece."""
        rows, cols = np.nonzero(self.shape)
        return [(self.x + int(c), self.y + int(r)) for r, c in zip(rows, cols)]

    def rotated(self, turns: int = 1) -> 'Piece':
        """Return a copy turned clockwise ``turns`` times, at the same offset."""
        shape = self.shape
        for _ in range(turns):
            shape = rotate_clockwise(shape)
        return Piece(self.piece_type, shape, self.x, self.y)

    def copy(self) -> 'Piece':
        return Piece(self.piece_type, self.shape, self.x, self.y)

    def __eq__(self, other):
        if not isinstance(other, Piece):
            return False
        return (self.piece_type == other.piece_type and
                self.x == other.x and
                self.y == other.y and
                np.array_equal(self.shape, other.shape))

    __hash__ = None

    def __repr__(self):
        return f"Piece({self.piece_type.name}, x={self.x}, y={self.y})"


def create_piece(piece_type: PieceType, grid_width: int) -> Piece:
    """Create a piece at its spawn position, centred horizontally on the top row."""
    piece = Piece(piece_type)
    piece.x = grid_width // 2 - piece.width // 2
    piece.y = 0
    return piece


def get_all_piece_types() -> List[PieceType]:
    """Get all piece types."""
    return list(PieceType)


def get_random_piece_type(rng: Optional[random.Random] = None) -> PieceType:
    """Get a uniformly random piece type."""
    return (rng or random).choice(get_all_piece_types())
