"""
Collision detection and piece movement for Idletris.
Only the board's active piece and grid are touched; locking lives in the engine.
"""

import numpy as np

from .board import Board, EMPTY
from .pieces import Piece, PieceType, rotate_clockwise

# Horizontal offsets tried, in order, when an in-place rotation collides
WALL_KICKS = (1, -1, 2, -2)
# Vertical offset tried after every wall kick failed
FLOOR_KICK = -1


def would_collide(piece: Piece, grid: np.ndarray) -> bool:
    """
    Check whether a piece overlaps a wall, the floor, or a locked cell.
    Cells above the top row (y < 0) are legal as long as they stay between the walls.
    """
    height, width = grid.shape
    rows, cols = np.nonzero(piece.shape)
    for row, col in zip(rows, cols):
        x = piece.x + int(col)
        y = piece.y + int(row)
        if x < 0 or x >= width or y >= height:
            return True
        if y >= 0 and grid[y, x] != EMPTY:
            return True
    return False


def translate(board: Board, dx: int, dy: int) -> bool:
    """Move the active piece by (dx, dy). Returns False and leaves it in place on collision."""
    piece = board.current_piece
    if piece is None:
        return False

    piece.x += dx
    piece.y += dy
    if would_collide(piece, board.grid):
        piece.x -= dx
        piece.y -= dy
        return False
    return True


def rotate(board: Board) -> bool:
    """Rotate the active piece clockwise, trying wall kicks and then a floor kick."""
    piece = board.current_piece
    if piece is None or piece.piece_type == PieceType.O:
        return False

    original_shape = piece.shape
    original_x, original_y = piece.x, piece.y
    piece.shape = rotate_clockwise(original_shape)

    if not would_collide(piece, board.grid):
        return True

    for kick in WALL_KICKS:
        piece.x = original_x + kick
        if not would_collide(piece, board.grid):
            return True
    piece.x = original_x

    piece.y = original_y + FLOOR_KICK
    if not would_collide(piece, board.grid):
        return True

    piece.shape = original_shape
    piece.x, piece.y = original_x, original_y
    return False


def drop_to_rest(board: Board) -> int:
    """Move the active piece down until it would collide. Returns rows travelled."""
    rows = 0
    while translate(board, 0, 1):
        rows += 1
    return rows
