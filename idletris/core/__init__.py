"""
Core module for Idletris.
Contains the piece catalog, board state, movement rules and the per-board engine.
"""

from .pieces import Piece, PieceType, Placement, rotate_clockwise, shape_for
from .board import Board, BoardSnapshot, ControlMode, clear_lines
from .movement import would_collide, translate, rotate
from .engine import BoardEngine, Command
from .events import SessionListener

__all__ = [
    'Piece', 'PieceType', 'Placement', 'rotate_clockwise', 'shape_for',
    'Board', 'BoardSnapshot', 'ControlMode', 'clear_lines',
    'would_collide', 'translate', 'rotate',
    'BoardEngine', 'Command', 'SessionListener',
]
