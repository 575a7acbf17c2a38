"""
Per-board game engine for Idletris.
Spawns pieces, applies commands, locks pieces and reports what happened through callbacks.
"""

from typing import Callable, Optional
from enum import Enum
import random

from .board import Board, stamp_piece, clear_lines
from .pieces import PieceType, create_piece, get_random_piece_type
from .movement import would_collide, translate, rotate, drop_to_rest


class Command(Enum):
    """Discrete player commands."""
    MOVE_LEFT = 'move_left'
    MOVE_RIGHT = 'move_right'
    SOFT_DROP = 'soft_drop'
    ROTATE = 'rotate'
    HARD_DROP = 'hard_drop'


class BoardEngine:
    """Drives one board's piece lifecycle: spawn, move, lock, clear, respawn."""

    def __init__(self, board: Board, rng: Optional[random.Random] = None):
        self.board = board
        self.rng = rng or random.Random()

        # Callbacks
        self.on_piece_locked: Optional[Callable[['BoardEngine', int], None]] = None
        self.on_lines_cleared: Optional[Callable[['BoardEngine', int], None]] = None
        self.on_game_over: Optional[Callable[['BoardEngine'], None]] = None
        self.on_next_piece_changed: Optional[Callable[['BoardEngine', PieceType], None]] = None

    @property
    def index(self) -> int:
        return self.board.index

    def spawn_piece(self) -> bool:
        """Spawn the queued piece and queue a new one. Returns False on a blocked spawn."""
        board = self.board
        piece_type = board.next_piece_type or get_random_piece_type(self.rng)
        board.next_piece_type = get_random_piece_type(self.rng)
        board.current_piece = create_piece(piece_type, board.width)
        board.autonomy.reset()

        if would_collide(board.current_piece, board.grid):
            self._game_over()
            return False

        if self.on_next_piece_changed:
            self.on_next_piece_changed(self, board.next_piece_type)
        return True

    def set_next_piece(self, piece_type: PieceType):
        """Overwrite the queued piece type. The active piece is left alone."""
        self.board.next_piece_type = piece_type
        if self.on_next_piece_changed:
            self.on_next_piece_changed(self, piece_type)

    def _game_over(self):
        board = self.board
        board.is_game_over = True
        board.current_piece = None
        board.autonomy.reset()
        if self.on_game_over:
            self.on_game_over(self)

    def move_left(self) -> bool:
        return translate(self.board, -1, 0)

    def move_right(self) -> bool:
        return translate(self.board, 1, 0)

    def rotate(self) -> bool:
        return rotate(self.board)

    def move_down(self) -> bool:
        """Move the piece down one row, or lock it and spawn the next if it cannot fall."""
        if self.board.current_piece is None:
            return False
        if translate(self.board, 0, 1):
            return True
        self.lock_piece()
        self.spawn_piece()
        return False

    def hard_drop(self) -> int:
        """Drop the piece to rest, lock it and spawn the next. Returns lines cleared."""
        if self.board.current_piece is None:
            return 0
        drop_to_rest(self.board)
        lines_cleared = self.lock_piece()
        self.spawn_piece()
        return lines_cleared

    def lock_piece(self) -> int:
        """Commit the active piece into the grid and clear full rows."""
        board = self.board
        piece = board.current_piece
        if piece is None:
            return 0

        stamp_piece(board.grid, piece)
        board.current_piece = None
        board.pieces_locked += 1

        lines_cleared = clear_lines(board.grid)
        board.lines_cleared += lines_cleared

        if self.on_piece_locked:
            self.on_piece_locked(self, lines_cleared)
        if lines_cleared > 0 and self.on_lines_cleared:
            self.on_lines_cleared(self, lines_cleared)
        return lines_cleared

    def apply_command(self, command: Command, hard_drop_allowed: bool = False) -> bool:
        """Apply a player command. Returns True if the piece moved, rotated or dropped."""
        if self.board.is_game_over or self.board.current_piece is None:
            return False

        if command == Command.MOVE_LEFT:
            return self.move_left()
        elif command == Command.MOVE_RIGHT:
            return self.move_right()
        elif command == Command.ROTATE:
            return self.rotate()
        elif command == Command.SOFT_DROP:
            self.move_down()
            return True
        elif command == Command.HARD_DROP:
            if not hard_drop_allowed:
                return False
            self.hard_drop()
            return True
        return False

    def reset(self, now: float = 0.0) -> bool:
        """Reinitialise the board and spawn a fresh piece."""
        self.board.reset(now)
        return self.spawn_piece()

    def __repr__(self):
        return f"BoardEngine({self.board!r})"
