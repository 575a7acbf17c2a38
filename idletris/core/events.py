"""
Notification contract between the simulation core and outer layers (rendering, scoring, UI).
"""

from .board import BoardSnapshot, ControlMode
from .pieces import PieceType


class SessionListener:
    """Subscribe to session notifications by overriding any of these methods."""

    def on_board_updated(self, snapshot: BoardSnapshot):
        pass

    def on_lines_cleared(self, board_index: int, lines: int):
        pass

    def on_next_piece_changed(self, board_index: int, piece_type: PieceType):
        pass

    def on_game_over(self, board_index: int):
        pass

    def on_board_reset(self, board_index: int):
        pass

    def on_control_mode_changed(self, board_index: int, mode: ControlMode):
        pass
