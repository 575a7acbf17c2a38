"""
Autonomous move executor for Idletris.

Turns a planned placement into single primitive moves (rotate, shift, drop),
one per cadence interval, on a board whose control mode is autonomous.
"""

import logging
from typing import Optional

from ..core.engine import BoardEngine
from ..core.movement import rotate, translate
from .planner import HeuristicPlanner

logger = logging.getLogger(__name__)

STUCK_PIECE_TIMEOUT_MS = 5000.0


class AutonomousExecutor:
    """Steps autonomous boards toward their planned placement."""

    def __init__(self, planner: Optional[HeuristicPlanner] = None,
                 stuck_timeout_ms: float = STUCK_PIECE_TIMEOUT_MS):
        self.planner = planner or HeuristicPlanner()
        self.stuck_timeout_ms = stuck_timeout_ms

    def update(self, engine: BoardEngine, now: float) -> bool:
        """
        Advance one autonomous board at time ``now`` (milliseconds, monotonic).

        The stuck-piece breaker is checked first: a piece older than the
        timeout is forced down one row and its plan discarded. Otherwise one
        step runs if the board's cadence has elapsed. Returns True if anything
        was done.
        """
        board = engine.board
        if not board.is_autonomous or board.is_game_over or board.current_piece is None:
            return False

        state = board.autonomy
        if state.piece_spawned_at is None:
            state.piece_spawned_at = now

        if now - state.piece_spawned_at > self.stuck_timeout_ms:
            logger.warning("Board %d: piece stuck for %.0f ms, forcing it down",
                           board.index, now - state.piece_spawned_at)
            state.clear_target()
            engine.move_down()
            return True

        if now - state.last_step_at <= board.ai_cadence_ms:
            return False
        state.last_step_at = now
        self.step(engine)
        return True

    def step(self, engine: BoardEngine):
        """Perform exactly one primitive action toward the board's target."""
        board = engine.board
        piece = board.current_piece
        if piece is None:
            return
        state = board.autonomy

        if state.target is None and not state.moving:
            target = self.planner.plan_best_placement(piece, board.grid)
            if target is None:
                engine.move_down()
                return
            state.target = target
            state.moving = True
            state.applied_rotations = 0

        target = state.target
        if target is None:
            return

        # Rotate
        if state.applied_rotations < target.rotation:
            if rotate(board):
                state.applied_rotations += 1
            else:
                state.applied_rotations = target.rotation
            return

        # Shift
        if piece.x != target.x:
            direction = 1 if target.x > piece.x else -1
            if not translate(board, direction, 0):
                state.clear_target()
                engine.move_down()
            return

        # Drop
        state.clear_target()
        if board.ai_hard_drop_unlocked:
            engine.hard_drop()
        else:
            engine.move_down()
