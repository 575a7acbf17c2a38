"""
Multi-board scheduler for Idletris.

A GameSession owns an ordered, bounded list of boards and advances all of them
once per tick: autonomous boards through the executor, the focused human board
through gravity. Outer layers subscribe with SessionListener objects.
"""

import logging
import random
import time
from typing import Callable, List, Optional
from dataclasses import dataclass

from .core.board import Board, ControlMode, MAX_AI_SPEED_LEVEL
from .core.engine import BoardEngine, Command
from .core.events import SessionListener
from .core.pieces import PieceType
from .ai.executor import AutonomousExecutor, STUCK_PIECE_TIMEOUT_MS
from .ai.planner import HeuristicPlanner
from .exceptions import BoardNotFoundError

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass
class SessionConfig:
    """Configuration for a game session."""
    width: int = 10
    height: int = 20
    max_boards: int = 7
    drop_interval_ms: float = 1000.0  # Gravity for the focused human board
    base_ai_cadence_ms: float = 300.0
    ai_speed_multiplier: float = 1.5
    max_ai_speed_level: int = MAX_AI_SPEED_LEVEL
    stuck_piece_timeout_ms: float = STUCK_PIECE_TIMEOUT_MS
    random_seed: Optional[int] = None


class GameSession:
    """Owns every board and ticks them forward in index order."""

    def __init__(self, config: Optional[SessionConfig] = None,
                 planner: Optional[HeuristicPlanner] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.config = config or SessionConfig()
        self.clock = clock or monotonic_ms
        self.rng = random.Random(self.config.random_seed)
        self.executor = AutonomousExecutor(planner, self.config.stuck_piece_timeout_ms)
        self._listeners: List[SessionListener] = []

        self.engines: List[BoardEngine] = []
        self.active_board_index = 0
        self.hard_drop_unlocked = False
        self.is_paused = False
        self.is_game_over = False
        self.total_lines_cleared = 0
        self._override_return_index: Optional[int] = None

        self._unlock_board()

    # Listeners

    def add_listener(self, listener: SessionListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener):
        self._listeners.remove(listener)

    # Board access

    @property
    def boards(self) -> List[Board]:
        return [engine.board for engine in self.engines]

    @property
    def active_board(self) -> Optional[Board]:
        if 0 <= self.active_board_index < len(self.engines):
            return self.engines[self.active_board_index].board
        return None

    def engine(self, index: int) -> BoardEngine:
        """Get the engine for a board index, raising BoardNotFoundError if there is none."""
        if not 0 <= index < len(self.engines):
            raise BoardNotFoundError(index, len(self.engines))
        return self.engines[index]

    def board(self, index: int) -> Board:
        return self.engine(index).board

    def can_add_board(self) -> bool:
        """True if there is room for another board and the last one is maxed out."""
        if not self.engines or len(self.engines) >= self.config.max_boards:
            return False
        return self.engines[-1].board.is_maxed_out(self.config.max_ai_speed_level)

    def add_board(self) -> Optional[Board]:
        """
        Unlock the next board and give it input focus.

        The last board must be maxed out first: agent hired, agent hard drop
        unlocked and agent speed at the top level. The previously focused board
        is handed to its agent if one is hired. Returns None if the board limit
        is reached or the last board is not maxed out.
        """
        if len(self.engines) >= self.config.max_boards:
            logger.info("Board limit of %d reached", self.config.max_boards)
            return None
        if not self.can_add_board():
            logger.info("Board %d is not maxed out", len(self.engines))
            return None

        previous = self.active_board
        if previous is not None:
            # Focus moves to the new board, so a running override ends here
            previous.manual_override_remaining = 0
            self._override_return_index = None
            if previous.ai_hired and not previous.is_autonomous and not previous.is_game_over:
                self._set_mode(previous, ControlMode.AUTONOMOUS)
        return self._unlock_board()

    def _unlock_board(self) -> Board:
        board = Board(len(self.engines), self.config.width, self.config.height,
                      ai_cadence_ms=self.config.base_ai_cadence_ms)
        engine = BoardEngine(board, self.rng)
        engine.on_piece_locked = self._handle_piece_locked
        engine.on_lines_cleared = self._handle_lines_cleared
        engine.on_game_over = self._handle_game_over
        engine.on_next_piece_changed = self._handle_next_piece_changed
        self.engines.append(engine)

        self.active_board_index = board.index
        board.last_drop_time = self.clock()
        engine.spawn_piece()
        logger.info("Board %d unlocked", board.index + 1)
        return board

    # Tick

    def tick(self, now: Optional[float] = None):
        """Advance every live board by at most one primitive action."""
        if self.is_paused or self.is_game_over:
            return
        if now is None:
            now = self.clock()

        for engine in self.engines:
            board = engine.board
            if board.is_game_over:
                continue

            if board.is_autonomous:
                self.executor.update(engine, now)
            elif board.index == self.active_board_index:
                if now - board.last_drop_time > self.config.drop_interval_ms:
                    engine.move_down()
                    board.last_drop_time = now

        for engine in self.engines:
            snapshot = engine.board.snapshot()
            for listener in self._listeners:
                listener.on_board_updated(snapshot)

    def pause(self):
        self.is_paused = True

    def resume(self):
        self.is_paused = False

    # Commands and capabilities

    def handle_command(self, command: Command) -> bool:
        """Apply a player command to the focused board if it is under human control."""
        if self.is_paused or self.is_game_over:
            return False
        board = self.active_board
        if board is None or board.is_game_over or board.is_autonomous:
            return False

        engine = self.engines[self.active_board_index]
        applied = engine.apply_command(command, hard_drop_allowed=self.hard_drop_unlocked)
        if command == Command.SOFT_DROP:
            board.last_drop_time = self.clock()
        return applied

    def set_hard_drop_unlocked(self, unlocked: bool = True):
        self.hard_drop_unlocked = unlocked

    def hire_agent(self, index: int):
        """Give a board its own agent and switch it to autonomous play."""
        board = self.board(index)
        board.ai_hired = True
        if board.manual_override_remaining > 0:
            self._finish_manual_override(board)
        elif not board.is_game_over:
            self._set_mode(board, ControlMode.AUTONOMOUS)
        logger.info("Agent hired for board %d", index + 1)

    def set_control_mode(self, index: int, mode: ControlMode) -> bool:
        """
        Switch a board's control mode. Any pending autonomous plan is dropped.
        Returns False for a lost board, which keeps its mode until reset.
        """
        board = self.board(index)
        if board.is_game_over:
            return False
        if board.manual_override_remaining > 0:
            if mode == ControlMode.AUTONOMOUS:
                self._finish_manual_override(board)
                return True
            board.manual_override_remaining = 0
            self._override_return_index = None
        self._set_mode(board, mode)
        return True

    def start_manual_override(self, index: int, pieces: int) -> bool:
        """
        Hand a board to the player for ``pieces`` locks, then back to its agent.

        The board takes input focus for the duration; focus returns to the
        previously focused board when the override ends. Returns False for a
        lost board.
        """
        if pieces <= 0:
            raise ValueError("pieces must be positive")
        board = self.board(index)
        if board.is_game_over:
            return False

        for other in self.boards:
            if other is not board and other.manual_override_remaining > 0:
                self._finish_manual_override(other)
        if index != self.active_board_index and board.manual_override_remaining == 0:
            self._override_return_index = self.active_board_index

        self._set_mode(board, ControlMode.HUMAN)
        board.manual_override_remaining = pieces
        board.last_drop_time = self.clock()
        self.active_board_index = index
        return True

    def set_ai_hard_drop(self, index: int, unlocked: bool = True):
        self.board(index).ai_hard_drop_unlocked = unlocked

    def set_ai_cadence(self, index: int, cadence_ms: float):
        if cadence_ms <= 0:
            raise ValueError("cadence_ms must be positive")
        self.board(index).ai_cadence_ms = cadence_ms

    def upgrade_ai_speed(self, index: int) -> bool:
        """Raise a board's agent speed level. Returns False once the top level is reached."""
        board = self.board(index)
        if board.ai_speed_level >= self.config.max_ai_speed_level:
            return False
        board.ai_speed_level += 1
        board.ai_cadence_ms = (self.config.base_ai_cadence_ms /
                               self.config.ai_speed_multiplier ** board.ai_speed_level)
        logger.info("Board %d agent speed level %d (%.0f ms)",
                    index + 1, board.ai_speed_level, board.ai_cadence_ms)
        return True

    def force_next_piece(self, index: int, piece_type: PieceType):
        """Overwrite a board's queued piece type without touching the active piece."""
        self.engine(index).set_next_piece(piece_type)

    # Resets

    def reset_board(self, index: int):
        """Restart one board. Capabilities and index survive; a hired agent resumes play."""
        engine = self.engine(index)
        board = engine.board
        if board.manual_override_remaining > 0:
            self._finish_manual_override(board)
        board.reset(self.clock())
        mode = ControlMode.AUTONOMOUS if board.ai_hired else ControlMode.HUMAN
        self._set_mode(board, mode)
        if index == self.active_board_index:
            self.is_game_over = False

        engine.spawn_piece()
        logger.info("Board %d reset", index + 1)
        for listener in self._listeners:
            listener.on_board_reset(index)

    def reset_session(self):
        """Start over with a single fresh board and no capabilities."""
        self.engines = []
        self.active_board_index = 0
        self.hard_drop_unlocked = False
        self.is_paused = False
        self.is_game_over = False
        self.total_lines_cleared = 0
        self._override_return_index = None
        self._unlock_board()
        logger.info("Session reset")

    # Internal

    def _set_mode(self, board: Board, mode: ControlMode):
        board.autonomy.clear_target()
        if board.control_mode == mode:
            return
        board.control_mode = mode
        for listener in self._listeners:
            listener.on_control_mode_changed(board.index, mode)

    def _handle_piece_locked(self, engine: BoardEngine, lines: int):
        board = engine.board
        if board.manual_override_remaining > 0:
            board.manual_override_remaining -= 1
            if board.manual_override_remaining == 0:
                logger.info("Board %d manual override over", board.index + 1)
                self._finish_manual_override(board)

    def _finish_manual_override(self, board: Board):
        """Return an overridden board to its agent and focus to the board that had it."""
        board.manual_override_remaining = 0
        self._set_mode(board, ControlMode.AUTONOMOUS)

        return_index = self._override_return_index
        self._override_return_index = None
        if return_index is None or self.active_board_index != board.index:
            return
        previous = self.engines[return_index].board
        if previous.is_game_over:
            return
        self.active_board_index = return_index
        previous.last_drop_time = self.clock()

    def _handle_lines_cleared(self, engine: BoardEngine, lines: int):
        self.total_lines_cleared += lines
        for listener in self._listeners:
            listener.on_lines_cleared(engine.index, lines)

    def _handle_next_piece_changed(self, engine: BoardEngine, piece_type: PieceType):
        for listener in self._listeners:
            listener.on_next_piece_changed(engine.index, piece_type)

    def _handle_game_over(self, engine: BoardEngine):
        board = engine.board
        if board.manual_override_remaining > 0:
            board.manual_override_remaining = 0
            self._override_return_index = None
        self._set_mode(board, ControlMode.HUMAN)
        if board.index == self.active_board_index:
            self.is_game_over = True
        logger.info("Board %d lost", board.index + 1)
        for listener in self._listeners:
            listener.on_game_over(board.index)

    def __repr__(self):
        return (f"GameSession(boards={len(self.engines)}, active={self.active_board_index}, "
                f"lines={self.total_lines_cleared})")
