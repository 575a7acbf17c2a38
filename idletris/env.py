# Idletris - Multi-board falling-block simulator
# env.py - A single board exposed through the Gymnasium API.

import random
from typing import Any, Dict, Optional, Tuple

import gymnasium as gym
from gymnasium import spaces
from gymnasium.envs.registration import register
import numpy as np

from .core.board import Board, DEFAULT_WIDTH, DEFAULT_HEIGHT
from .core.engine import BoardEngine, Command
from .core.pieces import PieceType


class IdletrisEnv(gym.Env):
    """
    One board driven by the same discrete commands a player sends.

    Action Space:
    - 0: Do nothing
    - 1: Move Left
    - 2: Move Right
    - 3: Soft Drop
    - 4: Rotate
    - 5: Hard Drop

    Gravity pulls the piece down one row every ``gravity_interval`` steps.

    Observation Space:
    The (height, width) grid as colour tokens (0 empty, 1-7 piece types), with
    the active piece drawn in.

    Reward: lines cleared during the step.
    """
    metadata = {"render_modes": ["ansi"], "render_fps": 30}

    ACTIONS = (
        None,
        Command.MOVE_LEFT,
        Command.MOVE_RIGHT,
        Command.SOFT_DROP,
        Command.ROTATE,
        Command.HARD_DROP,
    )

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 gravity_interval: int = 1, render_mode: Optional[str] = None):
        super().__init__()
        if gravity_interval < 1:
            raise ValueError("gravity_interval must be at least 1")
        self.width = width
        self.height = height
        self.gravity_interval = gravity_interval
        self.render_mode = render_mode

        self.action_space = spaces.Discrete(len(self.ACTIONS))
        self.observation_space = spaces.Box(
            low=0, high=len(PieceType), shape=(height, width), dtype=np.uint8
        )

        self.board: Optional[Board] = None
        self.engine: Optional[BoardEngine] = None
        self.steps = 0
        self._step_lines = 0

    def _on_lines_cleared(self, engine: BoardEngine, lines: int):
        self._step_lines += lines

    def _get_observation(self) -> np.ndarray:
        obs = self.board.grid.astype(np.uint8)
        piece = self.board.current_piece
        if piece is not None:
            for x, y in piece.get_occupied_cells():
                if 0 <= y < self.height and 0 <= x < self.width:
                    obs[y, x] = piece.color
        return obs

    def _get_info(self) -> Dict[str, Any]:
        return {
            "lines_cleared": self.board.lines_cleared,
            "pieces_locked": self.board.pieces_locked,
            "next_piece": self.board.next_piece_type.name if self.board.next_piece_type else None,
        }

    def reset(self, seed: Optional[int] = None,
              options: Optional[Dict[str, Any]] = None) -> Tuple[np.ndarray, Dict[str, Any]]:
        super().reset(seed=seed)
        rng = random.Random(int(self.np_random.integers(0, 2**31 - 1)))

        self.board = Board(0, self.width, self.height)
        self.engine = BoardEngine(self.board, rng)
        self.engine.on_lines_cleared = self._on_lines_cleared
        self.engine.spawn_piece()
        self.steps = 0
        self._step_lines = 0
        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        if self.engine is None:
            raise RuntimeError("Call reset() before step()")
        if not self.action_space.contains(action):
            raise ValueError(f"Invalid action {action!r}")

        self._step_lines = 0
        if not self.board.is_game_over:
            command = self.ACTIONS[int(action)]
            if command is not None:
                self.engine.apply_command(command, hard_drop_allowed=True)

            self.steps += 1
            if (not self.board.is_game_over and command not in (Command.SOFT_DROP, Command.HARD_DROP)
                    and self.steps % self.gravity_interval == 0):
                self.engine.move_down()

        reward = float(self._step_lines)
        terminated = self.board.is_game_over
        return self._get_observation(), reward, terminated, False, self._get_info()

    def render(self):
        if self.render_mode == "ansi" and self.board is not None:
            return str(self.board)
        return None


register(id="Idletris-v0", entry_point="idletris.env:IdletrisEnv")
