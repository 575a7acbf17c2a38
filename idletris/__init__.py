# Idletris - Multi-board falling-block simulator
# __init__.py for the idletris package

from .core import Board, BoardEngine, Command, ControlMode, Piece, PieceType, Placement, SessionListener
from .ai import AutonomousExecutor, BoardEvaluator, HeuristicPlanner, HeuristicWeights
from .session import GameSession, SessionConfig
from .exceptions import IdletrisError, BoardNotFoundError
from .env import IdletrisEnv

__version__ = "0.1.0"
