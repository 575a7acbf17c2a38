"""
AI module for Idletris.
Contains the heuristic evaluator, the placement planner and the autonomous executor.
"""

from .evaluation import BoardEvaluator, HeuristicWeights
from .planner import HeuristicPlanner
from .executor import AutonomousExecutor

__all__ = ['BoardEvaluator', 'HeuristicWeights', 'HeuristicPlanner', 'AutonomousExecutor']
