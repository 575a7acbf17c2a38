"""
Board evaluation functions for Idletris.
Provides the heuristic score used by the placement planner.
"""

from typing import Dict, Optional
import numpy as np
from dataclasses import dataclass

from ..core.board import (
    count_complete_rows, get_max_height, count_holes, get_bumpiness, get_height_map,
)


@dataclass
class HeuristicWeights:
    """Weights for the board evaluation heuristics."""
    complete_lines: float = 1000.0
    max_height: float = -10.0
    holes: float = -50.0
    bumpiness: float = -5.0


class BoardEvaluator:
    """Scores a grid as a weighted sum of completed rows, height, holes and bumpiness."""

    def __init__(self, weights: Optional[HeuristicWeights] = None):
        self.weights = weights or HeuristicWeights()

    def evaluate_grid(self, grid: np.ndarray) -> float:
        """Evaluate a landed grid. Full rows are counted before they would be cleared."""
        score = 0.0
        score += self.weights.complete_lines * count_complete_rows(grid)
        score += self.weights.max_height * get_max_height(grid)
        score += self.weights.holes * count_holes(grid)
        score += self.weights.bumpiness * get_bumpiness(grid)
        return score

    def get_detailed_evaluation(self, grid: np.ndarray) -> Dict[str, float]:
        """Get every heuristic feature alongside the overall score."""
        heights = get_height_map(grid)
        return {
            'complete_lines': count_complete_rows(grid),
            'max_height': max(heights, default=0),
            'avg_height': float(np.mean(heights)) if heights else 0.0,
            'holes': count_holes(grid),
            'bumpiness': get_bumpiness(grid),
            'overall_score': self.evaluate_grid(grid),
        }
