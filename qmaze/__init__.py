"""Q-Learning maze engine.

Tabular Q-learning over an editable grid-world maze: epsilon-greedy
training sessions with Bellman updates, a per-session exploration schedule
and greedy path extraction.
"""

from .domain.maze import Maze
from .domain.path import extract_path
from .domain.qlearning import QLearningTrainer, epsilon_for_episode, run_episode, run_session
from .domain.qtable import QTable
from .domain.types import (
    Action, EpisodeMetrics, MazeConfig, PathResult, SessionResult,
    TrainingConfig, TrainingInProgressError
)

__version__ = "1.0.0"

__all__ = [
    "Action",
    "EpisodeMetrics",
    "Maze",
    "MazeConfig",
    "PathResult",
    "QLearningTrainer",
    "QTable",
    "SessionResult",
    "TrainingConfig",
    "TrainingInProgressError",
    "epsilon_for_episode",
    "extract_path",
    "run_episode",
    "run_session",
]
