"""Core type definitions for the Q-learning maze engine."""

from dataclasses import dataclass, field, replace as dc_replace
from enum import IntEnum
from typing import Dict, List, Optional, Tuple, Literal

# Grid position as (row, col)
Position = Tuple[int, int]

# Why a greedy rollout ended
PathEndReason = Literal["goal", "stuck", "cycle", "max_steps"]

# Cell kinds stored in the maze array
FREE = 0
WALL = 1


class Action(IntEnum):
    """The four cardinal moves. Enumeration order is the tie-break order."""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3


ALL_ACTIONS: Tuple[Action, ...] = (Action.UP, Action.DOWN, Action.LEFT, Action.RIGHT)

ACTION_DELTAS: Dict[Action, Position] = {
    Action.UP: (-1, 0),
    Action.DOWN: (1, 0),
    Action.LEFT: (0, -1),
    Action.RIGHT: (0, 1),
}

ACTION_ARROWS: Dict[Action, str] = {
    Action.UP: "^",
    Action.DOWN: "v",
    Action.LEFT: "<",
    Action.RIGHT: ">",
}


def apply_action(pos: Position, action: Action) -> Position:
    """Return the position reached by moving one cell in the action's direction."""
    dr, dc = ACTION_DELTAS[action]
    return (pos[0] + dr, pos[1] + dc)


class TrainingInProgressError(RuntimeError):
    """Raised when a session is started while another one is running."""


@dataclass(frozen=True)
class MazeConfig:
    """Environment configuration: grid size and reward constants."""
    size: int = 6
    goal_reward: float = 10.0
    step_penalty: float = -0.1

    def validate(self) -> None:
        """Raise ValueError if the configuration cannot build a maze."""
        if self.size < 2:
            raise ValueError(f"Maze size must be at least 2, got {self.size}")


@dataclass(frozen=True)
class TrainingConfig:
    """Hyperparameters for one training session.

    Frozen so that a running session cannot observe changes; use
    ``replace`` to derive the parameters for the next session.
    """
    alpha: float = 0.3  # learning rate
    gamma: float = 0.9  # discount factor
    epsilon: float = 0.3  # initial exploration for the session
    episodes: int = 200
    max_steps_per_episode: int = 100
    epsilon_decay: float = 0.98
    epsilon_min: float = 0.01
    max_path_steps: int = 50

    def validate(self) -> None:
        """Raise ValueError for parameters outside their legal ranges."""
        if not (0.0 < self.alpha <= 1.0):
            raise ValueError(f"alpha must be in (0, 1], got {self.alpha}")
        if not (0.0 <= self.gamma < 1.0):
            raise ValueError(f"gamma must be in [0, 1), got {self.gamma}")
        if not (0.0 <= self.epsilon <= 1.0):
            raise ValueError(f"epsilon must be in [0, 1], got {self.epsilon}")
        if not (0.0 < self.epsilon_decay <= 1.0):
            raise ValueError(f"epsilon_decay must be in (0, 1], got {self.epsilon_decay}")
        if not (0.0 <= self.epsilon_min <= 1.0):
            raise ValueError(f"epsilon_min must be in [0, 1], got {self.epsilon_min}")
        if self.episodes <= 0:
            raise ValueError(f"episodes must be positive, got {self.episodes}")
        if self.max_steps_per_episode <= 0:
            raise ValueError(f"max_steps_per_episode must be positive, got {self.max_steps_per_episode}")
        if self.max_path_steps <= 0:
            raise ValueError(f"max_path_steps must be positive, got {self.max_path_steps}")

    def replace(self, **changes) -> "TrainingConfig":
        """Return a copy with the given fields changed."""
        return dc_replace(self, **changes)


@dataclass(frozen=True)
class EpisodeMetrics:
    """Outcome of a single training episode."""
    episode_index: int
    total_reward: float
    steps: int
    epsilon_used: float
    reached_goal: bool = False


@dataclass
class SessionResult:
    """Result of one training session."""
    episodes: List[EpisodeMetrics] = field(default_factory=list)
    stopped: bool = False  # cancelled at an episode boundary
    final_epsilon: float = 0.0

    @property
    def total_episodes(self) -> int:
        return len(self.episodes)

    @property
    def successful_episodes(self) -> int:
        return sum(1 for ep in self.episodes if ep.reached_goal)

    @property
    def success_rate(self) -> float:
        """Fraction of episodes that reached the goal."""
        return self.successful_episodes / self.total_episodes if self.total_episodes > 0 else 0.0

    @property
    def average_reward(self) -> float:
        if not self.episodes:
            return 0.0
        return sum(ep.total_reward for ep in self.episodes) / len(self.episodes)

    @property
    def best_reward(self) -> Optional[float]:
        return max((ep.total_reward for ep in self.episodes), default=None)

    @property
    def average_steps(self) -> float:
        if not self.episodes:
            return 0.0
        return sum(ep.steps for ep in self.episodes) / len(self.episodes)


@dataclass
class PathResult:
    """Result of a greedy rollout over the learned values."""
    path: List[Position]
    found: bool = False
    reason: PathEndReason = "max_steps"

    @property
    def steps(self) -> int:
        """Number of moves in the path."""
        return max(0, len(self.path) - 1)
