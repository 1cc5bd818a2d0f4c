"""Q-Learning training loop, exploration schedule and session ownership."""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .maze import Maze
from .path import extract_path
from .policy import select_action
from .qtable import QTable
from .types import (
    EpisodeMetrics, MazeConfig, PathResult, SessionResult, TrainingConfig,
    TrainingInProgressError
)
from ..utils.rng import SeededRNG

logger = logging.getLogger(__name__)

EpisodeCallback = Callable[[EpisodeMetrics], None]
StopCheck = Callable[[], bool]

PROGRESS_LOG_INTERVAL = 50


def epsilon_for_episode(index: int, epsilon0: float, decay: float = 0.98,
                        floor: float = 0.01) -> float:
    """Exploration rate for the ``index``-th episode of a session (0-based).

    Equal to ``max(floor, epsilon0 * decay ** index)`` whenever
    ``epsilon0 >= floor``. Below that the rate stays at ``epsilon0`` instead
    of being raised to the floor, so a session started with epsilon 0 stays
    fully greedy.
    """
    return max(min(floor, epsilon0), epsilon0 * decay ** index)


def q_update(current: float, reward: float, bootstrap: float,
             alpha: float, gamma: float) -> float:
    """One Bellman step moving ``current`` towards ``reward + gamma * bootstrap``."""
    target = reward + gamma * bootstrap
    return current + alpha * (target - current)


def run_episode(maze: Maze, table: QTable, config: TrainingConfig, epsilon: float,
                rng: SeededRNG, episode_index: int = 0) -> EpisodeMetrics:
    """
    Run one epsilon-greedy episode from start, updating ``table`` in place.

    The episode ends at the goal, at a cell with no legal moves, or after
    ``config.max_steps_per_episode`` steps. None of these are errors.

    Returns:
        Metrics for the finished episode
    """
    pos = maze.start
    total_reward = 0.0
    steps = 0

    while pos != maze.goal and steps < config.max_steps_per_episode:
        action = select_action(pos, epsilon, table, maze, rng)
        if action is None:
            # Stuck: no legal moves from here
            break

        next_pos, reward = maze.step(pos, action)
        bootstrap = table.max_value(next_pos, maze.valid_actions(next_pos), maze.goal)
        table.set(pos, action, q_update(table.get(pos, action), reward, bootstrap,
                                        config.alpha, config.gamma))

        total_reward += reward
        steps += 1
        pos = next_pos

    return EpisodeMetrics(
        episode_index=episode_index,
        total_reward=total_reward,
        steps=steps,
        epsilon_used=epsilon,
        reached_goal=(pos == maze.goal),
    )


def run_session(maze: Maze, table: QTable, config: TrainingConfig, rng: SeededRNG,
                on_episode: Optional[EpisodeCallback] = None,
                should_stop: Optional[StopCheck] = None,
                start_index: int = 0) -> SessionResult:
    """
    Train for ``config.episodes`` episodes with a fresh exploration schedule.

    The schedule always restarts from ``config.epsilon`` even though the
    table carries over from earlier sessions. ``should_stop`` is only
    consulted between episodes; an episode in flight always finishes.

    Args:
        maze: Environment to train in
        table: Q-values, updated in place
        config: Session hyperparameters
        rng: Exploration randomness
        on_episode: Receives each episode's metrics as soon as it finishes
        should_stop: Cancellation check evaluated at episode boundaries
        start_index: Global index assigned to the first episode

    Returns:
        SessionResult with the episodes run in this session
    """
    result = SessionResult(final_epsilon=config.epsilon)

    for i in range(config.episodes):
        if should_stop is not None and should_stop():
            result.stopped = True
            logger.info("Session stopped after %d of %d episodes", i, config.episodes)
            break

        epsilon = epsilon_for_episode(i, config.epsilon, config.epsilon_decay, config.epsilon_min)
        episode = run_episode(maze, table, config, epsilon, rng, episode_index=start_index + i)
        result.episodes.append(episode)
        result.final_epsilon = epsilon

        if on_episode is not None:
            on_episode(episode)

        if (i + 1) % PROGRESS_LOG_INTERVAL == 0:
            recent = result.episodes[-PROGRESS_LOG_INTERVAL:]
            recent_success = sum(1 for ep in recent if ep.reached_goal) / len(recent)
            logger.debug("Episode %d: success rate %.1f%%, epsilon %.3f",
                         start_index + i + 1, recent_success * 100, epsilon)

    return result


class QLearningTrainer:
    """Owns the maze, the Q-table and the metrics history.

    Edits, resizes, resets and path extraction all take the session guard
    without blocking, so they are rejected while a training session holds it.
    """

    def __init__(self, maze_config: Optional[MazeConfig] = None,
                 config: Optional[TrainingConfig] = None,
                 rng: Optional[SeededRNG] = None):
        self.maze = Maze(maze_config)
        self.table = QTable(self.maze.rows, self.maze.cols)
        self.config = config or TrainingConfig()
        self.rng = rng or SeededRNG()
        self.metrics: List[EpisodeMetrics] = []
        self.last_path: Optional[PathResult] = None
        self.sessions_completed = 0

        self._session_lock = threading.Lock()
        self._stop_requested = False

    @property
    def is_running(self) -> bool:
        """Whether a training session currently holds the guard."""
        return self._session_lock.locked()

    @property
    def episodes_completed(self) -> int:
        return len(self.metrics)

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._session_lock.acquire(blocking=False):
            raise TrainingInProgressError("A training session is already running")
        try:
            yield
        finally:
            self._session_lock.release()

    def _try_exclusive(self, operation: str) -> bool:
        """Acquire the guard for a short edit, or log and report rejection."""
        if self._session_lock.acquire(blocking=False):
            return True
        logger.debug("Rejected %s while training is running", operation)
        return False

    def _check_dimensions(self) -> None:
        if self.table.shape != self.maze.shape:
            raise RuntimeError(
                f"Q-table shape {self.table.shape} does not match maze shape {self.maze.shape}"
            )

    # Training

    def train(self, config: Optional[TrainingConfig] = None,
              on_episode: Optional[EpisodeCallback] = None,
              should_stop: Optional[StopCheck] = None) -> SessionResult:
        """
        Run one training session.

        A ``config`` passed here applies to this session only; ``self.config``
        is left unchanged.

        Args:
            config: Hyperparameters for this session (defaults to ``self.config``)
            on_episode: Live stream of episode metrics
            should_stop: Extra cancellation check, combined with ``request_stop``

        Raises:
            ValueError: If the configuration is invalid
            TrainingInProgressError: If a session is already running
        """
        config = config or self.config
        config.validate()

        with self._exclusive():
            self._check_dimensions()
            self._stop_requested = False
            self.last_path = None

            def record(episode: EpisodeMetrics) -> None:
                self.metrics.append(episode)
                if on_episode is not None:
                    on_episode(episode)

            logger.info(
                "Starting session %d: %d episodes (alpha=%.3f, gamma=%.3f, epsilon=%.3f)",
                self.sessions_completed + 1, config.episodes, config.alpha, config.gamma, config.epsilon,
            )
            result = run_session(
                self.maze, self.table, config, self.rng,
                on_episode=record,
                should_stop=lambda: self._stop_requested or (should_stop is not None and should_stop()),
                start_index=len(self.metrics),
            )
            self.sessions_completed += 1
            self._stop_requested = False

        logger.info(
            "Session finished: %d episodes, success rate %.1f%%, average reward %.2f",
            result.total_episodes, result.success_rate * 100, result.average_reward,
        )
        return result

    def request_stop(self) -> bool:
        """Ask the running session to stop at the next episode boundary."""
        if not self.is_running:
            return False
        self._stop_requested = True
        return True

    def extract_path(self, max_steps: Optional[int] = None) -> PathResult:
        """
        Greedy rollout over the current Q-table.

        Raises:
            TrainingInProgressError: If a session is running
        """
        steps = max_steps if max_steps is not None else self.config.max_path_steps
        with self._exclusive():
            self._check_dimensions()
            self.last_path = extract_path(self.table, self.maze, steps)
        return self.last_path

    # Maze editing

    def toggle_wall(self, pos) -> bool:
        """Toggle a wall; rejected on start/goal or while training."""
        if not self._try_exclusive("wall toggle"):
            return False
        try:
            changed = self.maze.toggle_wall(pos)
            if changed:
                self.last_path = None
            return changed
        finally:
            self._session_lock.release()

    def resize(self, new_size: int) -> bool:
        """Replace maze and Q-table together with versions of a new size."""
        if not self._try_exclusive("resize"):
            return False
        try:
            if new_size == self.maze.size:
                return False
            maze = self.maze.resize(new_size)
            table = self.table.resized(new_size, new_size)
            self.maze, self.table = maze, table
            self.last_path = None
            self._check_dimensions()
            logger.info("Resized maze to %dx%d", new_size, new_size)
            return True
        finally:
            self._session_lock.release()

    # Resets

    def reset_training(self) -> bool:
        """Clear the Q-table and metrics, keeping the maze."""
        if not self._try_exclusive("training reset"):
            return False
        try:
            self.table.reset()
            self.metrics.clear()
            self.sessions_completed = 0
            self.last_path = None
            return True
        finally:
            self._session_lock.release()

    def reset_maze(self) -> bool:
        """Clear walls and restore the default start and goal, keeping learned values."""
        if not self._try_exclusive("maze reset"):
            return False
        try:
            self.maze = Maze(self.maze.config)
            self.last_path = None
            self._check_dimensions()
            return True
        finally:
            self._session_lock.release()

    def reset_all(self) -> bool:
        """Clear walls, Q-table and metrics."""
        if self.is_running:
            logger.debug("Rejected full reset while training is running")
            return False
        return self.reset_maze() and self.reset_training()
