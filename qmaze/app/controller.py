"""Application controller connecting a host UI to the Q-learning engine."""

import dataclasses
import logging
from typing import List, Optional

import numpy as np
from PySide6.QtCore import QEventLoop, QObject, QThread, QTimer, Signal, Slot

from ..domain.maze import Maze
from ..domain.qlearning import QLearningTrainer
from ..domain.types import (
    EpisodeMetrics, MazeConfig, PathResult, Position, SessionResult, TrainingConfig
)
from ..utils.rng import SeededRNG
from .fsm import SessionStateMachine, SessionState

logger = logging.getLogger(__name__)


class TrainingWorker(QObject):
    """Runs one training session on a worker thread."""

    episode_completed = Signal(object)  # EpisodeMetrics
    training_finished = Signal(object)  # SessionResult
    error_occurred = Signal(str)
    finished = Signal()

    def __init__(self, trainer: QLearningTrainer, config: TrainingConfig):
        super().__init__()
        self.trainer = trainer
        self.config = config
        self.should_stop = False

    def stop(self):
        """Ask the session to end at the next episode boundary."""
        self.should_stop = True

    @Slot()
    def run(self):
        try:
            result = self.trainer.train(
                self.config,
                on_episode=self.episode_completed.emit,
                should_stop=lambda: self.should_stop,
            )
            self.training_finished.emit(result)
        except Exception as e:
            # Nothing above this frame on the worker thread can handle it
            logger.exception("Training session failed")
            self.error_occurred.emit(str(e))
        finally:
            self.finished.emit()


class MazeController(QObject):
    """
    Controller that runs training sessions and exposes state to a renderer.

    Training runs on a worker thread so the host's event loop stays free to
    deliver stop requests. Episode, progress and completion signals are
    delivered on the controller's thread; a host without a running event
    loop can block on ``wait_for_training``.

    Signals:
        state_changed: Emitted when the session state changes
        episode_completed: Emitted with each finished episode's metrics
        training_progress: Emitted with (episodes done, episodes requested)
        training_completed: Emitted with the SessionResult
        path_updated: Emitted with the new PathResult, or None when invalidated
        maze_updated: Emitted when the maze or the Q-table needs redrawing
        error_occurred: Emitted when an operation is refused with an error
    """

    state_changed = Signal(object)  # SessionState
    episode_completed = Signal(object)  # EpisodeMetrics
    training_progress = Signal(int, int)  # current_episode, total_episodes
    training_completed = Signal(object)  # SessionResult
    path_updated = Signal(object)  # Optional[PathResult]
    maze_updated = Signal()
    error_occurred = Signal(str)
    _session_finished = Signal()

    def __init__(self, maze_config: Optional[MazeConfig] = None,
                 config: Optional[TrainingConfig] = None,
                 seed: Optional[int] = None):
        super().__init__()

        self._trainer = QLearningTrainer(maze_config, config, SeededRNG(seed))
        self._state_machine = SessionStateMachine()
        self._last_result: Optional[SessionResult] = None
        self._session_total = 0
        self._session_done = 0

        self._training_thread: Optional[QThread] = None
        self._training_worker: Optional[TrainingWorker] = None
        self._pending_result: Optional[SessionResult] = None
        self._pending_error: Optional[str] = None

        for state in SessionState:
            self._state_machine.on_state_enter(state, self._on_state_entered)

    # Properties

    @property
    def trainer(self) -> QLearningTrainer:
        return self._trainer

    @property
    def maze(self) -> Maze:
        """Get the current maze."""
        return self._trainer.maze

    @property
    def q_values(self) -> np.ndarray:
        """Snapshot of the Q-table for heatmap rendering."""
        return self._trainer.table.snapshot()

    @property
    def path(self) -> Optional[PathResult]:
        """Last extracted path, or None if it was invalidated."""
        return self._trainer.last_path

    @property
    def metrics(self) -> List[EpisodeMetrics]:
        return list(self._trainer.metrics)

    @property
    def config(self) -> TrainingConfig:
        return self._trainer.config

    @property
    def current_state(self) -> SessionState:
        return self._state_machine.current_state

    @property
    def last_result(self) -> Optional[SessionResult]:
        return self._last_result

    # Configuration

    def update_config(self, **kwargs) -> bool:
        """Update training hyperparameters for the next session.

        Accepts any TrainingConfig field plus ``maze_size``.
        """
        if self._state_machine.is_active():
            return False

        maze_size = kwargs.pop("maze_size", None)
        known = {f.name for f in dataclasses.fields(TrainingConfig)}
        unknown = set(kwargs) - known
        if unknown:
            self.error_occurred.emit(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
            return False

        try:
            new_config = self._trainer.config.replace(**kwargs)
            new_config.validate()
            if maze_size is not None:
                dataclasses.replace(self.maze.config, size=maze_size).validate()
        except ValueError as e:
            self.error_occurred.emit(f"Invalid configuration: {e}")
            return False

        self._trainer.config = new_config
        if maze_size is not None and maze_size != self.maze.size:
            return self.set_maze_size(maze_size)
        return True

    # Maze editing

    def set_maze_size(self, size: int) -> bool:
        """Resize the maze, carrying over walls and Q-values that still fit."""
        if self._state_machine.is_active():
            return False
        try:
            changed = self._trainer.resize(size)
        except ValueError as e:
            self.error_occurred.emit(f"Failed to resize maze: {e}")
            return False
        if changed:
            self.maze_updated.emit()
            self.path_updated.emit(None)
        return changed

    def toggle_wall(self, pos: Position) -> bool:
        """Toggle a wall. Ignored on start/goal and while a session is active."""
        if self._state_machine.is_active():
            logger.debug("Ignoring wall toggle at %s during %s", pos, self.current_state.name)
            return False
        if not self._trainer.toggle_wall(pos):
            return False
        self.maze_updated.emit()
        self.path_updated.emit(None)
        return True

    # Training

    def can_start_training(self) -> bool:
        return self._state_machine.is_idle() and not self._trainer.is_running

    def start_training(self, episodes: Optional[int] = None) -> bool:
        """Start a training session on a worker thread.

        ``episodes`` overrides the episode count for this session only.
        Returns once the session is launched; ``training_completed`` follows
        when it ends.
        """
        if not self.can_start_training():
            return False

        config = self._trainer.config
        if episodes is not None:
            config = config.replace(episodes=episodes)
        try:
            config.validate()
        except ValueError as e:
            self.error_occurred.emit(f"Invalid configuration: {e}")
            return False

        self._session_total = config.episodes
        self._session_done = 0
        self._pending_result = None
        self._pending_error = None

        # The previous session's thread has already been joined
        self._training_thread = QThread()
        self._training_thread.setObjectName("QMaze-TrainingThread")
        self._training_worker = TrainingWorker(self._trainer, config)
        self._training_worker.moveToThread(self._training_thread)

        self._training_worker.episode_completed.connect(self._on_episode_completed)
        self._training_worker.training_finished.connect(self._on_training_finished)
        self._training_worker.error_occurred.connect(self._on_training_error)
        self._training_worker.finished.connect(self._on_worker_finished)
        self._training_thread.started.connect(self._training_worker.run)

        self._state_machine.start_training()
        self.path_updated.emit(None)
        self._training_thread.start()
        return True

    def stop_training(self) -> bool:
        """Stop the running session after the current episode."""
        if not self._state_machine.is_training():
            return False
        self._training_worker.stop()
        return True

    def wait_for_training(self, timeout_ms: int = 60000) -> bool:
        """Process events until the running session has finished.

        Returns:
            True if no session is running afterwards
        """
        if not self._state_machine.is_training():
            return True

        loop = QEventLoop()
        timer = QTimer(loop)
        timer.setSingleShot(True)
        timer.timeout.connect(loop.quit)
        self._session_finished.connect(loop.quit)
        timer.start(timeout_ms)
        try:
            loop.exec()
        finally:
            self._session_finished.disconnect(loop.quit)
        return not self._state_machine.is_training()

    def shutdown(self, timeout_ms: int = 5000) -> bool:
        """Stop any running session and wait for its thread to finish."""
        self.stop_training()
        return self.wait_for_training(timeout_ms)

    def show_path(self) -> Optional[PathResult]:
        """Extract and publish the greedy path."""
        if not self._state_machine.start_testing():
            return None
        try:
            result = self._trainer.extract_path()
        finally:
            self._state_machine.reset_to_idle()

        if result.found:
            logger.info("Path found: %d steps", result.steps)
        else:
            logger.info("No path found (%s after %d steps)", result.reason, result.steps)
        self.path_updated.emit(result)
        return result

    # Resets

    def reset_training(self) -> bool:
        """Clear learned values and metrics, keeping the maze."""
        if self._state_machine.is_active() or not self._trainer.reset_training():
            return False
        self._last_result = None
        self.maze_updated.emit()
        self.path_updated.emit(None)
        return True

    def reset_maze(self) -> bool:
        """Remove all walls, keeping learned values and metrics."""
        if self._state_machine.is_active() or not self._trainer.reset_maze():
            return False
        self.maze_updated.emit()
        self.path_updated.emit(None)
        return True

    def reset_all(self) -> bool:
        """Remove all walls and clear learned values and metrics."""
        if self._state_machine.is_active() or not self._trainer.reset_all():
            return False
        self._last_result = None
        self.maze_updated.emit()
        self.path_updated.emit(None)
        return True

    # Statistics

    def get_statistics(self, window: int = 50) -> dict:
        """Summary numbers for a status panel; averages use the last ``window`` episodes."""
        history = self._trainer.metrics
        recent = history[-window:]
        stats = {
            "state": self.current_state.name,
            "description": self._state_machine.get_state_description(),
            "maze_size": self.maze.size,
            "total_walls": self.maze.wall_count,
            "episodes_completed": len(history),
            "sessions_completed": self._trainer.sessions_completed,
            "best_reward": max((ep.total_reward for ep in history), default=None),
            "avg_steps": (sum(ep.steps for ep in recent) / len(recent)) if recent else None,
            "success_rate": (sum(1 for ep in recent if ep.reached_goal) / len(recent)) if recent else 0.0,
            "current_epsilon": history[-1].epsilon_used if history else self.config.epsilon,
        }
        return stats

    # Callbacks

    @Slot(object)
    def _on_episode_completed(self, episode: EpisodeMetrics):
        self._session_done += 1
        self.episode_completed.emit(episode)
        self.training_progress.emit(self._session_done, self._session_total)

    @Slot(object)
    def _on_training_finished(self, result: SessionResult):
        self._pending_result = result

    @Slot(str)
    def _on_training_error(self, message: str):
        self._pending_error = message

    @Slot()
    def _on_worker_finished(self):
        """Join the worker thread, return to IDLE and publish the outcome."""
        self._training_thread.quit()
        self._training_thread.wait()
        self._state_machine.reset_to_idle()
        self._session_finished.emit()

        if self._pending_result is not None:
            self._last_result = self._pending_result
            self.maze_updated.emit()
            self.training_completed.emit(self._last_result)
        else:
            self.error_occurred.emit(f"Training error: {self._pending_error}")

    def _on_state_entered(self, context):
        self.state_changed.emit(self._state_machine.current_state)
