import pytest
from PySide6.QtCore import QCoreApplication

from qmaze.domain.maze import Maze
from qmaze.domain.types import MazeConfig, TrainingConfig
from qmaze.utils.grid_factory import create_maze
from qmaze.utils.rng import SeededRNG


@pytest.fixture(scope="session")
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def rng():
    return SeededRNG(0)


@pytest.fixture
def tiny_maze():
    """2x2, no walls, start (0,0), goal (1,1)."""
    return Maze(MazeConfig(size=2))


@pytest.fixture
def enclosed_start_maze():
    """3x3 with the start boxed in by walls at (0,1) and (1,0)."""
    return create_maze(3, walls=[(0, 1), (1, 0)])


@pytest.fixture
def walled_goal_maze():
    """3x3 with the goal cut off by walls at (1,2) and (2,1)."""
    return create_maze(3, walls=[(1, 2), (2, 1)])


@pytest.fixture
def greedy_config():
    return TrainingConfig(alpha=0.3, gamma=0.9, epsilon=0.0, episodes=300)
