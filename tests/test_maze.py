import numpy as np
import pytest

from qmaze.domain.maze import Maze
from qmaze.domain.types import Action, FREE, WALL, MazeConfig
from qmaze.utils.grid_factory import create_maze


def test_new_maze_is_all_free_with_corner_start_and_goal():
    maze = Maze(MazeConfig(size=4))
    assert maze.shape == (4, 4)
    assert maze.wall_count == 0
    assert maze.start == (0, 0)
    assert maze.goal == (3, 3)


def test_size_below_two_is_rejected():
    with pytest.raises(ValueError):
        Maze(MazeConfig(size=1))


def test_is_valid_checks_bounds_and_walls():
    maze = create_maze(4, walls=[(1, 1)])
    assert maze.is_valid((0, 0))
    assert not maze.is_valid((1, 1))
    assert not maze.is_valid((-1, 0))
    assert not maze.is_valid((0, 4))


def test_valid_actions_in_corner_excludes_off_grid_moves():
    maze = Maze(MazeConfig(size=4))
    assert maze.valid_actions((0, 0)) == [Action.DOWN, Action.RIGHT]
    assert maze.valid_actions((3, 3)) == [Action.UP, Action.LEFT]


def test_valid_actions_exclude_walls():
    maze = create_maze(4, walls=[(1, 2)])
    assert Action.RIGHT not in maze.valid_actions((1, 1))


def test_enclosed_cell_has_no_valid_actions():
    maze = create_maze(5, walls=[(1, 2), (3, 2), (2, 1), (2, 3)])
    assert maze.valid_actions((2, 2)) == []


def test_step_rewards():
    maze = Maze(MazeConfig(size=4))
    assert maze.step((0, 0), Action.RIGHT) == ((0, 1), -0.1)
    assert maze.step((2, 3), Action.DOWN) == ((3, 3), 10.0)


def test_step_rewards_come_from_config():
    maze = Maze(MazeConfig(size=3, goal_reward=1.0, step_penalty=-0.5))
    assert maze.step((0, 0), Action.DOWN)[1] == -0.5
    assert maze.step((2, 1), Action.RIGHT)[1] == 1.0


def test_toggle_wall_flips_cell():
    maze = Maze(MazeConfig(size=4))
    assert maze.toggle_wall((1, 1))
    assert maze.is_wall((1, 1))
    assert maze.toggle_wall((1, 1))
    assert not maze.is_wall((1, 1))


@pytest.mark.parametrize("pos", [(0, 0), (3, 3), (5, 5), (-1, 2)])
def test_toggle_start_goal_or_outside_is_noop(pos):
    maze = create_maze(4, walls=[(2, 2)])
    before = maze.copy()
    assert not maze.toggle_wall(pos)
    assert maze == before


def test_edits_accept_list_positions():
    maze = Maze(MazeConfig(size=4))
    assert not maze.toggle_wall([0, 0])
    assert not maze.toggle_wall([3, 3])
    assert maze.wall_count == 0

    assert maze.toggle_wall([1, 2])
    assert maze.is_wall((1, 2))
    assert maze.set_wall([1, 2], False)
    assert not maze.set_wall([0, 0], True)
    assert maze.wall_count == 0


def test_resize_grow_keeps_walls_and_adds_free_cells():
    maze = create_maze(4, walls=[(1, 1)])
    bigger = maze.resize(6)
    assert bigger.shape == (6, 6)
    assert bigger.is_wall((1, 1))
    assert np.all(bigger.cells[4:, :] == FREE)
    assert np.all(bigger.cells[:, 4:] == FREE)
    assert bigger.start == (0, 0)
    assert bigger.goal == (5, 5)


def test_resize_shrink_drops_cells_outside_new_grid():
    maze = create_maze(4, walls=[(1, 1)])
    smaller = maze.resize(2)
    assert smaller.shape == (2, 2)
    assert smaller.goal == (1, 1)
    assert smaller.wall_count == 0


def test_resize_frees_new_goal_cell():
    maze = create_maze(6, walls=[(3, 3), (0, 1)])
    smaller = maze.resize(4)
    assert smaller.cells[3, 3] == FREE
    assert smaller.cells[0, 1] == WALL


def test_resize_does_not_modify_original():
    maze = create_maze(4, walls=[(1, 1)])
    maze.resize(6)
    assert maze.shape == (4, 4)


def test_clear_walls():
    maze = create_maze(4, walls=[(1, 1), (2, 0)])
    maze.clear_walls()
    assert maze.wall_count == 0


def test_to_rows_renders_walls_and_path():
    maze = create_maze(3, walls=[(1, 1)])
    rows = maze.to_rows(path=[(0, 0), (0, 1), (0, 2), (1, 2), (2, 2)])
    assert rows == ["S**", ".#*", "..G"]
