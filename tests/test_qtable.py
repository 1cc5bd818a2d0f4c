import numpy as np
import pytest

from qmaze.domain.qtable import QTable
from qmaze.domain.types import Action
from qmaze.utils.grid_factory import create_maze


def test_new_table_is_zero():
    table = QTable(3, 4)
    assert table.shape == (3, 4)
    assert table.values.shape == (3, 4, 4)
    assert not np.any(table.values)


def test_get_and_set():
    table = QTable(3, 3)
    table.set((1, 2), Action.LEFT, 2.5)
    assert table.get((1, 2), Action.LEFT) == 2.5
    assert table.get((1, 2), Action.RIGHT) == 0.0


def test_best_action_only_considers_candidates():
    table = QTable(3, 3)
    table.set((1, 1), Action.UP, 5.0)
    table.set((1, 1), Action.DOWN, 1.0)
    table.set((1, 1), Action.RIGHT, 2.0)
    assert table.best_action((1, 1), [Action.DOWN, Action.RIGHT]) == (Action.RIGHT, 2.0)


def test_best_action_with_all_negative_candidates():
    table = QTable(3, 3)
    table.set((0, 0), Action.DOWN, -3.0)
    table.set((0, 0), Action.RIGHT, -1.0)
    # UP and LEFT hold 0 but are not candidates
    assert table.best_action((0, 0), [Action.DOWN, Action.RIGHT]) == (Action.RIGHT, -1.0)


def test_best_action_tie_goes_to_first_candidate():
    table = QTable(3, 3)
    assert table.best_action((1, 1), [Action.LEFT, Action.RIGHT])[0] == Action.LEFT
    assert table.best_action((1, 1), [Action.UP, Action.DOWN, Action.RIGHT])[0] == Action.UP


def test_best_action_without_candidates_raises():
    with pytest.raises(ValueError):
        QTable(2, 2).best_action((0, 0), [])


def test_max_value_is_zero_at_goal():
    table = QTable(3, 3)
    goal = (2, 2)
    for action in Action:
        table.set(goal, action, 99.0)
    assert table.max_value(goal, [Action.UP, Action.LEFT], goal) == 0.0


def test_max_value_without_candidates_is_zero():
    table = QTable(3, 3)
    table.set((1, 1), Action.UP, -4.0)
    assert table.max_value((1, 1), [], (2, 2)) == 0.0


def test_max_value_uses_candidates():
    table = QTable(3, 3)
    table.set((1, 1), Action.UP, 7.0)
    table.set((1, 1), Action.DOWN, 3.0)
    assert table.max_value((1, 1), [Action.DOWN, Action.LEFT], (2, 2)) == 3.0


def test_resized_copies_overlap_and_zero_fills():
    table = QTable(4, 4)
    table.set((1, 1), Action.DOWN, 1.5)
    table.set((3, 3), Action.UP, 2.0)

    bigger = table.resized(6, 6)
    assert bigger.shape == (6, 6)
    assert bigger.get((1, 1), Action.DOWN) == 1.5
    assert bigger.get((3, 3), Action.UP) == 2.0
    assert not np.any(bigger.values[4:, :, :])

    smaller = table.resized(2, 2)
    assert smaller.shape == (2, 2)
    assert smaller.get((1, 1), Action.DOWN) == 1.5


def test_reset_and_snapshot():
    table = QTable(2, 2)
    table.set((0, 0), Action.RIGHT, 1.0)
    snap = table.snapshot()
    table.reset()
    assert snap[0, 0, Action.RIGHT] == 1.0
    assert not np.any(table.values)


def test_state_values_is_max_per_cell():
    table = QTable(2, 2)
    table.set((0, 1), Action.DOWN, 4.0)
    table.set((0, 1), Action.LEFT, -1.0)
    values = table.state_values()
    assert values.shape == (2, 2)
    assert values[0, 1] == 4.0
    assert values[1, 0] == 0.0


def test_greedy_actions_skip_untouched_walls_and_goal():
    maze = create_maze(3, walls=[(1, 1)])
    table = QTable(3, 3)
    table.set((0, 0), Action.RIGHT, 1.0)
    table.set((1, 1), Action.DOWN, 1.0)
    table.set((2, 2), Action.UP, 1.0)
    assert table.greedy_actions(maze) == {(0, 0): Action.RIGHT}
