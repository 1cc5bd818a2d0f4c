"""Greedy path extraction and path utilities."""

from typing import List

from .maze import Maze
from .qtable import QTable
from .types import ACTION_DELTAS, Action, PathResult, Position, apply_action


def extract_path(table: QTable, maze: Maze, max_steps: int = 50) -> PathResult:
    """
    Follow the greedy policy from start towards the goal.

    The rollout stops at the goal, at a cell with no legal moves, when the
    next cell was already visited (the greedy policy is looping), or after
    ``max_steps`` moves. Anything but the goal yields a partial path.
    """
    pos = maze.start
    path: List[Position] = [pos]
    visited = {pos}

    for _ in range(max_steps):
        if pos == maze.goal:
            break

        candidates = maze.valid_actions(pos)
        if not candidates:
            return PathResult(path=path, found=False, reason="stuck")

        action, _ = table.best_action(pos, candidates)
        next_pos = apply_action(pos, action)
        if next_pos in visited:
            return PathResult(path=path, found=False, reason="cycle")

        path.append(next_pos)
        visited.add(next_pos)
        pos = next_pos

    if pos == maze.goal:
        return PathResult(path=path, found=True, reason="goal")
    return PathResult(path=path, found=False, reason="max_steps")


def path_actions(path: List[Position]) -> List[Action]:
    """Actions taken between consecutive positions of a path."""
    delta_to_action = {delta: action for action, delta in ACTION_DELTAS.items()}
    actions = []
    for i in range(1, len(path)):
        delta = (path[i][0] - path[i - 1][0], path[i][1] - path[i - 1][1])
        if delta not in delta_to_action:
            raise ValueError(f"Positions {path[i - 1]} and {path[i]} are not adjacent")
        actions.append(delta_to_action[delta])
    return actions
