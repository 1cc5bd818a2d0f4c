"""Epsilon-greedy action selection."""

from typing import Optional

from .maze import Maze
from .qtable import QTable
from .types import Action, Position
from ..utils.rng import SeededRNG


def select_action(pos: Position, epsilon: float, table: QTable, maze: Maze,
                  rng: SeededRNG) -> Optional[Action]:
    """
    Select an action with an epsilon-greedy policy restricted to legal moves.

    Args:
        pos: Current position
        epsilon: Probability of exploring
        table: Learned Q-values
        maze: Environment providing the legal moves
        rng: Source of randomness; not consulted when epsilon is 0

    Returns:
        The chosen action, or None when no move is possible
    """
    candidates = maze.valid_actions(pos)
    if not candidates:
        return None

    if epsilon > 0.0 and rng.random() < epsilon:
        return rng.choice(candidates)

    return table.best_action(pos, candidates)[0]
