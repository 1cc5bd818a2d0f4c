"""Grid environment: maze layout, legal moves and step rewards."""

import logging
from typing import List, Optional, Tuple

import numpy as np

from .types import (
    Action, ALL_ACTIONS, FREE, WALL, MazeConfig, Position, apply_action
)

logger = logging.getLogger(__name__)


class Maze:
    """Square grid of Free and Wall cells with a fixed start and goal.

    The start sits in the top-left corner and the goal in the bottom-right
    corner. Both are always Free and cannot be toggled.
    """

    def __init__(self, config: Optional[MazeConfig] = None, cells: Optional[np.ndarray] = None):
        self.config = config or MazeConfig()
        self.config.validate()

        size = self.config.size
        if cells is None:
            cells = np.full((size, size), FREE, dtype=np.int8)
        elif cells.shape != (size, size):
            raise ValueError(f"Cell array shape {cells.shape} does not match size {size}")

        self.cells = cells.astype(np.int8, copy=True)
        self.start: Position = (0, 0)
        self.goal: Position = (size - 1, size - 1)
        self.cells[self.start] = FREE
        self.cells[self.goal] = FREE

    @property
    def rows(self) -> int:
        return self.cells.shape[0]

    @property
    def cols(self) -> int:
        return self.cells.shape[1]

    @property
    def size(self) -> int:
        return self.config.size

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def wall_count(self) -> int:
        """Number of Wall cells currently in the grid."""
        return int(np.count_nonzero(self.cells == WALL))

    def in_bounds(self, pos: Position) -> bool:
        r, c = pos
        return 0 <= r < self.rows and 0 <= c < self.cols

    def is_wall(self, pos: Position) -> bool:
        return self.in_bounds(pos) and self.cells[pos] == WALL

    def is_valid(self, pos: Position) -> bool:
        """Check if the position is inside the grid and Free."""
        return self.in_bounds(pos) and self.cells[pos] == FREE

    def valid_actions(self, pos: Position) -> List[Action]:
        """Actions from ``pos`` that land on a valid cell, in enumeration order.

        A Free cell enclosed by walls yields an empty list.
        """
        return [action for action in ALL_ACTIONS if self.is_valid(apply_action(pos, action))]

    def reward_for(self, pos: Position) -> float:
        """Reward for arriving at ``pos``."""
        if pos == self.goal:
            return self.config.goal_reward
        return self.config.step_penalty

    def step(self, pos: Position, action: Action) -> Tuple[Position, float]:
        """
        Apply an action and return the resulting position and reward.

        Args:
            pos: Current position
            action: Move to apply; callers pick it from ``valid_actions``

        Returns:
            Tuple of (next_position, reward)
        """
        next_pos = apply_action(pos, action)
        return next_pos, self.reward_for(next_pos)

    # Editing

    def toggle_wall(self, pos: Position) -> bool:
        """
        Flip a cell between Free and Wall.

        Start, goal and out-of-bounds positions are left unchanged.

        Returns:
            True if the cell was flipped
        """
        pos = tuple(pos)
        if pos == self.start or pos == self.goal or not self.in_bounds(pos):
            logger.debug("Ignoring wall toggle at %s", pos)
            return False

        self.cells[pos] = WALL if self.cells[pos] == FREE else FREE
        return True

    def set_wall(self, pos: Position, wall: bool = True) -> bool:
        """Set a cell's kind explicitly. Same restrictions as ``toggle_wall``."""
        pos = tuple(pos)
        if self.is_wall(pos) == wall:
            return False
        return self.toggle_wall(pos)

    def clear_walls(self) -> None:
        """Make every cell Free."""
        self.cells.fill(FREE)

    def resize(self, new_size: int) -> "Maze":
        """
        Build a maze of a new size carrying over the overlapping top-left square.

        Start and goal are reset to the corners of the new grid and forced
        Free. The caller owns the matching Q-table reallocation.
        """
        new_config = MazeConfig(
            size=new_size,
            goal_reward=self.config.goal_reward,
            step_penalty=self.config.step_penalty,
        )
        new_config.validate()

        cells = np.full((new_size, new_size), FREE, dtype=np.int8)
        overlap = min(self.size, new_size)
        cells[:overlap, :overlap] = self.cells[:overlap, :overlap]
        return Maze(new_config, cells)

    def copy(self) -> "Maze":
        return Maze(self.config, self.cells)

    def walls(self) -> List[Position]:
        """Coordinates of all Wall cells in row-major order."""
        return [(int(r), int(c)) for r, c in np.argwhere(self.cells == WALL)]

    def to_rows(self, path: Optional[List[Position]] = None) -> List[str]:
        """ASCII rendering: '#' wall, '.' free, 'S' start, 'G' goal, '*' path."""
        on_path = set(path or [])
        rows = []
        for r in range(self.rows):
            chars = []
            for c in range(self.cols):
                pos = (r, c)
                if pos == self.start:
                    chars.append("S")
                elif pos == self.goal:
                    chars.append("G")
                elif self.cells[pos] == WALL:
                    chars.append("#")
                elif pos in on_path:
                    chars.append("*")
                else:
                    chars.append(".")
            rows.append("".join(chars))
        return rows

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Maze):
            return NotImplemented
        return (
            self.config == other.config
            and self.start == other.start
            and self.goal == other.goal
            and np.array_equal(self.cells, other.cells)
        )

    def __repr__(self) -> str:
        return f"Maze(size={self.size}, walls={self.wall_count})"
