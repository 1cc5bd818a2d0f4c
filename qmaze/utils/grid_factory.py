"""Maze factory: empty grids, ASCII layouts and random walls."""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from ..domain.maze import Maze
from ..domain.types import FREE, WALL, MazeConfig, Position
from .rng import SeededRNG


def create_maze(size: int, walls: Iterable[Position] = (),
                goal_reward: float = 10.0, step_penalty: float = -0.1) -> Maze:
    """
    Create a square maze with the given walls.

    Args:
        size: Side length (must be >= 2)
        walls: Wall coordinates; start, goal and out-of-bounds cells are skipped
        goal_reward: Reward for reaching the goal
        step_penalty: Reward for every other move

    Returns:
        New Maze instance

    Raises:
        ValueError: If size < 2
    """
    maze = Maze(MazeConfig(size=size, goal_reward=goal_reward, step_penalty=step_penalty))
    for pos in walls:
        maze.set_wall(pos, True)
    return maze


def maze_from_rows(rows: Sequence[str], **config) -> Maze:
    """
    Build a maze from ASCII rows where '#' marks a wall.

    Every other character is Free. 'S' and 'G' are accepted for readability
    but start and goal are always the top-left and bottom-right corners.

    Raises:
        ValueError: If the layout is not square
    """
    size = len(rows)
    if any(len(row) != size for row in rows):
        raise ValueError("Maze layout must be square")

    cells = np.array([[WALL if ch == "#" else FREE for ch in row] for row in rows], dtype=np.int8)
    return Maze(MazeConfig(size=size, **config), cells)


def add_random_walls(maze: Maze, density: float, rng: Optional[SeededRNG] = None) -> List[Position]:
    """
    Turn a fraction of the Free cells into walls.

    Args:
        maze: Maze to modify
        density: Fraction of all cells to wall (0.0 to 1.0)
        rng: Random number generator to use

    Returns:
        Coordinates that became walls
    """
    if not (0.0 <= density <= 1.0):
        raise ValueError(f"Density must be between 0.0 and 1.0, got {density}")

    rng = rng or SeededRNG()

    candidates = [
        (r, c)
        for r in range(maze.rows)
        for c in range(maze.cols)
        if maze.is_valid((r, c)) and (r, c) not in (maze.start, maze.goal)
    ]
    num_walls = min(int(maze.rows * maze.cols * density), len(candidates))

    wall_coords = rng.sample(candidates, num_walls)
    for pos in wall_coords:
        maze.set_wall(pos, True)
    return wall_coords


def parse_walls(text: str) -> List[Position]:
    """Parse "r,c;r,c" into a list of positions."""
    walls = []
    for item in text.split(";"):
        item = item.strip()
        if not item:
            continue
        parts = item.split(",")
        if len(parts) != 2:
            raise ValueError(f"Invalid wall coordinate: {item!r}")
        walls.append((int(parts[0]), int(parts[1])))
    return walls
