"""Command-line trainer: train on a maze and print the learned route."""

import argparse
import logging
import sys

from .domain.qlearning import QLearningTrainer
from .domain.types import ACTION_ARROWS, MazeConfig, TrainingConfig
from .domain.path import path_actions
from .utils.grid_factory import add_random_walls, parse_walls
from .utils.rng import SeededRNG


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qmaze", description="Tabular Q-learning on a grid maze")
    parser.add_argument("--size", type=int, default=6, help="Maze side length")
    parser.add_argument("--episodes", type=int, default=200, help="Episodes per session")
    parser.add_argument("--sessions", type=int, default=1, help="Number of training sessions")
    parser.add_argument("--alpha", type=float, default=0.3, help="Learning rate")
    parser.add_argument("--gamma", type=float, default=0.9, help="Discount factor")
    parser.add_argument("--epsilon", type=float, default=0.3, help="Initial exploration rate per session")
    parser.add_argument("--max-steps", type=int, default=100, help="Step cap per episode")
    parser.add_argument("--walls", type=str, default="", help='Wall cells as "r,c;r,c"')
    parser.add_argument("--wall-density", type=float, default=0.0, help="Fraction of random walls to add")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = TrainingConfig(
            alpha=args.alpha,
            gamma=args.gamma,
            epsilon=args.epsilon,
            episodes=args.episodes,
            max_steps_per_episode=args.max_steps,
        )
        config.validate()
        rng = SeededRNG(args.seed)
        trainer = QLearningTrainer(MazeConfig(size=args.size), config, rng)
        for pos in parse_walls(args.walls):
            trainer.maze.set_wall(pos, True)
        if args.wall_density > 0:
            add_random_walls(trainer.maze, args.wall_density, rng)
    except ValueError as e:
        print(f"Invalid arguments: {e}", file=sys.stderr)
        return 2

    print("Q-Learning Maze Trainer")
    print("=" * 40)
    print(f"Grid: {trainer.maze.size}x{trainer.maze.size}, walls: {trainer.maze.wall_count}")
    print(f"Start: {trainer.maze.start} -> Goal: {trainer.maze.goal}")
    print(f"alpha={config.alpha} gamma={config.gamma} epsilon={config.epsilon} episodes={config.episodes}")

    try:
        for session in range(args.sessions):
            result = trainer.train(config)
            best = result.best_reward
            print(f"\nSession {session + 1}:")
            print(f"   Episodes: {result.total_episodes}")
            print(f"   Success rate: {result.success_rate:.1%}")
            print(f"   Average reward: {result.average_reward:.2f}")
            print(f"   Best reward: {best:.2f}" if best is not None else "   Best reward: n/a")
            print(f"   Average steps: {result.average_steps:.1f}")
            print(f"   Final epsilon: {result.final_epsilon:.3f}")
    except KeyboardInterrupt:
        print("\nTraining interrupted by user")
        return 1

    path = trainer.extract_path()
    print()
    if path.found:
        moves = "".join(ACTION_ARROWS[a] for a in path_actions(path.path))
        print(f"Path found: {path.steps} steps ({moves})")
    else:
        print(f"No path found ({path.reason} after {path.steps} steps)")
    for row in trainer.maze.to_rows(path.path):
        print(row)

    return 0 if path.found else 1


if __name__ == "__main__":
    sys.exit(main())
