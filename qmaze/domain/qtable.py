"""State-action value table backed by a dense numpy array."""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .types import Action, ALL_ACTIONS, Position


class QTable:
    """Q-values for every (cell, action) pair, stored as a rows x cols x 4 array."""

    def __init__(self, rows: int, cols: int, values: Optional[np.ndarray] = None):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Q-table dimensions must be positive, got {rows}x{cols}")

        if values is None:
            self.values = np.zeros((rows, cols, len(ALL_ACTIONS)), dtype=np.float64)
        else:
            if values.shape != (rows, cols, len(ALL_ACTIONS)):
                raise ValueError(f"Q-value array shape {values.shape} does not match {rows}x{cols}")
            self.values = values.astype(np.float64, copy=True)

    @property
    def shape(self) -> Tuple[int, int]:
        """Grid dimensions (rows, cols) covered by the table."""
        return (self.values.shape[0], self.values.shape[1])

    def get(self, pos: Position, action: Action) -> float:
        """Get Q-value for state-action pair."""
        return float(self.values[pos[0], pos[1], int(action)])

    def set(self, pos: Position, action: Action, value: float) -> None:
        """Set Q-value for state-action pair."""
        self.values[pos[0], pos[1], int(action)] = value

    def best_action(self, pos: Position, candidates: Sequence[Action]) -> Tuple[Action, float]:
        """
        Pick the highest valued action among the candidates.

        Only the candidates are considered, so moves into walls or off the
        grid are never returned. Ties go to the earliest candidate.

        Raises:
            ValueError: If ``candidates`` is empty
        """
        if not candidates:
            raise ValueError(f"No candidate actions at {pos}")

        q_values = self.values[pos[0], pos[1]]
        candidate_values = [q_values[int(action)] for action in candidates]
        # np.argmax returns the first maximum
        best_idx = int(np.argmax(candidate_values))
        return Action(candidates[best_idx]), float(candidate_values[best_idx])

    def max_value(self, pos: Position, candidates: Sequence[Action], goal: Position) -> float:
        """Bootstrap value of a state: 0 at the goal or with no candidates."""
        if pos == goal or not candidates:
            return 0.0
        return self.best_action(pos, candidates)[1]

    def reset(self) -> None:
        """Zero every entry."""
        self.values.fill(0.0)

    def resized(self, rows: int, cols: int) -> "QTable":
        """New table of the given size with the overlapping region copied."""
        table = QTable(rows, cols)
        overlap_r = min(rows, self.shape[0])
        overlap_c = min(cols, self.shape[1])
        table.values[:overlap_r, :overlap_c] = self.values[:overlap_r, :overlap_c]
        return table

    def snapshot(self) -> np.ndarray:
        """Copy of the raw array, safe to hand to a renderer."""
        return self.values.copy()

    def state_values(self) -> np.ndarray:
        """Per-cell maximum over all actions, as used for heatmaps."""
        return self.values.max(axis=2)

    def greedy_actions(self, maze) -> Dict[Position, Action]:
        """Best valid action per learned Free cell, for drawing policy arrows.

        Cells that are walls, the goal, untouched (all zeros) or enclosed are
        omitted.
        """
        arrows: Dict[Position, Action] = {}
        rows, cols = self.shape
        for r in range(rows):
            for c in range(cols):
                pos = (r, c)
                if pos == maze.goal or not maze.is_valid(pos):
                    continue
                if not np.any(self.values[r, c]):
                    continue
                candidates = maze.valid_actions(pos)
                if candidates:
                    arrows[pos] = self.best_action(pos, candidates)[0]
        return arrows

    def __repr__(self) -> str:
        return f"QTable(shape={self.shape})"
