"""Finite State Machine for training session states."""

from enum import Enum, auto
from typing import Dict, Callable, Optional


class SessionState(Enum):
    """States of the maze controller."""
    IDLE = auto()
    TRAINING = auto()
    TESTING = auto()


class SessionStateMachine:
    """State machine guarding which operations the controller may run."""

    def __init__(self):
        self.current_state = SessionState.IDLE
        self._enter_callbacks: Dict[SessionState, Callable[[Optional[Dict]], None]] = {}

        # Training and path extraction both return to IDLE and never overlap
        self._valid_transitions = {
            SessionState.IDLE: {SessionState.TRAINING, SessionState.TESTING},
            SessionState.TRAINING: {SessionState.IDLE},
            SessionState.TESTING: {SessionState.IDLE},
        }

    def on_state_enter(self, state: SessionState, callback: Callable[[Optional[Dict]], None]):
        """Register callback for state entry."""
        self._enter_callbacks[state] = callback

    def can_transition(self, to_state: SessionState) -> bool:
        """Check if transition to target state is valid."""
        return to_state in self._valid_transitions.get(self.current_state, set())

    def transition(self, to_state: SessionState, context: Optional[Dict] = None) -> bool:
        """Attempt to transition to target state."""
        if not self.can_transition(to_state):
            return False

        self.current_state = to_state

        if to_state in self._enter_callbacks:
            self._enter_callbacks[to_state](context)

        return True

    def start_training(self, context: Optional[Dict] = None) -> bool:
        return self.transition(SessionState.TRAINING, context)

    def start_testing(self, context: Optional[Dict] = None) -> bool:
        return self.transition(SessionState.TESTING, context)

    def reset_to_idle(self, context: Optional[Dict] = None) -> bool:
        return self.transition(SessionState.IDLE, context)

    def is_idle(self) -> bool:
        return self.current_state == SessionState.IDLE

    def is_training(self) -> bool:
        return self.current_state == SessionState.TRAINING

    def is_active(self) -> bool:
        """Check if a session or a path extraction is in progress."""
        return self.current_state in {SessionState.TRAINING, SessionState.TESTING}

    def get_state_description(self) -> str:
        """Get human-readable state description."""
        descriptions = {
            SessionState.IDLE: "Ready",
            SessionState.TRAINING: "Training...",
            SessionState.TESTING: "Following learned policy",
        }
        return descriptions.get(self.current_state, "Unknown state")
