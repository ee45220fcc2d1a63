"""FSM state definitions for an async action control."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ButtonState(Enum):
    """States of an async action control.

    The value is the state attribute exposed to styling hooks, e.g.
    ``button[state=resolved]``.
    """

    # Initial state, ready to be clicked
    IDLE = "default"

    # The bound operation was started and has not settled yet
    IN_FLIGHT = "executing"

    # Terminal for the current cycle
    RESOLVED = "resolved"
    REJECTED = "rejected"

    def is_settled(self) -> bool:
        """Check if this state ends a cycle."""
        return self in (ButtonState.RESOLVED, ButtonState.REJECTED)

    def is_busy(self) -> bool:
        """Check if an operation is outstanding."""
        return self is ButtonState.IN_FLIGHT

    @classmethod
    def parse(cls, name: str) -> ButtonState:
        """
        Resolve a state from its enum name, attribute value or alias.

        Args:
            name: e.g. ``"IN_FLIGHT"``, ``"executing"`` or ``"inFlight"``

        Returns:
            Matching ButtonState

        Raises:
            ValueError: If the name matches no state
        """
        if isinstance(name, cls):
            return name

        key = str(name).strip()
        if key in cls.__members__:
            return cls[key]

        folded = key.replace("-", "").replace("_", "").lower()
        for state in cls:
            if folded in (state.value, state.name.replace("_", "").lower()):
                return state
        if folded in _ALIASES:
            return _ALIASES[folded]

        raise ValueError(f"Unknown button state: {name!r}")


_ALIASES: dict[str, ButtonState] = {
    "idle": ButtonState.IDLE,
    "inflight": ButtonState.IN_FLIGHT,
    "pending": ButtonState.IN_FLIGHT,
}


# Valid state transitions
TRANSITIONS: dict[ButtonState, set[ButtonState]] = {
    ButtonState.IDLE: {ButtonState.IN_FLIGHT},
    # Re-entrant begin restarts tracking without leaving IN_FLIGHT
    ButtonState.IN_FLIGHT: {
        ButtonState.IN_FLIGHT,
        ButtonState.RESOLVED,
        ButtonState.REJECTED,
    },
    ButtonState.RESOLVED: {ButtonState.IN_FLIGHT},
    ButtonState.REJECTED: {ButtonState.IN_FLIGHT},
}


class TransitionError(Exception):
    """Invalid state transition."""

    def __init__(self, from_state: ButtonState, to_state: ButtonState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid transition: {from_state.name} -> {to_state.name}"
        )


def can_transition(from_state: ButtonState, to_state: ButtonState) -> bool:
    """Check if a transition is listed in TRANSITIONS."""
    return to_state in TRANSITIONS.get(from_state, set())


@dataclass(frozen=True)
class TransitionRecord:
    """One entry in a machine's transition history."""

    from_state: ButtonState
    to_state: ButtonState
    generation: int
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        """Convert to dictionary for logging or inspection."""
        return {
            "from_state": self.from_state.name,
            "to_state": self.to_state.name,
            "generation": self.generation,
            "at": self.at.isoformat(),
        }
