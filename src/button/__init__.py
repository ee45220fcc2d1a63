"""FSM tracking the async action behind a control.

Each control owns one machine. A click starts an operation and the machine
follows it through well-defined states:

    IDLE -> IN_FLIGHT -> RESOLVED
                     \\-> REJECTED

A new ``begin`` from any state returns to IN_FLIGHT and makes the new
operation the only one whose settlement counts. Failures are captured as
data and read back with ``last_error``.

``AsyncButton`` lives in ``src.button.control`` and is not re-exported
here, since it depends on ``src.config``.
"""

from src.button.labels import StateVariants, lookup
from src.button.machine import ActionStats, AsyncActionState
from src.button.operation import as_future, attach, outcome_of
from src.button.states import (
    ButtonState,
    TransitionError,
    TransitionRecord,
    TRANSITIONS,
)

__all__ = [
    # States
    "ButtonState",
    "TransitionError",
    "TransitionRecord",
    "TRANSITIONS",
    # Machine
    "AsyncActionState",
    "ActionStats",
    # Operation helpers
    "as_future",
    "attach",
    "outcome_of",
    # Labels
    "StateVariants",
    "lookup",
]
