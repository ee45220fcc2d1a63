"""FSM machine implementation for an async action control."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Optional

from src.button.labels import StateVariants, lookup
from src.button.operation import PendingOperation, as_future, attach
from src.button.states import (
    ButtonState,
    TransitionError,
    TransitionRecord,
    can_transition,
)
from src.utils.logging import bind_control, get_logger
from src.utils.result import Result

logger = get_logger("button.machine")

StateListener = Callable[["AsyncActionState", ButtonState, ButtonState], None]


class AsyncActionState:
    """
    Finite State Machine tracking one async action of a control.

    ``begin`` moves the machine to IN_FLIGHT synchronously and observes the
    operation; its settlement later drives RESOLVED or REJECTED. Only the
    operation of the latest ``begin`` is authoritative: settlements of
    superseded operations are tagged with an older generation and ignored.
    Failures are stored and exposed through ``last_error``, never raised.
    """

    def __init__(
        self,
        control_id: Optional[str] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        """
        Initialize the machine in the IDLE state.

        Args:
            control_id: Identifier bound to log events of this machine
            loop: Event loop used to schedule coroutine operations
        """
        self.control_id = control_id
        self._loop = loop

        self._state = ButtonState.IDLE
        self._error: Any = None
        self._result: Any = None

        self._tracked: Optional[asyncio.Future] = None
        self._generation = 0

        self._listeners: list[StateListener] = []

        self.history: list[TransitionRecord] = []
        self.stats = ActionStats()

    # Reads

    def current_state(self) -> ButtonState:
        """Get the current state."""
        return self._state

    def last_error(self) -> Any:
        """Get the failure value of the latest rejected cycle, if any."""
        return self._error

    def last_result(self) -> Any:
        """Get the success value of the latest resolved cycle, if any."""
        return self._result

    def is_disabled(self) -> bool:
        """True while an operation is outstanding."""
        return self._state.is_busy()

    @property
    def generation(self) -> int:
        """Number of ``begin`` calls so far."""
        return self._generation

    @property
    def tracked_operation(self) -> Optional[asyncio.Future]:
        """Future currently observed, None once it settled."""
        return self._tracked

    def display_label(
        self,
        labels: StateVariants | Mapping[Any, Optional[str]],
        default: Optional[str] = None,
    ) -> Optional[str]:
        """
        Look up the label for the current state.

        Args:
            labels: Per-state labels, as StateVariants or a plain mapping
            default: Fallback when the current state has no entry

        Returns:
            Label for the current state, or the fallback
        """
        return lookup(labels, self._state, default)

    def display_icon(
        self,
        icons: StateVariants | Mapping[Any, Optional[str]],
        default: Optional[str] = None,
    ) -> Optional[str]:
        """Look up the icon identifier for the current state."""
        return lookup(icons, self._state, default)

    # Entry point

    def begin(self, operation: PendingOperation) -> None:
        """
        Start tracking a pending operation.

        The machine is IN_FLIGHT when this returns. Settlement callbacks run
        later on the event loop, never inside this call.

        Args:
            operation: Future, task, coroutine or other awaitable

        Raises:
            TypeError: If operation is not awaitable (state is unchanged)
        """
        future = as_future(operation, self._loop)

        with bind_control(self.control_id):
            if self._state.is_busy():
                self.stats.superseded += 1
                logger.info(
                    "operation_superseded",
                    generation=self._generation,
                )

            self._generation += 1
            generation = self._generation

            self._tracked = future
            self._error = None
            self._result = None
            self.stats.begun += 1

            self._transition_to(ButtonState.IN_FLIGHT)
            logger.debug("operation_begun", generation=generation)

        attach(future, self._on_settled, generation)

    async def wait_settled(self) -> ButtonState:
        """
        Wait until the latest tracked operation has settled.

        Follows re-entrant ``begin`` calls made while waiting. Never returns
        if the tracked operation never settles.

        Returns:
            The settled state
        """
        while self._state.is_busy() and self._tracked is not None:
            # Done callbacks run in registration order, so the machine's own
            # callback has fired by the time this wait completes.
            await asyncio.wait({self._tracked})
        return self._state

    # Observers

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener called after every state change.

        Args:
            listener: ``listener(machine, old_state, new_state)``

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Internals

    def _on_settled(self, generation: int, outcome: Result[Any, BaseException]) -> None:
        """Apply a settlement if it belongs to the current generation."""
        with bind_control(self.control_id):
            if generation != self._generation:
                self.stats.stale_settlements += 1
                logger.debug(
                    "stale_settlement_ignored",
                    generation=generation,
                    current_generation=self._generation,
                    succeeded=outcome.is_ok(),
                )
                return

            self._tracked = None

            if outcome.is_ok():
                self._result = outcome.unwrap()
                self.stats.resolved += 1
                self._transition_to(ButtonState.RESOLVED)
            else:
                self._error = outcome.unwrap_err()
                self.stats.rejected += 1
                logger.info(
                    "operation_rejected",
                    generation=generation,
                    error=repr(self._error),
                    error_type=type(self._error).__name__,
                )
                self._transition_to(ButtonState.REJECTED)

    def _transition_to(self, new_state: ButtonState) -> None:
        """
        Move to a new state and notify listeners.

        Raises:
            TransitionError: If the transition is not in TRANSITIONS
        """
        old_state = self._state
        if not can_transition(old_state, new_state):
            raise TransitionError(old_state, new_state)

        self._state = new_state
        self.history.append(TransitionRecord(
            from_state=old_state,
            to_state=new_state,
            generation=self._generation,
        ))

        logger.info(
            "state_transition",
            from_state=old_state.name,
            to_state=new_state.name,
            generation=self._generation,
        )

        for listener in list(self._listeners):
            try:
                listener(self, old_state, new_state)
            except Exception as e:
                logger.warning(
                    "listener_failed",
                    listener=getattr(listener, "__name__", repr(listener)),
                    error=str(e),
                )

    def __repr__(self) -> str:
        return (
            f"AsyncActionState(state={self._state.name}, "
            f"generation={self._generation})"
        )


class ActionStats:
    """Counters for the cycles a machine has run."""

    def __init__(self) -> None:
        self.begun: int = 0
        self.resolved: int = 0
        self.rejected: int = 0
        self.superseded: int = 0
        self.stale_settlements: int = 0

    @property
    def settled(self) -> int:
        """Cycles that reached a terminal state."""
        return self.resolved + self.rejected

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "begun": self.begun,
            "resolved": self.resolved,
            "rejected": self.rejected,
            "superseded": self.superseded,
            "stale_settlements": self.stale_settlements,
        }
