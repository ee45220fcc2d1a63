"""Tests for AsyncActionState."""

import asyncio

import pytest

from src.button import AsyncActionState, ButtonState, TransitionError

LABELS = {"idle": "Go", "inFlight": "Working", "resolved": "Done", "rejected": "Failed"}


class TestInitialState:
    """A fresh machine is idle."""

    def test_starts_idle(self):
        """IDLE, enabled, no error, generation 0."""
        machine = AsyncActionState()

        assert machine.current_state() is ButtonState.IDLE
        assert machine.is_disabled() is False
        assert machine.last_error() is None
        assert machine.generation == 0
        assert machine.tracked_operation is None

    def test_reads_are_idempotent(self):
        """Repeated reads without a begin return the same values."""
        machine = AsyncActionState()

        assert machine.current_state() is machine.current_state()
        assert machine.last_error() is machine.last_error()

    def test_begin_rejects_non_awaitable(self):
        """A non-awaitable raises TypeError and leaves the machine untouched."""
        machine = AsyncActionState()

        with pytest.raises(TypeError):
            machine.begin(42)

        assert machine.current_state() is ButtonState.IDLE
        assert machine.generation == 0
        assert machine.history == []

    def test_settled_state_cannot_be_entered_from_idle(self):
        """The transition table guards against skipping IN_FLIGHT."""
        machine = AsyncActionState()

        with pytest.raises(TransitionError):
            machine._transition_to(ButtonState.RESOLVED)

        assert machine.current_state() is ButtonState.IDLE


class TestSettlement:
    """A single begin/settle cycle."""

    @pytest.mark.asyncio
    async def test_begin_is_synchronously_in_flight(self, new_future):
        """begin transitions before returning."""
        machine = AsyncActionState()
        op = new_future()

        machine.begin(op)

        assert machine.current_state() is ButtonState.IN_FLIGHT
        assert machine.is_disabled() is True
        assert machine.tracked_operation is op
        assert machine.generation == 1

    @pytest.mark.asyncio
    async def test_success_resolves(self, new_future):
        """A successful operation ends in RESOLVED and re-enables."""
        machine = AsyncActionState()
        op = new_future()
        machine.begin(op)

        op.set_result("payload")
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.RESOLVED
        assert machine.is_disabled() is False
        assert machine.last_result() == "payload"
        assert machine.last_error() is None
        assert machine.tracked_operation is None

    @pytest.mark.asyncio
    async def test_failure_rejects_with_reason(self, new_future):
        """A failed operation ends in REJECTED with the reason captured."""
        machine = AsyncActionState()
        op = new_future()
        reason = ValueError("boom")
        machine.begin(op)

        op.set_exception(reason)
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.REJECTED
        assert machine.last_error() is reason
        assert machine.is_disabled() is False

    @pytest.mark.asyncio
    async def test_already_settled_operation_is_not_applied_synchronously(self, new_future):
        """Even a done future settles the machine on a later loop iteration."""
        machine = AsyncActionState()
        op = new_future()
        op.set_result(1)

        machine.begin(op)
        assert machine.current_state() is ButtonState.IN_FLIGHT

        await asyncio.sleep(0)
        assert machine.current_state() is ButtonState.RESOLVED

    @pytest.mark.asyncio
    async def test_coroutine_operation(self):
        """Coroutines are scheduled and tracked like futures."""
        machine = AsyncActionState()

        async def work():
            await asyncio.sleep(0)
            return 5

        machine.begin(work())
        assert machine.current_state() is ButtonState.IN_FLIGHT

        state = await machine.wait_settled()

        assert state is ButtonState.RESOLVED
        assert machine.last_result() == 5

    @pytest.mark.asyncio
    async def test_raising_coroutine_is_captured_not_raised(self):
        """Exceptions from the operation become data."""
        machine = AsyncActionState()

        async def failing():
            raise RuntimeError("nope")

        machine.begin(failing())
        state = await machine.wait_settled()

        assert state is ButtonState.REJECTED
        assert isinstance(machine.last_error(), RuntimeError)
        assert str(machine.last_error()) == "nope"

    @pytest.mark.asyncio
    async def test_cancelled_operation_rejects(self, new_future):
        """Cancellation counts as a failure."""
        machine = AsyncActionState()
        op = new_future()
        machine.begin(op)

        op.cancel()
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.REJECTED
        assert isinstance(machine.last_error(), asyncio.CancelledError)

    @pytest.mark.asyncio
    async def test_never_settling_operation_stays_in_flight(self, new_future):
        """No timeout: the machine waits indefinitely."""
        machine = AsyncActionState()
        machine.begin(new_future())

        for _ in range(5):
            await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.IN_FLIGHT
        assert machine.is_disabled() is True


class TestRestart:
    """begin after a settled cycle or while in flight."""

    @pytest.mark.asyncio
    async def test_begin_after_rejection_clears_error(self, new_future):
        """A new cycle drops the previous error."""
        machine = AsyncActionState()
        first = new_future()
        machine.begin(first)
        first.set_exception(ValueError("old"))
        await asyncio.sleep(0)
        assert machine.last_error() is not None

        machine.begin(new_future())

        assert machine.current_state() is ButtonState.IN_FLIGHT
        assert machine.last_error() is None

    @pytest.mark.asyncio
    async def test_error_retained_until_next_begin(self, new_future):
        """Reads after a rejection keep returning the same error."""
        machine = AsyncActionState()
        op = new_future()
        reason = KeyError("k")
        machine.begin(op)
        op.set_exception(reason)
        await asyncio.sleep(0)

        await asyncio.sleep(0)

        assert machine.last_error() is reason
        assert machine.last_error() is reason

    @pytest.mark.asyncio
    async def test_reentrant_begin_keeps_in_flight(self, new_future):
        """begin while in flight stays in flight and bumps the generation."""
        machine = AsyncActionState()
        machine.begin(new_future())
        op2 = new_future()

        machine.begin(op2)

        assert machine.current_state() is ButtonState.IN_FLIGHT
        assert machine.tracked_operation is op2
        assert machine.generation == 2
        assert machine.stats.superseded == 1

    @pytest.mark.asyncio
    async def test_superseded_settlement_is_ignored(self, new_future):
        """Only the latest operation drives the terminal state."""
        machine = AsyncActionState()
        op1 = new_future()
        op2 = new_future()
        machine.begin(op1)
        machine.begin(op2)

        op2.set_result("second")
        await asyncio.sleep(0)
        assert machine.current_state() is ButtonState.RESOLVED

        op1.set_exception(ValueError("late"))
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.RESOLVED
        assert machine.last_error() is None
        assert machine.last_result() == "second"
        assert machine.stats.stale_settlements == 1

    @pytest.mark.asyncio
    async def test_superseded_settlement_before_current_is_ignored(self, new_future):
        """An old operation settling first does not end the new cycle."""
        machine = AsyncActionState()
        op1 = new_future()
        op2 = new_future()
        machine.begin(op1)
        machine.begin(op2)

        op1.set_result("first")
        await asyncio.sleep(0)
        assert machine.current_state() is ButtonState.IN_FLIGHT

        op2.set_exception(ValueError("second failed"))
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.REJECTED
        assert str(machine.last_error()) == "second failed"
        assert machine.last_result() is None

    @pytest.mark.asyncio
    async def test_wait_settled_follows_reentrant_begin(self, new_future):
        """wait_settled returns once the newest operation settles."""
        machine = AsyncActionState()
        op1 = new_future()
        op2 = new_future()
        machine.begin(op1)

        waiter = asyncio.ensure_future(machine.wait_settled())
        await asyncio.sleep(0)
        machine.begin(op2)
        op1.set_result(None)
        await asyncio.sleep(0)
        assert not waiter.done()

        op2.set_result("ok")
        state = await waiter

        assert state is ButtonState.RESOLVED


class TestScenario:
    """End-to-end observable sequence."""

    @pytest.mark.asyncio
    async def test_idle_in_flight_resolved_sequence(self):
        """States go IDLE -> IN_FLIGHT -> RESOLVED, disabled False -> True -> False."""
        machine = AsyncActionState()
        states = [machine.current_state()]
        disabled = [machine.is_disabled()]

        def record(m, old, new):
            states.append(new)
            disabled.append(m.is_disabled())

        machine.subscribe(record)

        async def delayed():
            await asyncio.sleep(0.01)
            return "done"

        machine.begin(delayed())
        await machine.wait_settled()

        assert states == [ButtonState.IDLE, ButtonState.IN_FLIGHT, ButtonState.RESOLVED]
        assert disabled == [False, True, False]
        assert [(r.from_state, r.to_state) for r in machine.history] == [
            (ButtonState.IDLE, ButtonState.IN_FLIGHT),
            (ButtonState.IN_FLIGHT, ButtonState.RESOLVED),
        ]
        assert machine.stats.to_dict() == {
            "begun": 1,
            "resolved": 1,
            "rejected": 0,
            "superseded": 0,
            "stale_settlements": 0,
        }


class TestListeners:
    """subscribe and unsubscribe."""

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, new_future):
        """An unsubscribed listener is not called again."""
        machine = AsyncActionState()
        calls = []
        unsubscribe = machine.subscribe(lambda m, old, new: calls.append(new))

        machine.begin(new_future())
        unsubscribe()
        machine.begin(new_future())

        assert calls == [ButtonState.IN_FLIGHT]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_machine(self, new_future):
        """Listener errors are logged; other listeners still run."""
        machine = AsyncActionState()
        calls = []

        def broken(m, old, new):
            raise RuntimeError("listener bug")

        machine.subscribe(broken)
        machine.subscribe(lambda m, old, new: calls.append(new))
        op = new_future()

        machine.begin(op)
        op.set_result(None)
        await asyncio.sleep(0)

        assert machine.current_state() is ButtonState.RESOLVED
        assert calls == [ButtonState.IN_FLIGHT, ButtonState.RESOLVED]


class TestDisplayLookup:
    """display_label and display_icon."""

    def test_label_when_idle(self):
        """Idle picks the idle entry."""
        machine = AsyncActionState()

        assert machine.display_label(LABELS, default="Go") == "Go"

    @pytest.mark.asyncio
    async def test_label_follows_state(self, new_future):
        """Each state picks its own entry."""
        machine = AsyncActionState()
        op = new_future()

        machine.begin(op)
        assert machine.display_label(LABELS, default="Go") == "Working"

        op.set_exception(ValueError())
        await asyncio.sleep(0)
        assert machine.display_label(LABELS, default="Go") == "Failed"

    @pytest.mark.asyncio
    async def test_label_falls_back_to_default(self, new_future):
        """A state without an entry returns the default."""
        machine = AsyncActionState()
        machine.begin(new_future())

        assert machine.display_label({"idle": "Go"}, default="Go") == "Go"

    def test_label_with_unknown_key_falls_back(self):
        """Keys that name no state are skipped."""
        machine = AsyncActionState()

        assert machine.display_label({"inFlight": "Working", "hover": "x"}, default="Go") == "Go"

    @pytest.mark.asyncio
    async def test_icon_lookup(self, new_future):
        """Icons use the same lookup contract."""
        machine = AsyncActionState()
        icons = {"executing": "spinner", "resolved": "check"}

        assert machine.display_icon(icons, default="none") == "none"

        op = new_future()
        machine.begin(op)
        assert machine.display_icon(icons, default="none") == "spinner"

        op.set_result(None)
        await asyncio.sleep(0)
        assert machine.display_icon(icons) == "check"
