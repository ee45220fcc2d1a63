"""Presentation-facing facade over AsyncActionState.

Exposes what a rendering layer binds to a button: the disabled flag, the
``state`` attribute, the label and the icon classes. Rendering and event
wiring stay with the caller.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from src.button.machine import AsyncActionState
from src.button.operation import PendingOperation
from src.button.states import ButtonState
from src.config.settings import ButtonConfig
from src.utils.logging import bind_control, get_logger

logger = get_logger("button.control")

BindOperation = Callable[[PendingOperation], None]
ClickAction = Callable[[BindOperation], Any]


class AsyncButton:
    """A button whose state follows the operation started by its click action."""

    def __init__(
        self,
        config: Optional[ButtonConfig] = None,
        control_id: Optional[str] = None,
        machine: Optional[AsyncActionState] = None,
    ) -> None:
        self.config = config or ButtonConfig()
        self.control_id = control_id
        self.machine = machine or AsyncActionState(control_id=control_id)

    def click(self, action: ClickAction) -> bool:
        """
        Invoke the click action unless an operation is outstanding.

        The action receives a ``bind`` callable; handing it an operation
        starts tracking that operation. An action that never calls ``bind``
        leaves the state untouched.

        Args:
            action: ``action(bind)``

        Returns:
            True if the action was invoked
        """
        with bind_control(self.control_id):
            if self.machine.is_disabled():
                logger.info(
                    "click_ignored",
                    reason="operation in flight",
                    generation=self.machine.generation,
                )
                return False

        action(self.machine.begin)
        return True

    @property
    def state(self) -> ButtonState:
        return self.machine.current_state()

    @property
    def state_attribute(self) -> str:
        """Value for the ``state`` attribute used by styling hooks."""
        return self.machine.current_state().value

    @property
    def disabled(self) -> bool:
        return self.machine.is_disabled()

    @property
    def label(self) -> Optional[str]:
        return self.machine.display_label(self.config.label_variants())

    @property
    def icon_classes(self) -> Optional[str]:
        return self.machine.display_icon(self.config.icon_variants())

    @property
    def error(self) -> Any:
        return self.machine.last_error()

    def __repr__(self) -> str:
        return f"AsyncButton(control_id={self.control_id!r}, state={self.state.name})"
