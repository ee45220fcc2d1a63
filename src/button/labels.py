"""Per-state label and icon lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from src.button.states import ButtonState


@dataclass(frozen=True)
class StateVariants:
    """Maps each ButtonState to a presentation value, with a fallback.

    A missing or ``None`` entry falls back to ``default``; an empty string
    is a real value.
    """

    values: Mapping[ButtonState, str] = field(default_factory=dict)
    default: Optional[str] = None

    def for_state(self, state: ButtonState) -> Optional[str]:
        """Return the value for ``state`` or the default."""
        value = self.values.get(state)
        if value is None:
            return self.default
        return value

    @classmethod
    def from_mapping(
        cls,
        data: Optional[Mapping[Any, Optional[str]]],
        default: Optional[str] = None,
        strict: bool = True,
    ) -> StateVariants:
        """
        Build variants from a mapping keyed by state, state name or alias.

        Args:
            data: e.g. ``{"idle": "Go", "inFlight": "Working"}``
            default: Fallback for states without an entry
            strict: Reject keys that name no state; otherwise skip them

        Raises:
            ValueError: If strict and a key names no known state
        """
        values: dict[ButtonState, str] = {}
        for key, value in (data or {}).items():
            if value is None:
                continue
            try:
                state = ButtonState.parse(key)
            except ValueError:
                if strict:
                    raise
                continue
            values[state] = value
        return cls(values=values, default=default)


def lookup(
    variants: StateVariants | Mapping[Any, Optional[str]],
    state: ButtonState,
    default: Optional[str] = None,
) -> Optional[str]:
    """Resolve the value for ``state`` from variants or a plain mapping.

    An explicit ``default`` overrides the default carried by ``variants``.
    Mapping keys that name no state are ignored.
    """
    if not isinstance(variants, StateVariants):
        variants = StateVariants.from_mapping(variants, default, strict=False)
    elif default is not None:
        variants = StateVariants(values=variants.values, default=default)
    return variants.for_state(state)
