"""async-button: lifecycle state machine for async action controls."""

__version__ = "0.1.0"
