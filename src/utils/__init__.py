"""Utility modules for async-button."""

from src.utils.logging import (
    bind_control,
    configure_logging,
    get_control_id,
    get_logger,
)
from src.utils.result import ConfigError, Err, Ok, Result, ResultError

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "get_control_id",
    "bind_control",
    # Result
    "Ok",
    "Err",
    "Result",
    "ResultError",
    "ConfigError",
]
