"""Shared fixtures for async-button tests."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Callable

import pytest

from src.utils.logging import configure_logging


@pytest.fixture
def new_future() -> Callable[[], asyncio.Future]:
    """Factory for pending futures bound to the running loop."""

    def _make() -> asyncio.Future:
        return asyncio.get_running_loop().create_future()

    return _make


@pytest.fixture
def json_logs():
    """Route log output to a buffer; returns a reader for parsed events."""
    stream = io.StringIO()
    configure_logging(level="debug", format_type="json", stream=stream)

    def _read() -> list[dict]:
        return [
            json.loads(line)
            for line in stream.getvalue().splitlines()
            if line.strip()
        ]

    yield _read

    configure_logging()
