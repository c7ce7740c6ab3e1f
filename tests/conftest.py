"""Shared fixtures for errordoc tests."""

from __future__ import annotations

import logging

import pytest
import structlog

from errordoc.model import ExceptionNode, StackFrame


@pytest.fixture(autouse=True)
def _reset_logging() -> None:  # type: ignore[misc]
    """Restore root logger handlers and level after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level

    yield  # type: ignore[misc]

    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:  # type: ignore[misc]
    yield  # type: ignore[misc]
    structlog.reset_defaults()


@pytest.fixture
def fan_out_tree() -> ExceptionNode:
    """``A`` caused by ``[B, C]``, ``C`` caused by ``[D]``."""
    return ExceptionNode(
        message="A",
        cause=(
            ExceptionNode(message="B"),
            ExceptionNode(message="C", cause=(ExceptionNode(message="D"),)),
        ),
    )


@pytest.fixture
def frame() -> StackFrame:
    return StackFrame(
        filename="handlers.py",
        module="app.handlers",
        function="create_order",
        lineno=42,
    )
