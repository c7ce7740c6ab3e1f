"""Deterministic grouping keys for exception trees."""

from __future__ import annotations

import hashlib
from collections.abc import Iterator, Mapping
from typing import Any

from errordoc.model import ExceptionNode, StackFrame


def _walk(node: ExceptionNode) -> Iterator[ExceptionNode]:
    """Yield *node* and its causes in flatten (pre-order) order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.cause))


def _frame_parts(frame: Any) -> tuple[str, str] | None:
    if isinstance(frame, StackFrame):
        if frame.exclude_from_grouping:
            return None
        return frame.module, frame.function
    if isinstance(frame, Mapping):
        if frame.get("exclude_from_grouping"):
            return None
        return str(frame.get("module", "")), str(frame.get("function", ""))
    return None


def compute_grouping_key(node: ExceptionNode) -> str:
    """Return a hex SHA-1 digest identifying the shape of *node*'s tree.

    Messages and line numbers are ignored so that recurrences of the same
    failure share a key.
    """
    digest = hashlib.sha1(usedforsecurity=False)
    for exc in _walk(node):
        digest.update(exc.type.encode())
        digest.update(b"\x00")
        for frame in exc.stacktrace:
            parts = _frame_parts(frame)
            if parts is None:
                continue
            digest.update("\x1f".join(parts).encode())
            digest.update(b"\x00")
        digest.update(b"\x1e")
    return digest.hexdigest()
