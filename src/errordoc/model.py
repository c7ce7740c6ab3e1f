"""Immutable data model for error reports.

An :class:`ErrorEvent` is the aggregate root.  It may reference a causal
tree of :class:`ExceptionNode` objects and an independent :class:`ErrorLog`.
All sequences are stored as tuples; instances are built once per ingested
event and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StackFrame:
    """One stack frame as reported by an agent or captured locally."""

    abs_path: str = ""
    filename: str = ""
    classname: str = ""
    module: str = ""
    function: str = ""
    lineno: int | None = None
    colno: int | None = None
    context_line: str = ""
    pre_context: tuple[str, ...] = ()
    post_context: tuple[str, ...] = ()
    vars: Mapping[str, Any] | None = None
    library_frame: bool | None = None
    exclude_from_grouping: bool = False


@dataclass(frozen=True)
class ExceptionNode:
    """A single exception and the exceptions that caused it.

    ``handled`` is tri-state: ``None`` means the agent did not report it.
    ``cause`` order is significant; the first cause is the primary
    continuation of the chain.
    """

    message: str = ""
    module: str = ""
    type: str = ""
    code: str = ""
    handled: bool | None = None
    attributes: Any = None
    stacktrace: tuple[Any, ...] = ()
    cause: tuple[ExceptionNode, ...] = ()


@dataclass(frozen=True)
class ErrorLog:
    """A logged error message, independent of any exception tree."""

    message: str = ""
    level: str = ""
    param_message: str = ""
    logger_name: str = ""
    stacktrace: tuple[Any, ...] = ()


@dataclass(frozen=True)
class ErrorEvent:
    """An application error report.

    ``raw_stack_trace`` holds an unparsed trace, set when the agent could
    not produce a structured one.
    """

    id: str = ""
    grouping_key: str = ""
    culprit: str = ""
    type: str = ""
    message: str = ""
    raw_stack_trace: str = ""
    custom: Mapping[str, Any] | None = None
    exception: ExceptionNode | None = None
    log: ErrorLog | None = None
