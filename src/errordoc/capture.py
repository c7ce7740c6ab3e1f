"""Capture live Python exceptions as error events.

Builds :class:`~errordoc.model.ExceptionNode` trees from exception
objects, following explicit (``raise ... from``) and implicit chaining as
well as the members of exception groups, and exposes a structlog
processor that turns ``exc_info`` into a sparse error document.
"""

from __future__ import annotations

import linecache
import os
import sys
import sysconfig
import uuid
from collections.abc import Callable
from dataclasses import replace
from types import TracebackType
from typing import Any

import structlog

from errordoc.document import to_document
from errordoc.grouping import compute_grouping_key
from errordoc.model import ErrorEvent, ErrorLog, ExceptionNode, StackFrame

_logger = structlog.get_logger(__name__)

_LIBRARY_PATHS: tuple[str, ...] = tuple(
    {sysconfig.get_path(name) for name in ("stdlib", "platstdlib", "purelib", "platlib")}
)


def _is_library_path(filename: str) -> bool:
    return filename.startswith(_LIBRARY_PATHS)


def _extract_frames(
    tb: TracebackType | None,
    *,
    max_frames: int,
    include_locals: bool,
) -> tuple[StackFrame, ...]:
    """Return the innermost *max_frames* frames of *tb*, innermost first."""
    raw_frames: list[tuple[Any, int]] = []
    while tb is not None:
        raw_frames.append((tb.tb_frame, tb.tb_lineno))
        tb = tb.tb_next
    raw_frames = raw_frames[-max_frames:] if max_frames > 0 else []

    frames = []
    for frame_obj, lineno in reversed(raw_frames):
        filename = frame_obj.f_code.co_filename
        frames.append(
            StackFrame(
                abs_path=filename,
                filename=os.path.basename(filename),
                module=frame_obj.f_globals.get("__name__", ""),
                function=frame_obj.f_code.co_name,
                lineno=lineno,
                context_line=linecache.getline(filename, lineno).strip(),
                vars=(
                    {k: repr(v) for k, v in frame_obj.f_locals.items()}
                    if include_locals
                    else None
                ),
                library_frame=_is_library_path(filename),
            )
        )
    return tuple(frames)


def _exception_code(exc: BaseException) -> str:
    for attr in ("errno", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, (int, str)) and not isinstance(value, bool):
            return str(value)
    return ""


def _causes_of(exc: BaseException) -> list[BaseException]:
    causes: list[BaseException] = []
    if isinstance(exc, BaseExceptionGroup):
        causes.extend(exc.exceptions)
    cause = exc.__cause__
    if cause is None and not exc.__suppress_context__:
        cause = exc.__context__
    if cause is not None:
        causes.append(cause)
    return causes


def exception_from_python(
    exc: BaseException,
    *,
    max_frames: int = 20,
    include_locals: bool = False,
    max_depth: int = 32,
    handled: bool | None = None,
) -> ExceptionNode:
    """Build an :class:`ExceptionNode` tree from a Python exception.

    Parameters
    ----------
    exc:
        The exception to capture.
    max_frames:
        Maximum number of (innermost) frames kept per exception.
    include_locals:
        If ``True``, record the ``repr`` of each frame's local variables.
    max_depth:
        Causes nested deeper than this are dropped.
    handled:
        Reported ``handled`` flag of the root exception.
    """
    return _capture(
        exc,
        path=frozenset(),
        depth=0,
        max_frames=max_frames,
        include_locals=include_locals,
        max_depth=max_depth,
        handled=handled,
    )


def _capture(
    exc: BaseException,
    *,
    path: frozenset[int],
    depth: int,
    max_frames: int,
    include_locals: bool,
    max_depth: int,
    handled: bool | None = None,
) -> ExceptionNode:
    path = path | {id(exc)}
    causes: list[ExceptionNode] = []
    if depth >= max_depth:
        _logger.debug("exception cause depth limit reached", max_depth=max_depth)
    else:
        for cause in _causes_of(exc):
            if id(cause) in path:
                _logger.debug("exception cause cycle cut", type=type(cause).__qualname__)
                continue
            causes.append(
                _capture(
                    cause,
                    path=path,
                    depth=depth + 1,
                    max_frames=max_frames,
                    include_locals=include_locals,
                    max_depth=max_depth,
                )
            )

    exc_type = type(exc)
    return ExceptionNode(
        message=str(exc),
        module=exc_type.__module__,
        type=exc_type.__qualname__,
        code=_exception_code(exc),
        handled=handled,
        stacktrace=_extract_frames(
            exc.__traceback__,
            max_frames=max_frames,
            include_locals=include_locals,
        ),
        cause=tuple(causes),
    )


def _log_from_event_dict(method_name: str, event_dict: dict[str, Any]) -> ErrorLog:
    """Describe the log call itself; ``message`` is the rendered event text."""
    message = event_dict.get("event", event_dict.get("message"))
    logger_name = event_dict.get("logger")
    return ErrorLog(
        message=str(message) if message is not None else "",
        level=str(event_dict.get("level", method_name)),
        logger_name=str(logger_name) if logger_name is not None else "",
    )


def _normalize_exc_info(exc_info: Any) -> BaseException | None:
    if isinstance(exc_info, BaseException):
        return exc_info
    if exc_info is True:
        exc_info = sys.exc_info()
    if not isinstance(exc_info, tuple) or len(exc_info) != 3:
        return None
    exc_value = exc_info[1]
    return exc_value if isinstance(exc_value, BaseException) else None


def error_event_from_exc_info(
    exc_info: Any,
    *,
    grouping: Callable[[ExceptionNode], str] | None = compute_grouping_key,
    **kwargs: Any,
) -> ErrorEvent | None:
    """Build an :class:`ErrorEvent` from *exc_info*.

    *exc_info* may be an exception instance, a ``sys.exc_info()`` tuple or
    ``True``.  Returns ``None`` when there is no exception to capture.
    Extra keyword arguments are passed to :func:`exception_from_python`.
    """
    if not exc_info:
        return None
    exc = _normalize_exc_info(exc_info)
    if exc is None:
        return None

    node = exception_from_python(exc, **kwargs)
    culprit = ""
    if node.stacktrace:
        innermost = node.stacktrace[0]
        culprit = f"{innermost.module}.{innermost.function}"
    return ErrorEvent(
        id=uuid.uuid4().hex,
        culprit=culprit,
        grouping_key=grouping(node) if grouping is not None else "",
        exception=node,
    )


class ErrorDocumentProcessor:
    """Structlog processor replacing ``exc_info`` with an error document.

    The document's ``log`` sub-document describes the log call: its
    ``event`` (or already renamed ``message``), ``logger`` and ``level``.

    Parameters
    ----------
    key:
        Event-dict key receiving the sparse error document.
    max_frames:
        Maximum number of frames kept per exception.
    include_locals:
        If ``True``, include local variables in each frame (as ``repr``).
    handled:
        ``handled`` flag reported for the logged exception.
    grouping:
        Callable computing ``grouping_key``; ``None`` disables it.
    """

    def __init__(
        self,
        *,
        key: str = "error",
        max_frames: int = 20,
        include_locals: bool = False,
        handled: bool | None = None,
        grouping: Callable[[ExceptionNode], str] | None = compute_grouping_key,
    ) -> None:
        self._key = key
        self._max_frames = max_frames
        self._include_locals = include_locals
        self._handled = handled
        self._grouping = grouping

    def __call__(
        self,
        _logger: Any,
        method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event = error_event_from_exc_info(
            event_dict.get("exc_info"),
            grouping=self._grouping,
            max_frames=self._max_frames,
            include_locals=self._include_locals,
            handled=self._handled,
        )
        if event is None:
            return event_dict

        event = replace(event, log=_log_from_event_dict(method_name, event_dict))
        event_dict[self._key] = to_document(event)
        event_dict.pop("exc_info", None)
        return event_dict
