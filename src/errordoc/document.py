"""Error document assembly.

:func:`to_document` is the single entry point the ingestion pipeline
calls: one :class:`~errordoc.model.ErrorEvent` in, one sparse ``dict``
out.  The function is pure; concurrent callers need no coordination.
"""

from __future__ import annotations

from typing import Any

from errordoc.flatten import flatten_exception
from errordoc.frames import FrameTransformer, transform_frame, transform_stacktrace
from errordoc.model import ErrorEvent, ErrorLog
from errordoc.sparse import SparseDocumentBuilder


def to_document(
    event: ErrorEvent,
    *,
    frame_transformer: FrameTransformer = transform_frame,
) -> dict[str, Any]:
    """Build the sparse error document for *event*."""
    fields = SparseDocumentBuilder()
    fields.set_if_non_empty_string("id", event.id)
    if event.exception is not None:
        fields.set(
            "exception",
            flatten_exception(event.exception, frame_transformer=frame_transformer),
        )
    fields.set_if_non_empty_string("message", event.message)
    fields.set_if_non_empty_string("type", event.type)
    if event.log is not None:
        fields.set_if_non_empty_map("log", log_fields(event.log, frame_transformer))
    fields.set_if_non_empty_string("culprit", event.culprit)
    fields.set_if_non_empty_map("custom", event.custom)
    fields.set_if_non_empty_string("grouping_key", event.grouping_key)
    fields.set_if_non_empty_string("stack_trace", event.raw_stack_trace)
    return fields.build()


def log_fields(
    log: ErrorLog,
    frame_transformer: FrameTransformer = transform_frame,
) -> dict[str, Any]:
    """Return the ``log`` sub-document; empty when no field is set."""
    fields = SparseDocumentBuilder()
    fields.set_if_non_empty_string("message", log.message)
    fields.set_if_non_empty_string("param_message", log.param_message)
    fields.set_if_non_empty_string("logger_name", log.logger_name)
    fields.set_if_non_empty_string("level", log.level)
    stacktrace = transform_stacktrace(log.stacktrace, frame_transformer)
    if stacktrace:
        fields.set("stacktrace", stacktrace)
    return fields.build()
