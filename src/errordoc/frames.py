"""Stack frame transformation.

A frame transformer is any callable turning one frame record into its
sparse document form.  :func:`transform_frame` handles
:class:`~errordoc.model.StackFrame`; frames that are already mappings
(e.g. decoded from an agent payload, or produced by
:func:`~errordoc.flatten.rebuild_exception_tree`) are copied as-is.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeAlias

from errordoc.model import StackFrame
from errordoc.sparse import SparseDocumentBuilder

FrameTransformer: TypeAlias = Callable[[Any], dict[str, Any]]


def transform_frame(frame: StackFrame | Mapping[str, Any]) -> dict[str, Any]:
    """Return the sparse document for a single *frame*."""
    if isinstance(frame, Mapping):
        return dict(frame)

    fields = SparseDocumentBuilder()
    fields.set_if_non_empty_string("abs_path", frame.abs_path)
    fields.set_if_non_empty_string("filename", frame.filename)
    fields.set_if_non_empty_string("classname", frame.classname)
    fields.set_if_non_empty_string("module", frame.module)
    fields.set_if_non_empty_string("function", frame.function)
    fields.set_if_present_bool("library_frame", frame.library_frame)
    if frame.exclude_from_grouping:
        fields.set("exclude_from_grouping", True)

    line = SparseDocumentBuilder()
    if frame.lineno is not None:
        line.set("number", frame.lineno)
    if frame.colno is not None:
        line.set("column", frame.colno)
    line.set_if_non_empty_string("context", frame.context_line)
    if line:
        fields.set("line", line.build())

    context = SparseDocumentBuilder()
    if frame.pre_context:
        context.set("pre", list(frame.pre_context))
    if frame.post_context:
        context.set("post", list(frame.post_context))
    if context:
        fields.set("context", context.build())

    fields.set_if_non_empty_map("vars", frame.vars)
    return fields.build()


def transform_stacktrace(
    frames: Iterable[Any],
    transform: FrameTransformer = transform_frame,
) -> list[dict[str, Any]]:
    """Transform every frame of a stack trace, preserving order."""
    return [transform(frame) for frame in frames]
