"""Exception tree flattening.

A causal exception tree is stored as a flat, pre-order list of records.
The parent of a record is the record immediately before it, unless the
record carries an explicit ``parent`` field holding its parent's index
(0 based).  Only the second and later causes of an exception need that
field, so linear cause chains are stored without any back-references.

Example: ``A`` caused by ``[B, C]``, ``C`` caused by ``[D]``::

    [{"message": "A"},
     {"message": "B"},
     {"message": "C", "parent": 0},
     {"message": "D"}]
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from errordoc.frames import FrameTransformer, transform_frame, transform_stacktrace
from errordoc.model import ExceptionNode
from errordoc.sparse import SparseDocumentBuilder

_NO_PARENT = -1


def flatten_exception(
    root: ExceptionNode,
    *,
    frame_transformer: FrameTransformer = transform_frame,
) -> list[dict[str, Any]]:
    """Flatten the tree rooted at *root* into a list of sparse records."""
    out: list[dict[str, Any]] = []
    # Causes are pushed in reverse so they pop in their original order.
    stack: list[tuple[ExceptionNode, int]] = [(root, _NO_PARENT)]
    while stack:
        node, parent_index = stack.pop()
        index = len(out)
        out.append(_exception_fields(node, index, parent_index, frame_transformer))
        stack.extend((cause, index) for cause in reversed(node.cause))
    return out


def _exception_fields(
    node: ExceptionNode,
    index: int,
    parent_index: int,
    frame_transformer: FrameTransformer,
) -> dict[str, Any]:
    fields = SparseDocumentBuilder()
    fields.set_if_non_empty_string("message", node.message)
    fields.set_if_non_empty_string("module", node.module)
    fields.set_if_non_empty_string("type", node.type)
    fields.set_if_non_empty_string("code", node.code)
    fields.set_if_present_bool("handled", node.handled)
    if index > parent_index + 1:
        fields.set("parent", parent_index)
    if node.attributes is not None:
        fields.set("attributes", node.attributes)
    if node.stacktrace:
        fields.set("stacktrace", transform_stacktrace(node.stacktrace, frame_transformer))
    return fields.build()


def resolve_parents(records: Sequence[dict[str, Any]]) -> list[int | None]:
    """Return the parent index of every flattened record.

    The root (index 0) has no parent and maps to ``None``.
    """
    parents: list[int | None] = []
    for index, record in enumerate(records):
        if index == 0:
            parents.append(None)
        else:
            parents.append(record.get("parent", index - 1))
    return parents


def rebuild_exception_tree(records: Sequence[dict[str, Any]]) -> ExceptionNode | None:
    """Rebuild an :class:`ExceptionNode` tree from flattened *records*.

    Stack frames are kept in their document form.
    """
    if not records:
        return None

    parents = resolve_parents(records)
    children: list[list[int]] = [[] for _ in records]
    for index, parent in enumerate(parents):
        if parent is not None:
            children[parent].append(index)

    # Causes always follow their parent, so build from the end.
    nodes: dict[int, ExceptionNode] = {}
    for index in range(len(records) - 1, -1, -1):
        record = records[index]
        nodes[index] = ExceptionNode(
            message=record.get("message", ""),
            module=record.get("module", ""),
            type=record.get("type", ""),
            code=record.get("code", ""),
            handled=record.get("handled"),
            attributes=record.get("attributes"),
            stacktrace=tuple(record.get("stacktrace", ())),
            cause=tuple(nodes[child] for child in children[index]),
        )
    return nodes[0]
