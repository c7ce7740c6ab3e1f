"""Sparse document builder.

Documents produced by this package never carry ``null`` or empty
placeholders: a field is either present with a meaningful value or
missing altogether.  :class:`SparseDocumentBuilder` centralises that rule.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class SparseDocumentBuilder:
    """Accumulate fields into an ordered ``dict``, skipping absent values.

    Example::

        fields = SparseDocumentBuilder()
        fields.set_if_non_empty_string("message", "boom")
        fields.set_if_non_empty_string("culprit", "")
        fields.build()  # {"message": "boom"}
    """

    __slots__ = ("_fields",)

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._fields)

    def __bool__(self) -> bool:
        return bool(self._fields)

    def __repr__(self) -> str:
        return f"SparseDocumentBuilder({self._fields!r})"

    def set(self, key: str, value: Any) -> None:
        """Insert *value* unconditionally."""
        self._fields[key] = value

    def set_if_non_empty_string(self, key: str, value: str | None) -> None:
        if isinstance(value, str) and value:
            self._fields[key] = value

    def set_if_present_bool(self, key: str, value: bool | None) -> None:
        """Insert *value* unless it is ``None``; ``False`` is a real value."""
        if value is not None:
            self._fields[key] = bool(value)

    def set_if_non_empty_map(self, key: str, value: Mapping[str, Any] | None) -> None:
        if value:
            self._fields[key] = dict(value)

    def build(self) -> dict[str, Any]:
        """Return a copy of the accumulated fields."""
        return dict(self._fields)
