"""JSON encoding of error documents for the indexing backend."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import orjson

_OPTIONS = orjson.OPT_NON_STR_KEYS


def _default(obj: Any) -> str:
    """Fallback for values orjson cannot encode natively."""
    return str(obj)


def dumps_document(document: dict[str, Any]) -> bytes:
    """Serialize one sparse document to compact JSON."""
    return orjson.dumps(document, default=_default, option=_OPTIONS)


def dumps_documents(documents: Iterable[dict[str, Any]]) -> bytes:
    """Serialize *documents* as newline-delimited JSON."""
    return b"".join(dumps_document(document) + b"\n" for document in documents)
