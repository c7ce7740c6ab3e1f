"""errordoc — flatten error reports into sparse search documents."""

from errordoc.capture import (
    ErrorDocumentProcessor,
    error_event_from_exc_info,
    exception_from_python,
)
from errordoc.config import configure_logging, setup_logging
from errordoc.document import log_fields, to_document
from errordoc.flatten import flatten_exception, rebuild_exception_tree, resolve_parents
from errordoc.frames import FrameTransformer, transform_frame, transform_stacktrace
from errordoc.grouping import compute_grouping_key
from errordoc.model import ErrorEvent, ErrorLog, ExceptionNode, StackFrame
from errordoc.serialization import dumps_document, dumps_documents
from errordoc.sparse import SparseDocumentBuilder

__version__ = "0.1.0"

__all__ = [
    "ErrorDocumentProcessor",
    "ErrorEvent",
    "ErrorLog",
    "ExceptionNode",
    "FrameTransformer",
    "SparseDocumentBuilder",
    "StackFrame",
    "compute_grouping_key",
    "configure_logging",
    "dumps_document",
    "dumps_documents",
    "error_event_from_exc_info",
    "exception_from_python",
    "flatten_exception",
    "log_fields",
    "rebuild_exception_tree",
    "resolve_parents",
    "setup_logging",
    "to_document",
    "transform_frame",
    "transform_stacktrace",
]
