# Core infrastructure
from edustore.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_trace_id,
    get_user_id,
    set_request_id,
    set_trace_id,
    set_user_id,
)
from edustore.core.errors import (
    DuplicateOrderError,
    EngineError,
    InvalidTransitionError,
    NotEntitledError,
    NotFoundError,
    ValidationError,
    WriteConflictError,
)
from edustore.core.logging import configure_structlog, get_logger
from edustore.core.middleware import RequestContextMiddleware


__all__ = [
    "DuplicateOrderError",
    "EngineError",
    "InvalidTransitionError",
    "NotEntitledError",
    "NotFoundError",
    "RequestContextMiddleware",
    "ValidationError",
    "WriteConflictError",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "get_user_id",
    "set_request_id",
    "set_trace_id",
    "set_user_id",
]
