"""Hosting adapters: ASGI middlewares and request logging."""

from .asgi import (
    ErrorHandler,
    ErrorHandlerMiddleware,
    HandlerMiddleware,
    build_context,
    debug_error_handler,
    default_error_handler,
    handler_app,
    principal_from_scope,
    to_response,
)
from .logging import RequestLogger, logged

__all__ = [
    "ErrorHandler",
    "ErrorHandlerMiddleware",
    "HandlerMiddleware",
    "RequestLogger",
    "build_context",
    "debug_error_handler",
    "default_error_handler",
    "handler_app",
    "logged",
    "principal_from_scope",
    "to_response",
]
