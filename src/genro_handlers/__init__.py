"""Genro Handlers - Composable async HTTP handlers for Python.

Public API surface for building web applications out of small asynchronous
handlers glued together with two combinators: ``compose`` (sequence) and
``choose`` (first match wins).

Public exports:
    - everything in :mod:`genro_handlers.core` (context, combinators,
      routing, binding, negotiation, status and auth handlers)
    - ``handler_app``, ``HandlerMiddleware``, ``ErrorHandlerMiddleware``:
      ASGI hosting
    - ``logged``, ``RequestLogger``: start/end timing logs around a handler
    - ``Configurable``: base for keyword-configured components
    - exceptions and short-id helpers

Example::

    from genro_handlers import choose, compose, handler_app, not_found, route, routef, text

    app = handler_app(
        choose([
            compose(route("/"), text("index")),
            routef("/hello/%s", lambda name: text(f"Hello, {name}!")),
            not_found(text("Not Found")),
        ])
    )
"""

__version__ = "0.1.0"

from . import core
from .config import Configurable, parse_flags
from .core import *  # noqa: F403
from .exceptions import FormatStringError, RouteTemplateError, ServiceNotFound
from .hosting import (
    ErrorHandler,
    ErrorHandlerMiddleware,
    HandlerMiddleware,
    RequestLogger,
    debug_error_handler,
    default_error_handler,
    handler_app,
    logged,
)
from .short_guid import guid_to_short, short_to_guid, short_to_uint64, uint64_to_short

__all__ = [
    *core.__all__,
    "Configurable",
    "parse_flags",
    "FormatStringError",
    "RouteTemplateError",
    "ServiceNotFound",
    "ErrorHandler",
    "ErrorHandlerMiddleware",
    "HandlerMiddleware",
    "RequestLogger",
    "debug_error_handler",
    "default_error_handler",
    "handler_app",
    "logged",
    "guid_to_short",
    "short_to_guid",
    "short_to_uint64",
    "uint64_to_short",
]
