# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""ASGI hosting for handler pipelines.

``HandlerMiddleware``
    Pure ASGI middleware. For every HTTP request it builds an
    :class:`HttpContext` from the Starlette ``Request``, runs the root handler
    with the terminal continuation and flushes the buffered response. When
    the pipeline returns ``None`` the request falls through to the wrapped
    app, or gets a ``404`` when there is none.

    Options (see :class:`genro_handlers.config.Configurable`):
        - ``fallthrough``: call the wrapped app on ``None`` (default True)
        - ``log_results``: debug-log the outcome of each request (default True)

``ErrorHandlerMiddleware``
    The error boundary. An exception raised before the response started is
    logged and turned into a response by an ``ErrorHandler``, i.e. a
    callable ``(exc, logger) -> HttpHandler`` run on a fresh context. Once
    the response has started the exception is logged and re-raised.

    Options:
        - ``debug``: without an explicit error handler, answer with the
          traceback instead of a generic message (default False)

``handler_app(handler, ...)``
    Both middlewares stacked, ready to serve::

        app = handler_app(
            choose([compose(route("/"), text("index")), not_found(text("Not Found"))]),
            middleware_log_results=False,
            error_debug=True,
        )
        # uvicorn module:app

The user principal is taken from ``scope["user"]``/``scope["auth"]`` as set
by Starlette's ``AuthenticationMiddleware``; scope scopes become roles.
"""

from __future__ import annotations

import logging
import traceback
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote

from genro_toolbox import dictExtract
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from genro_handlers.config import Configurable
from genro_handlers.core.context import ANONYMOUS, ClaimsPrincipal, HttpContext, HttpRequest
from genro_handlers.core.pipeline import HttpHandler, compose, early_return
from genro_handlers.core.responses import clear_response, text
from genro_handlers.core.status import internal_error

__all__ = [
    "ErrorHandler",
    "ErrorHandlerMiddleware",
    "HandlerMiddleware",
    "build_context",
    "debug_error_handler",
    "default_error_handler",
    "handler_app",
    "principal_from_scope",
    "to_response",
]

LOGGER = logging.getLogger("genro_handlers.hosting")

ErrorHandler = Callable[[Exception, logging.Logger], HttpHandler]


# ---------------------------------------------------------------------------
# Scope <-> context
# ---------------------------------------------------------------------------
def _request_path(scope: Scope) -> str:
    raw_path = scope.get("raw_path")
    if raw_path:
        return raw_path.decode("latin-1").split("?", 1)[0]
    return quote(scope.get("path", "/"))


def principal_from_scope(scope: Scope) -> ClaimsPrincipal:
    """Map the ASGI ``user``/``auth`` scope keys onto a :class:`ClaimsPrincipal`."""
    user = scope.get("user")
    if isinstance(user, ClaimsPrincipal):
        return user
    if user is None or not getattr(user, "is_authenticated", False):
        return ANONYMOUS
    auth = scope.get("auth")
    return ClaimsPrincipal(
        name=getattr(user, "display_name", None) or None,
        authentication_type=type(auth).__name__ if auth is not None else "asgi",
        roles=frozenset(getattr(auth, "scopes", None) or ()),
    )


def build_context(request: Request, services: Mapping[type, Any] | None = None) -> HttpContext:
    """Build an :class:`HttpContext` for a Starlette request.

    The path is the raw (percent-encoded) request path; the port is the one
    that accepted the connection.
    """
    scope = request.scope
    server = scope.get("server") or (None, None)
    http_request = HttpRequest(
        request.method,
        _request_path(scope),
        query_string=scope.get("query_string", b"").decode("latin-1"),
        headers=request.headers,
        scheme=request.url.scheme,
        host=request.url.hostname,
        port=server[1],
        protocol=f"HTTP/{scope.get('http_version', '1.1')}",
        body_reader=request.body,
    )
    return HttpContext(http_request, user=principal_from_scope(scope), services=services)


def to_response(ctx: HttpContext) -> Response:
    """Turn the buffered response of ``ctx`` into a Starlette ``Response``."""
    response = Response(content=ctx.response.body, status_code=ctx.response.status_code)
    own = ctx.response.headers.raw
    present = {key for key, _ in own}
    response.raw_headers = [*own, *((k, v) for k, v in response.raw_headers if k not in present)]
    return response


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
def default_error_handler(exc: Exception, logger: logging.Logger) -> HttpHandler:
    return compose(clear_response, internal_error(text("Internal Server Error")))


def debug_error_handler(exc: Exception, logger: logging.Logger) -> HttpHandler:
    return compose(clear_response, internal_error(text("".join(traceback.format_exception(exc)))))


# ---------------------------------------------------------------------------
# Middlewares
# ---------------------------------------------------------------------------
class HandlerMiddleware(Configurable):
    """Serve an :data:`HttpHandler` pipeline as ASGI middleware."""

    def __init__(
        self,
        app: ASGIApp | None,
        handler: HttpHandler,
        *,
        services: Mapping[type, Any] | None = None,
        logger: logging.Logger | None = None,
        **config: Any,
    ) -> None:
        self.app = app
        self.handler = handler
        self.services = dict(services or {})
        self._logger = logger or LOGGER
        super().__init__(**config)

    def configure(  # type: ignore[override]
        self,
        fallthrough: bool = True,
        log_results: bool = True,
    ) -> None:
        pass  # Storage is handled by the wrapper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            if self.app is not None:
                await self.app(scope, receive, send)
            return
        cfg = self.configuration()
        ctx = build_context(Request(scope, receive), self.services)
        result = await self.handler(early_return, ctx)
        if cfg["log_results"]:
            self._logger.debug(
                "Handler returned %s for %s %s %s",
                "a response" if result is not None else "None",
                ctx.request.protocol,
                ctx.request.method,
                ctx.request.path,
            )
        if result is not None:
            await to_response(result)(scope, receive, send)
        elif cfg["fallthrough"] and self.app is not None:
            await self.app(scope, receive, send)
        else:
            await PlainTextResponse("Not Found", status_code=404)(scope, receive, send)


class ErrorHandlerMiddleware(Configurable):
    """Turn unhandled exceptions into responses."""

    def __init__(
        self,
        app: ASGIApp,
        error_handler: ErrorHandler | None = None,
        *,
        services: Mapping[type, Any] | None = None,
        logger: logging.Logger | None = None,
        **config: Any,
    ) -> None:
        self.app = app
        self.error_handler = error_handler
        self.services = dict(services or {})
        self._logger = logger or LOGGER
        super().__init__(**config)

    def configure(self, debug: bool = False) -> None:  # type: ignore[override]
        pass  # Storage is handled by the wrapper

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            if response_started:
                self._logger.exception(
                    "The response has already started, the error handler will not be executed."
                )
                raise
            self._logger.exception("An unhandled exception has occurred while executing the request.")
            await self._handle(exc, scope, receive, send)

    def _error_handler(self) -> ErrorHandler:
        if self.error_handler is not None:
            return self.error_handler
        return debug_error_handler if self.configuration()["debug"] else default_error_handler

    async def _handle(self, exc: Exception, scope: Scope, receive: Receive, send: Send) -> None:
        ctx = build_context(Request(scope, receive), self.services)
        try:
            result = await self._error_handler()(exc, self._logger)(early_return, ctx)
        except Exception:
            self._logger.exception(
                "An exception was thrown attempting to handle the original exception."
            )
            result = None
        if result is None:
            await PlainTextResponse("Internal Server Error", status_code=500)(scope, receive, send)
            return
        await to_response(result)(scope, receive, send)


def handler_app(
    handler: HttpHandler,
    *,
    app: ASGIApp | None = None,
    services: Mapping[type, Any] | None = None,
    error_handler: ErrorHandler | None = None,
    logger: logging.Logger | None = None,
    **options: Any,
) -> ASGIApp:
    """Build an ASGI app serving ``handler`` behind the error boundary.

    Options prefixed ``middleware_`` configure :class:`HandlerMiddleware`,
    options prefixed ``error_`` configure :class:`ErrorHandlerMiddleware`
    (e.g. ``middleware_fallthrough=False``, ``error_flags="debug"``).

    Raises:
        TypeError: If an option carries neither prefix.
    """
    unknown = sorted(k for k in options if not k.startswith(("middleware_", "error_")))
    if unknown:
        raise TypeError(f"Unexpected options for handler_app: {unknown}")
    middleware_options = dictExtract(options, "middleware_", slice_prefix=True, pop=False)
    error_options = dictExtract(options, "error_", slice_prefix=True, pop=False)
    inner = HandlerMiddleware(app, handler, services=services, logger=logger, **middleware_options)
    return ErrorHandlerMiddleware(
        inner, error_handler, services=services, logger=logger, **error_options
    )
