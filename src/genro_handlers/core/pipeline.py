# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Handler pipeline: the combinator algebra over fallible async handlers.

Types
-----
``HttpFunc``
    ``async (ctx) -> ctx | None``. A continuation: what runs next.
``HttpHandler``
    ``async (next, ctx) -> ctx | None``. A handler may call ``next`` to
    proceed, return the context to finish the request itself, or return
    ``None`` to signal that it did not participate.

``None`` is not an error. It is the only negative outcome the combinators
understand; exceptions pass through them untouched and are left to the host's
error boundary (see :mod:`genro_handlers.hosting`).

Combinators
-----------
``compose(h1, h2, ...)``
    Run ``h1`` with a continuation that runs ``h2`` and then the outer
    continuation. Once the response has started, the remaining handlers are
    skipped and the context goes straight to the outer continuation.
``choose(handlers)``
    Try each handler against the same context, in order; the first result
    that is not ``None`` wins.
``warbler(f)``
    Build the handler from ``f(next, ctx)`` on every call instead of once.

Example::

    from genro_handlers import choose, compose, not_found, route, text

    app = choose([
        compose(route("/"), text("index")),
        compose(route("/ping"), text("pong")),
        not_found(text("Not Found")),
    ])
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TypeAlias

from .context import HttpContext

__all__ = [
    "HttpFunc",
    "HttpFuncResult",
    "HttpHandler",
    "choose",
    "compose",
    "early_return",
    "handle_context",
    "skip_pipeline",
    "warbler",
]

HttpFuncResult: TypeAlias = "HttpContext | None"
HttpFunc: TypeAlias = Callable[[HttpContext], Awaitable["HttpContext | None"]]
HttpHandler: TypeAlias = Callable[[HttpFunc, HttpContext], Awaitable["HttpContext | None"]]


async def skip_pipeline() -> HttpContext | None:
    """Non-participation: let the surrounding ``choose`` try the next handler."""
    return None


async def early_return(ctx: HttpContext) -> HttpContext | None:
    """Terminal continuation: the request is finished with ``ctx``."""
    return ctx


def warbler(f: Callable[[HttpFunc, HttpContext], HttpHandler]) -> HttpHandler:
    """Defer building a handler until it is invoked.

    ``text(str(time.time()))`` would freeze the timestamp when the pipeline
    is built; ``warbler(lambda next, ctx: text(str(time.time())))`` computes
    it on every request.
    """

    async def warbled(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        return await f(next, ctx)(next, ctx)

    return warbled


def handle_context(
    context_map: Callable[[HttpContext], Awaitable[HttpContext | None]],
) -> HttpHandler:
    """Lift a context-only coroutine into a handler.

    ``None`` from ``context_map`` skips; a started response finishes the
    request; anything else continues with ``next``.
    """

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        result = await context_map(ctx)
        if result is None:
            return None
        if result.response.has_started:
            return result
        return await next(result)

    return handler


def _compose_pair(handler1: HttpHandler, handler2: HttpHandler) -> HttpHandler:
    async def composed(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if ctx.response.has_started:
            return await next(ctx)

        async def then(c: HttpContext) -> HttpContext | None:
            if c.response.has_started:
                return await next(c)
            return await handler2(next, c)

        return await handler1(then, ctx)

    return composed


def compose(handler1: HttpHandler, handler2: HttpHandler, *handlers: HttpHandler) -> HttpHandler:
    """Combine handlers left to right into a single handler.

    ``compose(a, b, c)`` is ``compose(compose(a, b), c)``.
    """
    composed = _compose_pair(handler1, handler2)
    for handler in handlers:
        composed = _compose_pair(composed, handler)
    return composed


def choose(handlers: Iterable[HttpHandler]) -> HttpHandler:
    """Return the result of the first handler that participates.

    Order is the caller's: first match wins, not best match. When every
    handler returns ``None`` the chosen handler returns ``None`` too.
    """
    candidates = tuple(handlers)

    async def chosen(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        for handler in candidates:
            result = await handler(next, ctx)
            if result is not None:
                return result
        return None

    return chosen
