# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Routing handlers.

Every handler here compares against :meth:`HttpContext.next_part_of_path`,
i.e. the request path minus whatever enclosing sub-routes already consumed.
A mismatch returns ``None`` so that ``choose`` moves on to the next
candidate; nothing in this module raises at request time.

Literal routes
--------------
``route(path)`` / ``route_ci(path)``
    Exact match, case-sensitive or not.
``routex(regex)`` / ``route_cix(regex)``
    Full regular-expression match; compiled once, when the route is built.
``route_starts_with(prefix)`` / ``route_starts_with_ci(prefix)``
    Prefix match without consuming anything.

Typed routes
------------
``routef(template, fn)`` / ``route_cif(template, fn)``
    Extract typed values from a format template (see
    :mod:`genro_handlers.core.format`) and run the handler ``fn(*values)``.
    ``fn`` is checked against the template when the route is built.
``route_starts_withf`` / ``route_starts_with_cif``
    Same, but the template only has to match the beginning of the path.

Nesting
-------
``subroute(prefix, handler)`` / ``subroute_ci(prefix, handler)``
    Consume ``prefix`` while ``handler`` runs, so that inner routes are
    written relative to it::

        subroute("/api", choose([
            compose(route("/users"), text("users")),
            compose(route("/orders"), text("orders")),
        ]))

``subroutef(template, fn)``
    Typed sub-route over the leading path segments.
``route_ports(table)``
    Dispatch on the port that accepted the connection.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping

from .context import HttpContext
from .format import MatchMode, match_and_extract, match_exact, parse_pattern, validate_format
from .pipeline import HttpFunc, HttpHandler

__all__ = [
    "route",
    "route_ci",
    "route_cif",
    "route_cix",
    "route_ports",
    "route_starts_with",
    "route_starts_with_ci",
    "route_starts_with_cif",
    "route_starts_withf",
    "routef",
    "routex",
    "subroute",
    "subroute_ci",
    "subroutef",
]

RouteHandlerFactory = Callable[..., HttpHandler]


def route(path: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if match_exact(path, ctx.next_part_of_path()):
            return await next(ctx)
        return None

    return handler


def route_ci(path: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if match_exact(path, ctx.next_part_of_path(), ignore_case=True):
            return await next(ctx)
        return None

    return handler


def _routex(path: str, flags: int) -> HttpHandler:
    regex = re.compile(path, flags)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if regex.fullmatch(ctx.next_part_of_path()):
            return await next(ctx)
        return None

    return handler


def routex(path: str) -> HttpHandler:
    return _routex(path, 0)


def route_cix(path: str) -> HttpHandler:
    return _routex(path, re.IGNORECASE)


def _routef(
    template: str,
    route_handler: RouteHandlerFactory,
    *,
    ignore_case: bool,
    mode: MatchMode,
) -> HttpHandler:
    pattern = parse_pattern(template, ignore_case)
    validate_format(pattern, route_handler)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        values = match_and_extract(pattern, ctx.next_part_of_path(), mode)
        if values is None:
            return None
        return await route_handler(*values)(next, ctx)

    return handler


def routef(template: str, route_handler: RouteHandlerFactory) -> HttpHandler:
    """Match ``template`` exactly (case-sensitive) and pass the values on.

    Example::

        routef("/user/%s/%i", lambda name, age: text(f"{name} is {age}"))

    Raises:
        FormatStringError: At build time, on a bad template or when
            ``route_handler`` cannot take the template's values.
    """
    return _routef(template, route_handler, ignore_case=False, mode=MatchMode.EXACT)


def route_cif(template: str, route_handler: RouteHandlerFactory) -> HttpHandler:
    """Case-insensitive :func:`routef`."""
    return _routef(template, route_handler, ignore_case=True, mode=MatchMode.EXACT)


def route_starts_withf(template: str, route_handler: RouteHandlerFactory) -> HttpHandler:
    return _routef(template, route_handler, ignore_case=False, mode=MatchMode.STARTS_WITH)


def route_starts_with_cif(template: str, route_handler: RouteHandlerFactory) -> HttpHandler:
    return _routef(template, route_handler, ignore_case=True, mode=MatchMode.STARTS_WITH)


def _starts_with(path: str, prefix: str, ignore_case: bool) -> bool:
    if ignore_case:
        return match_exact(prefix, path[: len(prefix)], ignore_case=True)
    return path.startswith(prefix)


def route_starts_with(prefix: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if _starts_with(ctx.next_part_of_path(), prefix, False):
            return await next(ctx)
        return None

    return handler


def route_starts_with_ci(prefix: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if _starts_with(ctx.next_part_of_path(), prefix, True):
            return await next(ctx)
        return None

    return handler


async def _route_with_sub_path(
    fragment: str, handler: HttpHandler, next: HttpFunc, ctx: HttpContext
) -> HttpContext | None:
    saved = ctx.sub_path
    ctx.sub_path = (saved or "") + fragment
    try:
        return await handler(next, ctx)
    finally:
        ctx.sub_path = saved


def _subroute(prefix: str, handler: HttpHandler, ignore_case: bool) -> HttpHandler:
    async def sub(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        remaining = ctx.next_part_of_path()
        if not _starts_with(remaining, prefix, ignore_case):
            return None
        # consumed fragment keeps the request casing
        return await _route_with_sub_path(remaining[: len(prefix)], handler, next, ctx)

    return sub


def subroute(prefix: str, handler: HttpHandler) -> HttpHandler:
    """Run ``handler`` with ``prefix`` stripped from the path."""
    return _subroute(prefix, handler, False)


def subroute_ci(prefix: str, handler: HttpHandler) -> HttpHandler:
    return _subroute(prefix, handler, True)


def subroutef(template: str, route_handler: RouteHandlerFactory) -> HttpHandler:
    """Typed sub-route: match the leading segments against ``template``.

    The template covers as many ``/``-separated segments as it contains;
    those segments are consumed while the produced handler runs.

    Example::

        subroutef("/tenant/%s", lambda tenant: choose([...]))
    """
    pattern = parse_pattern(template)
    validate_format(pattern, route_handler)
    segment_count = len(template.split("/"))

    async def sub(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        parts = ctx.next_part_of_path().split("/")
        if segment_count > len(parts):
            return None
        fragment = "/".join(parts[:segment_count])
        values = match_and_extract(pattern, fragment)
        if values is None:
            return None
        return await _route_with_sub_path(fragment, route_handler(*values), next, ctx)

    return sub


def route_ports(table: Mapping[int, HttpHandler]) -> HttpHandler:
    """Select a sub-pipeline by the port that accepted the connection."""
    handlers: dict[int, HttpHandler] = dict(table)

    async def ported(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        handler = handlers.get(ctx.request.port)
        if handler is None:
            return None
        return await handler(next, ctx)

    return ported
