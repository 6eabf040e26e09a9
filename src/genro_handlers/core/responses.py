# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request filters and response writers.

Filters (``GET``, ``must_accept``...) call ``next`` when the request qualifies
and return ``None`` otherwise. Setters (``set_status_code``...) mutate the
response and always call ``next``. Writers (``text``, ``json``...) are
terminal: they write the body and return the context without calling
``next``.

Example::

    compose(GET, route("/health"), set_http_header("Cache-Control", "no-store"), text("ok"))
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header

from .context import HttpContext
from .pipeline import HttpFunc, HttpHandler, choose

__all__ = [
    "CONNECT",
    "DELETE",
    "GET",
    "GET_HEAD",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "TRACE",
    "clear_response",
    "html_string",
    "http_verb",
    "json",
    "must_accept",
    "redirect_to",
    "set_body",
    "set_body_from_string",
    "set_content_type",
    "set_http_header",
    "set_status_code",
    "text",
]


# ---------------------------------------------------------------------------
# Verb filters
# ---------------------------------------------------------------------------
def http_verb(method: str) -> HttpHandler:
    """Continue only for requests with the given HTTP method."""
    expected = method.upper()

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if ctx.request.method == expected:
            return await next(ctx)
        return None

    return handler


GET = http_verb("GET")
POST = http_verb("POST")
PUT = http_verb("PUT")
PATCH = http_verb("PATCH")
DELETE = http_verb("DELETE")
HEAD = http_verb("HEAD")
OPTIONS = http_verb("OPTIONS")
TRACE = http_verb("TRACE")
CONNECT = http_verb("CONNECT")

GET_HEAD = choose([GET, HEAD])


# ---------------------------------------------------------------------------
# Response setters
# ---------------------------------------------------------------------------
async def clear_response(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
    """Discard status, headers and body set by earlier handlers."""
    ctx.response.clear()
    return await next(ctx)


def set_status_code(status_code: int) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_status_code(status_code)
        return await next(ctx)

    return handler


def set_http_header(name: str, value: Any) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_http_header(name, value)
        return await next(ctx)

    return handler


def set_content_type(content_type: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_content_type(content_type)
        return await next(ctx)

    return handler


def must_accept(mime_types: Iterable[str]) -> HttpHandler:
    """Continue only if the client's Accept header allows one of ``mime_types``."""
    offered = list(mime_types)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        accept = parse_accept_header(ctx.request.headers.get("accept"), MIMEAccept)
        if accept.best_match(offered) is None:
            return None
        return await next(ctx)

    return handler


def redirect_to(permanent: bool, location: str) -> HttpHandler:
    """Redirect with ``301`` when ``permanent`` else ``302``."""

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_status_code(301 if permanent else 302)
        ctx.set_http_header("location", location)
        return ctx

    return handler


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------
def set_body(data: bytes) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        return await ctx.write_bytes(data)

    return handler


def set_body_from_string(value: str) -> HttpHandler:
    return set_body(value.encode("utf-8"))


def text(value: str) -> HttpHandler:
    """Write ``value`` as ``text/plain; charset=utf-8``."""
    data = value.encode("utf-8")

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_content_type("text/plain; charset=utf-8")
        return await ctx.write_bytes(data)

    return handler


def html_string(html: str) -> HttpHandler:
    data = html.encode("utf-8")

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        ctx.set_content_type("text/html; charset=utf-8")
        return await ctx.write_bytes(data)

    return handler


def json(value: Any) -> HttpHandler:
    """Serialize ``value`` with pydantic-core and write it as JSON.

    Models, dataclasses, UUIDs and datetimes are handled by the serializer.
    Serialization happens per request so mutable values are read fresh.
    """

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        return await ctx.write_json(value)

    return handler
