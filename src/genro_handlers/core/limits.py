# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request limitation filters.

Each filter continues the pipeline when the request satisfies it and
otherwise answers ``406 Not Acceptable`` and ends the request. The rejection
response can be replaced per filter: ``header_not_found`` runs when the
header is missing, ``invalid_header`` when it is present but does not
qualify.

Example::

    compose(POST, have_content_type("application/json"), max_content_length(4096), handler)
"""

from __future__ import annotations

from collections.abc import Iterable

from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header

from .context import HttpContext
from .pipeline import HttpFunc, HttpHandler, early_return
from .responses import text
from .status import not_acceptable

__all__ = [
    "have_any_content_types",
    "have_content_type",
    "max_content_length",
    "must_accept_any",
]


def _reject(handler: HttpHandler | None, message: str) -> HttpHandler:
    return handler if handler is not None else not_acceptable(text(message))


def must_accept_any(
    mime_types: Iterable[str],
    *,
    invalid_header: HttpHandler | None = None,
    header_not_found: HttpHandler | None = None,
) -> HttpHandler:
    """Continue only if the Accept header lists one of ``mime_types`` verbatim.

    Unlike :func:`~genro_handlers.core.responses.must_accept`, client
    wildcards do not match and a non-match is answered, not skipped.
    """
    expected = frozenset(mime_types)
    on_invalid = _reject(
        invalid_header,
        "cannot accept request because header 'Accept' hasn't got expected MIME type",
    )
    on_missing = _reject(
        header_not_found, "cannot accept request because the request has no 'Accept' header"
    )

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        header = ctx.request.headers.get("accept")
        if header is None:
            return await on_missing(early_return, ctx)
        accept = parse_accept_header(header, MIMEAccept)
        if any(value in expected for value, _ in accept):
            return await next(ctx)
        return await on_invalid(early_return, ctx)

    return handler


def have_any_content_types(
    content_types: Iterable[str],
    *,
    invalid_header: HttpHandler | None = None,
    header_not_found: HttpHandler | None = None,
) -> HttpHandler:
    """Continue only if Content-Type equals one of ``content_types``."""
    expected = frozenset(content_types)
    on_invalid = _reject(
        invalid_header,
        "cannot accept request because header 'Content-Type' hasn't got expected value",
    )
    on_missing = _reject(
        header_not_found, "cannot accept request because the request has no 'Content-Type' header"
    )

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        content_type = ctx.request.headers.get("content-type")
        if content_type is None:
            return await on_missing(early_return, ctx)
        if content_type in expected:
            return await next(ctx)
        return await on_invalid(early_return, ctx)

    return handler


def have_content_type(
    content_type: str,
    *,
    invalid_header: HttpHandler | None = None,
    header_not_found: HttpHandler | None = None,
) -> HttpHandler:
    return have_any_content_types(
        [content_type], invalid_header=invalid_header, header_not_found=header_not_found
    )


def max_content_length(
    max_length: int,
    *,
    invalid_header: HttpHandler | None = None,
    header_not_found: HttpHandler | None = None,
) -> HttpHandler:
    """Continue only if Content-Length is present and at most ``max_length``.

    A Content-Length that is not a non-negative integer counts as invalid.
    """
    on_invalid = _reject(
        invalid_header, "cannot accept request because header 'Content-Length' is too large"
    )
    on_missing = _reject(
        header_not_found,
        "cannot accept request because the request has no 'Content-Length' header",
    )

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        header = ctx.request.headers.get("content-length")
        if header is None:
            return await on_missing(early_return, ctx)
        if header.strip().isdigit() and int(header) <= max_length:
            return await next(ctx)
        return await on_invalid(early_return, ctx)

    return handler
