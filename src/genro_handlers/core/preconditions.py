# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Conditional request handling.

``validate_preconditions(etag, last_modified)`` writes ``ETag`` and
``Last-Modified`` to the response, then evaluates the request's
``If-Match``, ``If-Unmodified-Since``, ``If-None-Match`` and
``If-Modified-Since`` headers in RFC 7232 order:

- all conditions met, or none sent: continue the pipeline;
- the resource is unchanged (GET/HEAD only): answer ``304 Not Modified``;
- a condition failed: answer ``412 Precondition Failed``.

Header parsing is werkzeug's (``parse_etags``, ``parse_date``). Dates
compare at one-second resolution, as they travel in HTTP.

Example::

    compose(GET, route("/report"), validate_preconditions("v42", report.updated), json(report))
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

from werkzeug.http import http_date, parse_date, parse_etags, quote_etag

from .context import HttpContext
from .pipeline import HttpFunc, HttpHandler

__all__ = ["Precondition", "evaluate_preconditions", "validate_preconditions"]


class Precondition(enum.Enum):
    NO_CONDITIONS_SPECIFIED = "no_conditions_specified"
    RESOURCE_NOT_MODIFIED = "resource_not_modified"
    CONDITION_FAILED = "condition_failed"
    ALL_CONDITIONS_MET = "all_conditions_met"


def _utc_seconds(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def _is_get_or_head(ctx: HttpContext) -> bool:
    return ctx.request.method in ("GET", "HEAD")


def _if_match(ctx: HttpContext, etag: str | None, weak: bool) -> Precondition:
    header = ctx.request.headers.get("if-match")
    tags = parse_etags(header)
    if not tags:
        return Precondition.NO_CONDITIONS_SPECIFIED
    if etag is None:
        return Precondition.CONDITION_FAILED
    # strong comparison: a weak validator never matches a listed tag
    if tags.star_tag or (not weak and tags.is_strong(etag)):
        return Precondition.ALL_CONDITIONS_MET
    return Precondition.CONDITION_FAILED


def _if_unmodified_since(ctx: HttpContext, last_modified: datetime | None) -> Precondition:
    since = parse_date(ctx.request.headers.get("if-unmodified-since"))
    if since is None:
        return Precondition.NO_CONDITIONS_SPECIFIED
    if last_modified is None:
        return Precondition.ALL_CONDITIONS_MET
    if since > datetime.now(timezone.utc) or since >= _utc_seconds(last_modified):
        return Precondition.ALL_CONDITIONS_MET
    return Precondition.CONDITION_FAILED


def _if_none_match(ctx: HttpContext, etag: str | None) -> Precondition:
    header = ctx.request.headers.get("if-none-match")
    tags = parse_etags(header)
    if not tags:
        return Precondition.NO_CONDITIONS_SPECIFIED
    if etag is None or not tags.contains_weak(etag):
        return Precondition.ALL_CONDITIONS_MET
    if _is_get_or_head(ctx):
        return Precondition.RESOURCE_NOT_MODIFIED
    return Precondition.CONDITION_FAILED


def _if_modified_since(ctx: HttpContext, last_modified: datetime | None) -> Precondition:
    since = parse_date(ctx.request.headers.get("if-modified-since"))
    if since is None or not _is_get_or_head(ctx):
        return Precondition.NO_CONDITIONS_SPECIFIED
    if last_modified is None:
        return Precondition.ALL_CONDITIONS_MET
    if since <= datetime.now(timezone.utc) and since < _utc_seconds(last_modified):
        return Precondition.ALL_CONDITIONS_MET
    return Precondition.RESOURCE_NOT_MODIFIED


def evaluate_preconditions(
    ctx: HttpContext,
    etag: str | None = None,
    last_modified: datetime | None = None,
    *,
    weak: bool = False,
) -> Precondition:
    """Set the validators on the response and evaluate the request's conditions.

    Args:
        ctx: Current request context.
        etag: Entity tag value, without quotes or the ``W/`` prefix.
        last_modified: Last modification time; naive values are taken as UTC.
        weak: Whether ``etag`` is a weak validator.
    """
    if etag is not None:
        ctx.set_http_header("etag", quote_etag(etag, weak))
    if last_modified is not None:
        ctx.set_http_header("last-modified", http_date(_utc_seconds(last_modified)))

    result = _if_match(ctx, etag, weak)
    if result is Precondition.NO_CONDITIONS_SPECIFIED:
        result = _if_unmodified_since(ctx, last_modified)
    if result in (Precondition.CONDITION_FAILED, Precondition.RESOURCE_NOT_MODIFIED):
        return result

    none_match = _if_none_match(ctx, etag)
    if none_match is not Precondition.NO_CONDITIONS_SPECIFIED:
        return none_match
    if result is Precondition.ALL_CONDITIONS_MET:
        return result
    return _if_modified_since(ctx, last_modified)


def validate_preconditions(
    etag: str | None = None,
    last_modified: datetime | None = None,
    *,
    weak: bool = False,
) -> HttpHandler:
    """Continue when the request's conditions hold, else answer 304 or 412."""

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        result = evaluate_preconditions(ctx, etag, last_modified, weak=weak)
        if result is Precondition.CONDITION_FAILED:
            ctx.set_status_code(412)
            return ctx
        if result is Precondition.RESOURCE_NOT_MODIFIED:
            ctx.set_status_code(304)
            return ctx
        return await next(ctx)

    return handler
