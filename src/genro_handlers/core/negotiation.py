# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Content negotiation on the request's ``Accept`` header.

A negotiation config maps media types to writer factories (``value ->
handler``) and supplies the handler used when nothing acceptable is on offer.
Hosts register their own :class:`NegotiationConfig` in the service locator;
:func:`negotiate` falls back to :class:`DefaultNegotiationConfig`.

Selection rules:
    - no ``Accept`` header: the first rule wins;
    - otherwise the accepted media type with the highest quality among those
      that have a rule wins (``*/*`` is a rule key like any other);
    - no such type: the unacceptable handler runs (``406`` by default).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from werkzeug.datastructures import MIMEAccept
from werkzeug.http import parse_accept_header

from .context import HttpContext
from .pipeline import HttpFunc, HttpHandler, early_return
from .responses import json, text

__all__ = [
    "DefaultNegotiationConfig",
    "NegotiationConfig",
    "NegotiationRules",
    "negotiate",
    "negotiate_with",
]

NegotiationRules = Mapping[str, Callable[[Any], HttpHandler]]


class NegotiationConfig(ABC):
    """Negotiation rules and the fallback for unacceptable requests."""

    @property
    @abstractmethod
    def rules(self) -> NegotiationRules:
        """Media type -> factory building the writer for a value."""
        ...

    @property
    @abstractmethod
    def unacceptable_handler(self) -> HttpHandler:
        """Handler run when no accepted media type has a rule."""
        ...


async def _unacceptable(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
    ctx.set_status_code(406)
    accept = ctx.request.headers.get("accept", "")
    return await text(f"{accept} is unacceptable by the server.")(next, ctx)


def _plain_text(value: Any) -> HttpHandler:
    return text(str(value))


class DefaultNegotiationConfig(NegotiationConfig):
    """JSON for ``*/*`` and ``application/json``, ``str()`` for ``text/plain``."""

    @property
    def rules(self) -> NegotiationRules:
        return {
            "*/*": json,
            "application/json": json,
            "text/plain": _plain_text,
        }

    @property
    def unacceptable_handler(self) -> HttpHandler:
        return _unacceptable


_DEFAULT_CONFIG = DefaultNegotiationConfig()


def _select(rules: NegotiationRules, header: str | None) -> str | None:
    if not header:
        return next(iter(rules), None)
    best: str | None = None
    best_quality = 0.0
    for media_type, quality in parse_accept_header(header, MIMEAccept):
        if media_type in rules and quality > best_quality:
            best, best_quality = media_type, quality
    return best


async def _negotiate(
    ctx: HttpContext,
    rules: NegotiationRules,
    unacceptable_handler: HttpHandler,
    value: Any,
) -> HttpContext | None:
    media_type = _select(rules, ctx.request.headers.get("accept"))
    if media_type is None:
        return await unacceptable_handler(early_return, ctx)
    return await rules[media_type](value)(early_return, ctx)


def negotiate_with(
    rules: NegotiationRules,
    unacceptable_handler: HttpHandler,
    value: Any,
) -> HttpHandler:
    """Write ``value`` in the best media type from ``rules``."""

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        return await _negotiate(ctx, rules, unacceptable_handler, value)

    return handler


def negotiate(value: Any) -> HttpHandler:
    """Write ``value`` using the host's :class:`NegotiationConfig`, if any."""

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        config = ctx.try_get_service(NegotiationConfig, _DEFAULT_CONFIG)
        return await _negotiate(ctx, config.rules, config.unacceptable_handler, value)

    return handler
