# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Authentication and authorization handlers.

Authentication itself belongs to the host: it establishes ``ctx.user`` before
the pipeline runs and, for ``challenge``/``sign_out``, registers an
:class:`AuthenticationService` in the service locator. The handlers here only
read the principal and decide whether the request may continue.

Every ``requires_*`` handler takes a ``fail`` handler. When the check fails,
``fail`` runs with the terminal continuation, so whatever it writes ends the
request::

    requires_role("admin", forbidden(text("admins only")))

Role rules
----------
:func:`requires_role_rule` evaluates a boolean expression over the user's
roles:

    - ``|`` : OR (user must have at least one)
    - ``&`` : AND (user must have all)
    - ``!`` : NOT (user must not have)
    - ``()`` : grouping

Example: ``"admin&!guest"`` means "admin AND NOT guest".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from genro_toolbox import tags_match

from .context import ClaimsPrincipal, HttpContext
from .pipeline import HttpFunc, HttpHandler, early_return

__all__ = [
    "AuthenticationService",
    "challenge",
    "requires_auth_policy",
    "requires_authentication",
    "requires_role",
    "requires_role_of",
    "requires_role_rule",
    "sign_out",
]


class AuthenticationService(ABC):
    """Host-side authentication schemes."""

    @abstractmethod
    async def challenge(self, ctx: HttpContext, scheme: str) -> None:
        """Ask the client to authenticate with ``scheme`` (e.g. set a 401 or a redirect)."""

    @abstractmethod
    async def sign_out(self, ctx: HttpContext, scheme: str) -> None:
        """Drop the user's credentials for ``scheme``."""


def challenge(scheme: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        await ctx.get_service(AuthenticationService).challenge(ctx, scheme)
        return await next(ctx)

    return handler


def sign_out(scheme: str) -> HttpHandler:
    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        await ctx.get_service(AuthenticationService).sign_out(ctx, scheme)
        return await next(ctx)

    return handler


def requires_auth_policy(
    policy: Callable[[ClaimsPrincipal], bool], fail: HttpHandler
) -> HttpHandler:
    """Continue when ``policy(ctx.user)`` holds, otherwise run ``fail``."""

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        if policy(ctx.user):
            return await next(ctx)
        return await fail(early_return, ctx)

    return handler


def requires_authentication(fail: HttpHandler) -> HttpHandler:
    return requires_auth_policy(lambda user: user.is_authenticated, fail)


def requires_role(role: str, fail: HttpHandler) -> HttpHandler:
    return requires_auth_policy(lambda user: user.is_in_role(role), fail)


def requires_role_of(roles: Iterable[str], fail: HttpHandler) -> HttpHandler:
    """Continue when the user has at least one of ``roles``."""
    wanted = frozenset(roles)
    return requires_auth_policy(lambda user: not wanted.isdisjoint(user.roles), fail)


def requires_role_rule(rule: str, fail: HttpHandler) -> HttpHandler:
    """Continue when the user's roles satisfy ``rule``.

    Raises:
        ValueError: If ``rule`` contains a comma (use ``|`` for OR).
    """
    if "," in rule:
        raise ValueError(
            f"Comma not allowed in role rule: {rule!r}. "
            "Use '|' for OR (e.g., 'admin|manager') or '&' for AND (e.g., 'admin&hr')."
        )
    return requires_auth_policy(lambda user: bool(tags_match(rule, set(user.roles))), fail)
