# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Status code helpers.

Each helper sets the status code and then runs the given handler, typically
a writer::

    not_found(text("Not Found"))
    created(json(new_user))
    unauthorized("Bearer", "api", text("login first"))
    ok(negotiate(report))
"""

from __future__ import annotations

from .pipeline import HttpHandler, compose
from .responses import set_http_header, set_status_code

__all__ = [
    "accepted",
    "bad_gateway",
    "bad_request",
    "conflict",
    "created",
    "forbidden",
    "gateway_timeout",
    "gone",
    "internal_error",
    "invalid_http_version",
    "method_not_allowed",
    "not_acceptable",
    "not_found",
    "not_implemented",
    "ok",
    "precondition_required",
    "service_unavailable",
    "too_many_requests",
    "unauthorized",
    "unprocessable_entity",
    "unsupported_media_type",
    "with_status",
]


def with_status(status_code: int, handler: HttpHandler) -> HttpHandler:
    return compose(set_status_code(status_code), handler)


# 2xx
def ok(handler: HttpHandler) -> HttpHandler:
    return with_status(200, handler)


def created(handler: HttpHandler) -> HttpHandler:
    return with_status(201, handler)


def accepted(handler: HttpHandler) -> HttpHandler:
    return with_status(202, handler)


# 4xx
def bad_request(handler: HttpHandler) -> HttpHandler:
    return with_status(400, handler)


def unauthorized(scheme: str, realm: str, handler: HttpHandler) -> HttpHandler:
    """``401`` with a ``WWW-Authenticate`` challenge for ``scheme``/``realm``."""
    return compose(
        set_status_code(401),
        set_http_header("www-authenticate", f'{scheme} realm="{realm}"'),
        handler,
    )


def forbidden(handler: HttpHandler) -> HttpHandler:
    return with_status(403, handler)


def not_found(handler: HttpHandler) -> HttpHandler:
    return with_status(404, handler)


def method_not_allowed(handler: HttpHandler) -> HttpHandler:
    return with_status(405, handler)


def not_acceptable(handler: HttpHandler) -> HttpHandler:
    return with_status(406, handler)


def conflict(handler: HttpHandler) -> HttpHandler:
    return with_status(409, handler)


def gone(handler: HttpHandler) -> HttpHandler:
    return with_status(410, handler)


def unsupported_media_type(handler: HttpHandler) -> HttpHandler:
    return with_status(415, handler)


def unprocessable_entity(handler: HttpHandler) -> HttpHandler:
    return with_status(422, handler)


def precondition_required(handler: HttpHandler) -> HttpHandler:
    return with_status(428, handler)


def too_many_requests(handler: HttpHandler) -> HttpHandler:
    return with_status(429, handler)


# 5xx
def internal_error(handler: HttpHandler) -> HttpHandler:
    return with_status(500, handler)


def not_implemented(handler: HttpHandler) -> HttpHandler:
    return with_status(501, handler)


def bad_gateway(handler: HttpHandler) -> HttpHandler:
    return with_status(502, handler)


def service_unavailable(handler: HttpHandler) -> HttpHandler:
    return with_status(503, handler)


def gateway_timeout(handler: HttpHandler) -> HttpHandler:
    return with_status(504, handler)


def invalid_http_version(handler: HttpHandler) -> HttpHandler:
    return with_status(505, handler)
