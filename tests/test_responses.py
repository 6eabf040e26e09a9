# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for filters, setters, writers and status helpers."""

from __future__ import annotations

import pytest

from genro_handlers import (
    DELETE,
    GET,
    GET_HEAD,
    POST,
    HttpContext,
    accepted,
    bad_gateway,
    bad_request,
    clear_response,
    compose,
    conflict,
    created,
    early_return,
    forbidden,
    gateway_timeout,
    gone,
    html_string,
    http_verb,
    internal_error,
    invalid_http_version,
    json,
    method_not_allowed,
    must_accept,
    not_acceptable,
    not_found,
    not_implemented,
    ok,
    precondition_required,
    redirect_to,
    service_unavailable,
    set_body,
    set_body_from_string,
    set_content_type,
    set_http_header,
    set_status_code,
    text,
    too_many_requests,
    unauthorized,
    unprocessable_entity,
    unsupported_media_type,
)


async def run(handler, ctx):
    return await handler(early_return, ctx)


class TestVerbs:
    async def test_verb_filters(self):
        get = HttpContext.create("/", "GET")
        post = HttpContext.create("/", "POST")
        assert await run(compose(GET, text("x")), get) is get
        assert await run(compose(GET, text("x")), post) is None
        assert await run(compose(DELETE, text("x")), post) is None
        assert await run(compose(POST, text("x")), post) is post

    async def test_started_response_skips_later_filters(self):
        post = HttpContext.create("/", "POST")
        await run(text("written"), post)
        assert await run(compose(DELETE, text("x")), post) is post
        assert post.response.body == b"written"

    async def test_http_verb_is_case_insensitive(self):
        ctx = HttpContext.create("/", "patch")
        assert await run(compose(http_verb("Patch"), text("x")), ctx) is ctx

    async def test_get_head(self):
        handler = compose(GET_HEAD, text("hello"))
        head = HttpContext.create("/", "HEAD")
        assert await run(handler, head) is head
        assert head.response.body == b""
        assert head.response.headers["content-length"] == "5"
        assert head.response.has_started
        assert await run(handler, HttpContext.create("/", "PUT")) is None


class TestSetters:
    async def test_status_and_headers(self):
        ctx = HttpContext.create("/")
        handler = compose(
            set_status_code(418),
            set_http_header("X-Tea", "earl grey"),
            set_content_type("text/x-tea"),
            set_body(b"pot"),
        )
        await run(handler, ctx)
        assert ctx.response.status_code == 418
        assert ctx.response.headers["x-tea"] == "earl grey"
        assert ctx.response.headers["content-type"] == "text/x-tea"
        assert ctx.response.body == b"pot"

    async def test_clear_response(self):
        ctx = HttpContext.create("/")
        handler = compose(
            set_status_code(500), set_http_header("X-A", "1"), clear_response, text("ok")
        )
        await run(handler, ctx)
        assert ctx.response.status_code == 200
        assert "x-a" not in ctx.response.headers

    async def test_must_accept(self):
        handler = compose(must_accept(["application/json"]), text("ok"))
        json_ctx = HttpContext.create("/", headers={"Accept": "application/json"})
        any_ctx = HttpContext.create("/", headers={"Accept": "*/*"})
        html_ctx = HttpContext.create("/", headers={"Accept": "text/html"})
        assert await run(handler, json_ctx) is json_ctx
        assert await run(handler, any_ctx) is any_ctx
        assert await run(handler, html_ctx) is None

    @pytest.mark.parametrize("permanent, status", [(True, 301), (False, 302)])
    async def test_redirect_to(self, permanent, status):
        ctx = HttpContext.create("/old")
        assert await run(redirect_to(permanent, "/new"), ctx) is ctx
        assert ctx.response.status_code == status
        assert ctx.response.headers["location"] == "/new"


class TestWriters:
    async def test_text(self):
        ctx = HttpContext.create("/")
        await run(text("héllo"), ctx)
        assert ctx.response.body == "héllo".encode()
        assert ctx.response.headers["content-type"] == "text/plain; charset=utf-8"
        assert ctx.response.headers["content-length"] == str(len("héllo".encode()))

    async def test_html(self):
        ctx = HttpContext.create("/")
        await run(html_string("<h1>hi</h1>"), ctx)
        assert ctx.response.headers["content-type"] == "text/html; charset=utf-8"

    async def test_json(self):
        ctx = HttpContext.create("/")
        await run(json({"a": [1, 2]}), ctx)
        assert ctx.response.body == b'{"a":[1,2]}'
        assert ctx.response.headers["content-type"] == "application/json; charset=utf-8"

    async def test_set_body_from_string(self):
        ctx = HttpContext.create("/")
        await run(set_body_from_string("raw"), ctx)
        assert ctx.response.body == b"raw"

    async def test_writers_do_not_call_next(self):
        calls = []

        async def next_(ctx):
            calls.append(ctx)
            return ctx

        await text("x")(next_, HttpContext.create("/"))
        assert calls == []


STATUS_HELPERS = [
    (ok, 200),
    (created, 201),
    (accepted, 202),
    (bad_request, 400),
    (forbidden, 403),
    (not_found, 404),
    (method_not_allowed, 405),
    (not_acceptable, 406),
    (conflict, 409),
    (gone, 410),
    (unsupported_media_type, 415),
    (unprocessable_entity, 422),
    (precondition_required, 428),
    (too_many_requests, 429),
    (internal_error, 500),
    (not_implemented, 501),
    (bad_gateway, 502),
    (service_unavailable, 503),
    (gateway_timeout, 504),
    (invalid_http_version, 505),
]


class TestStatusHelpers:
    @pytest.mark.parametrize("helper, status", STATUS_HELPERS)
    async def test_sets_status_then_runs_handler(self, helper, status):
        ctx = HttpContext.create("/")
        assert await run(helper(text("body")), ctx) is ctx
        assert ctx.response.status_code == status
        assert ctx.response.body == b"body"

    async def test_unauthorized_sets_challenge(self):
        ctx = HttpContext.create("/")
        await run(unauthorized("Bearer", "api", text("login")), ctx)
        assert ctx.response.status_code == 401
        assert ctx.response.headers["www-authenticate"] == 'Bearer realm="api"'
