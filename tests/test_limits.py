# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for request limitation filters."""

from __future__ import annotations

import pytest

from genro_handlers import (
    HttpContext,
    compose,
    early_return,
    have_any_content_types,
    have_content_type,
    json,
    max_content_length,
    must_accept_any,
    not_acceptable,
    text,
)


async def run(handler, ctx):
    return await handler(early_return, ctx)


def allowed(check):
    return compose(check, text("allowed"))


class TestMustAcceptAny:
    async def test_listed_type_continues(self):
        ctx = HttpContext.create("/", headers={"Accept": "text/html, application/json;q=0.5"})
        assert await run(allowed(must_accept_any(["application/json"])), ctx) is ctx
        assert ctx.response.body == b"allowed"

    async def test_missing_header(self):
        ctx = HttpContext.create("/")
        assert await run(allowed(must_accept_any(["application/json"])), ctx) is ctx
        assert ctx.response.status_code == 406
        assert ctx.response.body == (
            b"cannot accept request because the request has no 'Accept' header"
        )

    async def test_wildcard_is_not_a_listed_type(self):
        ctx = HttpContext.create("/", headers={"Accept": "*/*"})
        await run(allowed(must_accept_any(["application/json"])), ctx)
        assert ctx.response.status_code == 406
        assert ctx.response.body == (
            b"cannot accept request because header 'Accept' hasn't got expected MIME type"
        )

    async def test_rejection_ends_the_request(self):
        calls = []

        async def after(next, ctx):
            calls.append(ctx)
            return await next(ctx)

        await run(compose(must_accept_any(["text/csv"]), after), HttpContext.create("/"))
        assert calls == []

    async def test_custom_handlers(self):
        check = must_accept_any(
            ["application/json"],
            invalid_header=not_acceptable(json({"message": "Accept header is not valid"})),
            header_not_found=not_acceptable(json({"message": "Accept header was not found"})),
        )
        missing = HttpContext.create("/")
        await run(allowed(check), missing)
        assert missing.response.body == b'{"message":"Accept header was not found"}'
        invalid = HttpContext.create("/", headers={"Accept": "text/xml"})
        await run(allowed(check), invalid)
        assert invalid.response.body == b'{"message":"Accept header is not valid"}'


class TestContentType:
    async def test_any_of(self):
        check = allowed(have_any_content_types(["application/json", "text/csv"]))
        ctx = HttpContext.create("/", "POST", headers={"Content-Type": "text/csv"})
        assert await run(check, ctx) is ctx
        assert ctx.response.body == b"allowed"

    @pytest.mark.parametrize(
        "headers, message",
        [
            ({}, b"cannot accept request because the request has no 'Content-Type' header"),
            (
                {"Content-Type": "text/plain"},
                b"cannot accept request because header 'Content-Type' hasn't got expected value",
            ),
        ],
    )
    async def test_rejected(self, headers, message):
        ctx = HttpContext.create("/", "POST", headers=headers)
        await run(allowed(have_content_type("application/json")), ctx)
        assert ctx.response.status_code == 406
        assert ctx.response.body == message


class TestMaxContentLength:
    async def test_within_limit(self):
        ctx = HttpContext.create("/", "POST", headers={"Content-Length": "10"}, body=b"x" * 10)
        assert await run(allowed(max_content_length(1000)), ctx) is ctx
        assert ctx.response.body == b"allowed"

    @pytest.mark.parametrize(
        "headers, message",
        [
            ({}, b"cannot accept request because the request has no 'Content-Length' header"),
            (
                {"Content-Length": "10"},
                b"cannot accept request because header 'Content-Length' is too large",
            ),
            (
                {"Content-Length": "ten"},
                b"cannot accept request because header 'Content-Length' is too large",
            ),
        ],
    )
    async def test_rejected(self, headers, message):
        ctx = HttpContext.create("/", "POST", headers=headers)
        await run(allowed(max_content_length(1)), ctx)
        assert ctx.response.status_code == 406
        assert ctx.response.body == message
