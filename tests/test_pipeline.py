# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the handler pipeline combinators."""

from __future__ import annotations

import pytest

from genro_handlers import (
    HttpContext,
    ServiceNotFound,
    choose,
    compose,
    early_return,
    handle_context,
    not_found,
    route,
    skip_pipeline,
    text,
    warbler,
)


async def run(handler, ctx):
    return await handler(early_return, ctx)


def recorder(calls: list, name: str):
    """Handler that records its name and continues."""

    async def handler(next, ctx):
        calls.append(name)
        return await next(ctx)

    return handler


async def skip(next, ctx):
    return None


async def write_then_continue(next, ctx):
    await ctx.write_text("first")
    return await next(ctx)


class TestCompose:
    async def test_absent_first_handler_never_invokes_second(self):
        calls = []
        result = await run(compose(skip, recorder(calls, "h2")), HttpContext.create("/"))
        assert result is None
        assert calls == []

    async def test_runs_handlers_left_to_right(self):
        calls = []
        handler = compose(recorder(calls, "a"), recorder(calls, "b"), recorder(calls, "c"))
        ctx = HttpContext.create("/")
        assert await run(handler, ctx) is ctx
        assert calls == ["a", "b", "c"]

    async def test_started_response_skips_remaining_handlers(self):
        calls = []
        ctx = HttpContext.create("/")
        result = await run(compose(write_then_continue, recorder(calls, "h2")), ctx)
        assert result is ctx
        assert calls == []

    async def test_no_double_write(self):
        ctx = HttpContext.create("/")
        await run(compose(write_then_continue, text("second")), ctx)
        assert ctx.response.body == b"first"

    async def test_started_on_entry_forwards_to_next(self):
        calls = []
        ctx = HttpContext.create("/")
        ctx.response.start()
        result = await run(compose(recorder(calls, "h1"), recorder(calls, "h2")), ctx)
        assert result is ctx
        assert calls == []

    async def test_is_associative(self):
        left, right = [], []
        a, b, c = "abc"
        ctx = HttpContext.create("/")
        await run(compose(compose(recorder(left, a), recorder(left, b)), recorder(left, c)), ctx)
        await run(compose(recorder(right, a), compose(recorder(right, b), recorder(right, c))), ctx)
        assert left == right == ["a", "b", "c"]

    async def test_exceptions_propagate(self):
        async def boom(next, ctx):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            await run(compose(route("/"), boom), HttpContext.create("/"))


class TestChoose:
    async def test_first_match_wins(self):
        handler = choose([
            compose(route("/"), text("first")),
            compose(route("/"), text("second")),
        ])
        ctx = HttpContext.create("/")
        await run(handler, ctx)
        assert ctx.response.body == b"first"

    async def test_order_sensitive(self):
        ctx = HttpContext.create("/")
        await run(choose([text("a"), text("b")]), ctx)
        other = HttpContext.create("/")
        await run(choose([text("b"), text("a")]), other)
        assert ctx.response.body == b"a"
        assert other.response.body == b"b"

    async def test_all_absent_returns_none(self):
        assert await run(choose([skip, skip]), HttpContext.create("/")) is None

    async def test_empty_returns_none(self):
        assert await run(choose([]), HttpContext.create("/")) is None

    async def test_stops_after_first_result(self):
        calls = []
        handler = choose([skip, recorder(calls, "hit"), recorder(calls, "never")])
        await run(handler, HttpContext.create("/"))
        assert calls == ["hit"]

    async def test_end_to_end_routing(self):
        app = choose([
            compose(route("/"), text("index")),
            compose(route("/ping"), text("pong")),
            not_found(text("Not Found")),
        ])
        for path, status, body in (
            ("/", 200, b"index"),
            ("/ping", 200, b"pong"),
            ("/x", 404, b"Not Found"),
        ):
            ctx = HttpContext.create(path)
            assert await run(app, ctx) is ctx
            assert ctx.response.status_code == status
            assert ctx.response.body == body


class TestHelpers:
    async def test_skip_pipeline_and_early_return(self):
        ctx = HttpContext.create("/")
        assert await skip_pipeline() is None
        assert await early_return(ctx) is ctx

    async def test_warbler_builds_handler_per_request(self):
        counter = {"n": 0}

        def build(next, ctx):
            counter["n"] += 1
            return text(str(counter["n"]))

        handler = warbler(build)
        first, second = HttpContext.create("/"), HttpContext.create("/")
        await run(handler, first)
        await run(handler, second)
        assert first.response.body == b"1"
        assert second.response.body == b"2"

    async def test_handle_context_outcomes(self):
        calls = []

        async def absent(ctx):
            return None

        async def passthrough(ctx):
            ctx.items["seen"] = True
            return ctx

        async def finishing(ctx):
            return await ctx.write_text("done")

        ctx = HttpContext.create("/")
        assert await run(compose(handle_context(absent), recorder(calls, "x")), ctx) is None
        assert await run(compose(handle_context(passthrough), recorder(calls, "y")), ctx) is ctx
        assert ctx.items["seen"] is True
        finished = HttpContext.create("/")
        await run(compose(handle_context(finishing), recorder(calls, "z")), finished)
        assert finished.response.body == b"done"
        assert calls == ["y"]


class TestContext:
    def test_create_defaults(self):
        ctx = HttpContext.create("/a/b", "post", query_string="x=1", headers={"X-Test": "v"})
        assert ctx.request.method == "POST"
        assert ctx.request.query["x"] == "1"
        assert ctx.request.headers["x-test"] == "v"
        assert ctx.user.is_authenticated is False
        assert ctx.sub_path is None
        assert ctx.response.has_started is False

    def test_next_part_of_path_honours_sub_path(self):
        ctx = HttpContext.create("/api/users")
        ctx.sub_path = "/api"
        assert ctx.next_part_of_path() == "/users"

    def test_get_service(self):
        class Clock:
            pass

        clock = Clock()
        ctx = HttpContext.create("/", services={Clock: clock})
        assert ctx.get_service(Clock) is clock
        assert ctx.try_get_service(int) is None
        with pytest.raises(ServiceNotFound, match="int"):
            ctx.get_service(int)

    async def test_body_is_read_once(self):
        ctx = HttpContext.create("/", "POST", body=b"payload")
        assert await ctx.request.body() == b"payload"
        assert await ctx.request.body() == b"payload"

    async def test_clear_after_start_raises(self):
        ctx = HttpContext.create("/")
        await ctx.write_text("x")
        with pytest.raises(RuntimeError):
            ctx.response.clear()

    def test_get_logger_namespace(self):
        ctx = HttpContext.create("/")
        assert ctx.get_logger().name == "genro_handlers"
        assert ctx.get_logger("app").name == "genro_handlers.app"
