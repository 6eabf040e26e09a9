# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Tests for format expressions."""

from __future__ import annotations

import uuid

import pytest

from genro_handlers import FormatStringError, guid_to_short, uint64_to_short
from genro_handlers.core.format import (
    MatchMode,
    match_and_extract,
    match_exact,
    parse_pattern,
    render_path,
    validate_format,
)


class TestParse:
    def test_arity_counts_placeholders(self):
        assert parse_pattern("/user/%s/%i").arity == 2
        assert parse_pattern("/static").arity == 0

    def test_percent_escape_is_literal(self):
        pattern = parse_pattern("/rate/%i%%")
        assert pattern.arity == 1
        assert match_and_extract(pattern, "/rate/50%") == (50,)

    def test_unknown_format_character(self):
        with pytest.raises(FormatStringError, match="unknown format character '%x'"):
            parse_pattern("/foo/%x")

    def test_dangling_percent(self):
        with pytest.raises(FormatStringError, match="dangling"):
            parse_pattern("/foo/%")

    def test_patterns_are_memoized(self):
        assert parse_pattern("/memo/%s") is parse_pattern("/memo/%s")
        assert parse_pattern("/memo/%s") is not parse_pattern("/memo/%s", True)


class TestMatch:
    def test_string_and_int(self):
        assert match_and_extract("/user/%s/%i", "/user/abc/42") == ("abc", 42)

    def test_int_rejects_text(self):
        assert match_and_extract("/user/%i", "/user/abc") is None

    def test_literal_mismatch(self):
        assert match_and_extract("/user/%s", "/users/abc") is None

    def test_extra_tail_requires_starts_with(self):
        assert match_and_extract("/user/%i", "/user/1/extra") is None
        assert match_and_extract("/user/%i", "/user/1/extra", MatchMode.STARTS_WITH) == (1,)

    def test_percent_decoding(self):
        assert match_and_extract("/foo/%s", "/foo/a%2Fb%2Bc.d%2Ce") == ("a/b+c.d,e",)

    def test_case_sensitivity(self):
        assert match_and_extract("/Foo/%i", "/foo/1") is None
        assert match_and_extract(parse_pattern("/Foo/%i", True), "/foo/1") == (1,)

    def test_int32_and_int64_ranges(self):
        assert match_and_extract("/n/%i", "/n/2147483647") == (2147483647,)
        assert match_and_extract("/n/%i", "/n/2147483648") is None
        assert match_and_extract("/n/%d", "/n/2147483648") == (2147483648,)
        assert match_and_extract("/n/%d", "/n/-5") == (-5,)

    def test_bool(self):
        assert match_and_extract("/flag/%b", "/flag/TRUE") == (True,)
        assert match_and_extract("/flag/%b", "/flag/false") == (False,)
        assert match_and_extract("/flag/%b", "/flag/yes") is None

    def test_char(self):
        assert match_and_extract("/c/%c", "/c/x") == ("x",)
        assert match_and_extract("/c/%c", "/c/xy") is None

    def test_float(self):
        assert match_and_extract("/f/%f", "/f/1.5") == (1.5,)
        assert match_and_extract("/f/%f", "/f/2") == (2.0,)
        assert match_and_extract("/f/%f", "/f/-1e3") == (-1000.0,)
        assert match_and_extract("/f/%f", "/f/abc") is None

    def test_guid_forms(self):
        guid = uuid.UUID("6f0d8c2a-1a2b-4c5d-8e9f-0a1b2c3d4e5f")
        for text in (str(guid), guid.hex, guid_to_short(guid)):
            assert match_and_extract("/item/%O", f"/item/{text}") == (guid,)
        assert match_and_extract("/item/%O", "/item/not-a-guid") is None

    def test_short_id(self):
        assert match_and_extract("/u/%u", f"/u/{uint64_to_short(42)}") == (42,)
        assert match_and_extract("/u/%u", "/u/short") is None

    def test_literal_text_with_dots(self):
        assert match_and_extract("/files/%s.%s", "/files/report.pdf") == ("report", "pdf")

    def test_match_exact(self):
        assert match_exact("/Foo", "/Foo")
        assert not match_exact("/Foo", "/foo")
        assert match_exact("/Foo", "/foo", ignore_case=True)


class TestRender:
    def test_round_trip(self):
        pattern = parse_pattern("/user/%s/%i")
        path = render_path(pattern, ("abc", 42))
        assert path == "/user/abc/42"
        assert pattern.match(path) == ("abc", 42)

    def test_round_trip_escapes_strings(self):
        pattern = parse_pattern("/doc/%s/%b/%f")
        values = ("a/b c", True, 2.5)
        assert pattern.match(pattern.render(*values)) == values

    def test_wrong_number_of_values(self):
        with pytest.raises(FormatStringError, match="expected 2 values"):
            render_path("/user/%s/%i", ("abc",))

    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_float_is_rejected(self, value):
        with pytest.raises(ValueError, match="finite"):
            render_path("/f/%f", (value,))

    def test_large_float_round_trips(self):
        pattern = parse_pattern("/f/%f")
        assert pattern.match(pattern.render(1e20)) == (1e20,)


class TestValidateFormat:
    def test_accepts_matching_handler(self):
        def handler(name: str, age: int):
            return None

        validate_format("/user/%s/%i", handler)
        validate_format("/user/%s/%i", lambda name, age: None)
        validate_format("/user/%s/%i", lambda *values: None)

    def test_arity_mismatch(self):
        with pytest.raises(FormatStringError, match="number of placeholders"):
            validate_format("/user/%s/%i", lambda name: None)

    def test_type_mismatch(self):
        def handler(name: str, age: str):
            return None

        with pytest.raises(FormatStringError, match="2nd parameter 'age'"):
            validate_format("/user/%s/%i", handler)

    def test_required_keyword_only(self):
        with pytest.raises(FormatStringError, match="keyword-only"):
            validate_format("/user/%s", lambda name, *, extra: None)
