# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Format expressions: compiled route templates with typed placeholders.

A template mixes literal text with printf-style placeholders::

    /user/%s/%i          -> ("abc", 42) for "/user/abc/42"
    /files/%s.%s         -> ("report", "pdf") for "/files/report.pdf"
    /items/%O            -> UUID(...) for "/items/6f0d8c2a-..."

Supported format characters
---------------------------
===== ========= ===================================================
char  type      accepted text
===== ========= ===================================================
``b`` ``bool``  ``true`` / ``false`` in any case, nothing else
``c`` ``str``   exactly one character
``s`` ``str``   one or more characters, percent-decoded
``i`` ``int``   decimal integer in the signed 32-bit range
``d`` ``int``   decimal integer in the signed 64-bit range
``f`` ``float`` decimal number with optional fraction and exponent
``O`` ``UUID``  hyphenated, 32 hex digits, or a 22-char short GUID
``u`` ``int``   11-char short id (unsigned 64-bit)
===== ========= ===================================================

``%%`` is a literal percent sign. Any other character after ``%`` is a
:class:`~genro_handlers.exceptions.FormatStringError`, raised when the
pattern is compiled, i.e. when the route is built, never per request.

Matching never raises for bad input: a literal mismatch, a missing or extra
tail, or a value that fails to parse all yield ``None``.

Compiled patterns are immutable and memoized by ``(template, ignore_case)``,
so they can be shared freely between concurrent requests.
"""

from __future__ import annotations

import enum
import inspect
import math
import re
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from functools import cached_property, lru_cache
from typing import Any, get_type_hints
from urllib.parse import quote, unquote

from genro_handlers.exceptions import FormatStringError
from genro_handlers.short_guid import short_to_guid, short_to_uint64, uint64_to_short

__all__ = [
    "FORMAT_KINDS",
    "LiteralText",
    "MatchMode",
    "Placeholder",
    "PlaceholderKind",
    "RoutePattern",
    "match_and_extract",
    "match_exact",
    "parse_pattern",
    "render_path",
    "validate_format",
]

_INT32 = (-(2**31), 2**31 - 1)
_INT64 = (-(2**63), 2**63 - 1)


class MatchMode(enum.Enum):
    """How much of the path a pattern must cover."""

    EXACT = "exact"
    STARTS_WITH = "starts_with"


@dataclass(frozen=True)
class PlaceholderKind:
    """One variant of the closed set of placeholder types."""

    char: str
    name: str
    regex: str
    python_type: type
    parse: Callable[[str], Any] = field(repr=False)
    render: Callable[[Any], str] = field(repr=False)


def _ranged(bounds: tuple[int, int]) -> Callable[[str], int]:
    low, high = bounds

    def parse(text: str) -> int:
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"{text} out of range")
        return value

    return parse


def _parse_guid(text: str) -> uuid.UUID:
    if len(text) == 22:
        return short_to_guid(text)
    return uuid.UUID(text)


def _render_char(value: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"%c expects a single character, got {value!r}")
    return value


def _render_int(value: int) -> str:
    return str(int(value))


def _render_float(value: float) -> str:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"%f expects a finite number, got {value!r}")
    return repr(number)


_HEX = "[0-9A-Fa-f]"
_GUID_REGEX = (
    f"{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}"
    f"|{_HEX}{{32}}"
    "|[-_0-9A-Za-z]{22}"
)

FORMAT_KINDS: dict[str, PlaceholderKind] = {
    kind.char: kind
    for kind in (
        PlaceholderKind(
            "b", "bool", "(?i:true|false)", bool,
            lambda text: text.lower() == "true",
            lambda value: "true" if value else "false",
        ),
        PlaceholderKind("c", "char", ".", str, lambda text: text, _render_char),
        PlaceholderKind(
            "s", "string", ".+", str, unquote, lambda value: quote(str(value), safe="")
        ),
        PlaceholderKind("i", "int32", "-?[0-9]+", int, _ranged(_INT32), _render_int),
        PlaceholderKind("d", "int64", "-?[0-9]+", int, _ranged(_INT64), _render_int),
        PlaceholderKind(
            "f", "float", "-?[0-9]+(?:\\.[0-9]+)?(?:[eE][-+]?[0-9]+)?", float,
            float, _render_float,
        ),
        PlaceholderKind("O", "guid", _GUID_REGEX, uuid.UUID, _parse_guid, str),
        PlaceholderKind(
            "u", "uint64", "[-_0-9A-Za-z]{10}[048AEIMQUYcgkosw]", int,
            short_to_uint64, uint64_to_short,
        ),
    )
}


@dataclass(frozen=True)
class LiteralText:
    text: str


@dataclass(frozen=True)
class Placeholder:
    char: str

    @property
    def kind(self) -> PlaceholderKind:
        return FORMAT_KINDS[self.char]


@dataclass(frozen=True)
class RoutePattern:
    """Compiled, immutable route template.

    Attributes:
        template: Source text, e.g. ``"/user/%s/%i"``.
        segments: Literals and placeholders, in order.
        ignore_case: Whether literals compare case-insensitively.
        regex: Compiled expression with one group per placeholder.
    """

    template: str
    segments: tuple[LiteralText | Placeholder, ...]
    ignore_case: bool
    regex: re.Pattern[str] = field(compare=False, repr=False)

    @cached_property
    def placeholders(self) -> tuple[Placeholder, ...]:
        return tuple(s for s in self.segments if isinstance(s, Placeholder))

    @property
    def arity(self) -> int:
        return len(self.placeholders)

    def match(self, path: str, mode: MatchMode = MatchMode.EXACT) -> tuple[Any, ...] | None:
        return match_and_extract(self, path, mode)

    def render(self, *values: Any) -> str:
        return render_path(self, values)


def _tokenize(template: str) -> tuple[LiteralText | Placeholder, ...]:
    segments: list[LiteralText | Placeholder] = []
    literal: list[str] = []
    i = 0
    while i < len(template):
        char = template[i]
        if char != "%":
            literal.append(char)
            i += 1
            continue
        if i + 1 == len(template):
            raise FormatStringError(template, "dangling '%' at end of template")
        code = template[i + 1]
        if code == "%":
            literal.append("%")
        elif code in FORMAT_KINDS:
            if literal:
                segments.append(LiteralText("".join(literal)))
                literal = []
            segments.append(Placeholder(code))
        else:
            supported = ", ".join(f"%{c}" for c in FORMAT_KINDS)
            raise FormatStringError(
                template, f"unknown format character '%{code}' (supported: {supported})"
            )
        i += 2
    if literal:
        segments.append(LiteralText("".join(literal)))
    return tuple(segments)


@lru_cache(maxsize=512)
def parse_pattern(template: str, ignore_case: bool = False) -> RoutePattern:
    """Compile ``template`` into a :class:`RoutePattern`.

    Raises:
        FormatStringError: On an unknown format character or a dangling ``%``.
    """
    segments = _tokenize(template)
    parts = []
    for segment in segments:
        if isinstance(segment, LiteralText):
            parts.append(re.escape(segment.text))
        else:
            parts.append(f"({segment.kind.regex})")
    flags = re.IGNORECASE if ignore_case else 0
    regex = re.compile("".join(parts), flags)
    return RoutePattern(template, segments, ignore_case, regex)


def _as_pattern(pattern: RoutePattern | str) -> RoutePattern:
    return pattern if isinstance(pattern, RoutePattern) else parse_pattern(pattern)


def match_exact(template: str, path: str, ignore_case: bool = False) -> bool:
    """Compare a literal-only template with ``path``."""
    if ignore_case:
        return template.casefold() == path.casefold()
    return template == path


def match_and_extract(
    pattern: RoutePattern | str,
    path: str,
    mode: MatchMode = MatchMode.EXACT,
) -> tuple[Any, ...] | None:
    """Match ``path`` against ``pattern`` and return the typed values.

    Returns:
        A tuple with one value per placeholder, in template order, or
        ``None`` when the path does not match or a value does not parse.
    """
    pattern = _as_pattern(pattern)
    if mode is MatchMode.EXACT:
        found = pattern.regex.fullmatch(path)
    else:
        found = pattern.regex.match(path)
    if found is None:
        return None
    values = []
    for placeholder, text in zip(pattern.placeholders, found.groups()):
        try:
            values.append(placeholder.kind.parse(text))
        except (ValueError, OverflowError):
            return None
    return tuple(values)


def render_path(pattern: RoutePattern | str, values: Sequence[Any]) -> str:
    """Build the path that ``pattern`` would extract ``values`` from.

    Raises:
        FormatStringError: If the number of values differs from the arity.
    """
    pattern = _as_pattern(pattern)
    if len(values) != pattern.arity:
        raise FormatStringError(
            pattern.template,
            f"expected {pattern.arity} values to render, got {len(values)}",
        )
    pending = iter(values)
    out = []
    for segment in pattern.segments:
        if isinstance(segment, LiteralText):
            out.append(segment.text)
        else:
            out.append(segment.kind.render(next(pending)))
    return "".join(out)


_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _ordinal(position: int) -> str:
    if 10 <= position % 100 <= 20:
        return f"{position}th"
    return f"{position}{_SUFFIXES.get(position % 10, 'th')}"


def validate_format(pattern: RoutePattern | str, route_handler: Callable[..., Any]) -> None:
    """Check that ``route_handler`` can receive the values of ``pattern``.

    The positional arity must accommodate the number of placeholders and,
    where the handler annotates a parameter, the annotation must be the
    placeholder's Python type. Handlers taking ``*args`` or without an
    inspectable signature are accepted as they are.

    Raises:
        FormatStringError: On an arity or type mismatch.
    """
    pattern = _as_pattern(pattern)
    try:
        signature = inspect.signature(route_handler)
    except (TypeError, ValueError):
        return
    params = list(signature.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    required = [p for p in positional if p.default is inspect.Parameter.empty]
    if not len(required) <= pattern.arity <= len(positional):
        raise FormatStringError(
            pattern.template,
            f"number of placeholders ({pattern.arity}) does not match "
            f"the route handler's parameters ({len(positional)})",
        )
    missing_kwonly = [
        p.name
        for p in params
        if p.kind is inspect.Parameter.KEYWORD_ONLY and p.default is inspect.Parameter.empty
    ]
    if missing_kwonly:
        raise FormatStringError(
            pattern.template,
            f"route handler requires keyword-only parameters {missing_kwonly}",
        )

    if not (inspect.isfunction(route_handler) or inspect.ismethod(route_handler)):
        return
    try:
        hints = get_type_hints(route_handler)
    except (NameError, TypeError):
        return
    for position, (placeholder, param) in enumerate(
        zip(pattern.placeholders, positional), start=1
    ):
        hint = hints.get(param.name)
        if hint is None or hint is Any or hint is object:
            continue
        expected = placeholder.kind.python_type
        if hint is not expected:
            hint_name = getattr(hint, "__name__", repr(hint))
            raise FormatStringError(
                pattern.template,
                f"route handler expects '{hint_name}' for the {_ordinal(position)} "
                f"parameter '{param.name}' but '%{placeholder.char}' "
                f"produces '{expected.__name__}'",
            )
