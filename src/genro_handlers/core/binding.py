# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Model binding with Pydantic.

Binds request data onto a model type (a Pydantic model or a dataclass) and
hands the instance to a handler factory. Coercion from strings to field types
is Pydantic's lax-mode validation, built once per handler with a
``TypeAdapter``.

``route_bind(template, model, fn)``
    ``{name}`` captures in the template map one-to-one onto the model's
    fields; the rest of the template may use regular-expression syntax, e.g.
    ``"/users/{user_id}/posts/{post_id}(/?)"`` to tolerate a trailing slash.
    Matching is case-insensitive. A capture that fails validation is a
    non-match (``None``), not an error. A capture inside an optional group
    that did not match is left out, so the field default applies. A template
    whose captures differ from the model's fields fails when the route is
    built.

``bind_json(model, fn)`` / ``bind_query(model, fn)``
    Validate the JSON body or the query string. Validation errors propagate
    to the host's error boundary.

``try_bind_json(on_error, model, fn)`` / ``try_bind_query(...)``
    Same, but a validation failure runs ``on_error(message)`` instead.

Example::

    @dataclass
    class Post:
        user_id: int
        post_id: int

    route_bind("/users/{user_id}/posts/{post_id}", Post, lambda post: json(post))
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable
from typing import Any, get_origin, get_type_hints
from urllib.parse import unquote

from pydantic import BaseModel, TypeAdapter, ValidationError

from genro_handlers.exceptions import RouteTemplateError

from .context import HttpContext
from .pipeline import HttpFunc, HttpHandler

__all__ = [
    "bind_json",
    "bind_query",
    "route_bind",
    "try_bind_json",
    "try_bind_query",
]

_CAPTURE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")
_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


def _field_types(model: type) -> dict[str, Any] | None:
    """Return ``{field: annotation}`` for a model or dataclass, else None."""
    if isinstance(model, type) and issubclass(model, BaseModel):
        return {name: info.annotation for name, info in model.model_fields.items()}
    if isinstance(model, type) and dataclasses.is_dataclass(model):
        hints = get_type_hints(model)
        return {f.name: hints.get(f.name, Any) for f in dataclasses.fields(model) if f.init}
    return None


def route_bind(
    template: str, model: type, route_handler: Callable[[Any], HttpHandler]
) -> HttpHandler:
    """Bind named path captures onto ``model``.

    Raises:
        RouteTemplateError: At build time, if ``model`` is neither a Pydantic
            model nor a dataclass, if the template is not a valid expression,
            or if its captures and the model's fields differ.
    """
    fields = _field_types(model)
    if fields is None:
        raise RouteTemplateError(template, model, "target must be a Pydantic model or a dataclass")
    expression = _CAPTURE.sub(lambda m: f"(?P<{m.group(1)}>[^/\n]+)", template)
    try:
        regex = re.compile(expression, re.IGNORECASE)
    except re.error as err:
        raise RouteTemplateError(template, model, str(err)) from err
    captures = set(regex.groupindex)
    if captures != set(fields):
        missing = sorted(set(fields) - captures)
        unknown = sorted(captures - set(fields))
        raise RouteTemplateError(
            template, model, f"missing captures {missing}, unknown captures {unknown}"
        )
    adapter = TypeAdapter(model)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        found = regex.fullmatch(ctx.next_part_of_path())
        if found is None:
            return None
        raw = {
            name: unquote(value)
            for name, value in found.groupdict().items()
            if value is not None
        }
        try:
            instance = adapter.validate_python(raw)
        except ValidationError:
            return None
        return await route_handler(instance)(next, ctx)

    return handler


def _query_values(ctx: HttpContext, sequence_fields: frozenset[str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for key in ctx.request.query.keys():
        items = ctx.request.query.getlist(key)
        values[key] = items if key in sequence_fields else items[0]
    return values


def _sequence_fields(model: type) -> frozenset[str]:
    fields = _field_types(model) or {}
    return frozenset(
        name for name, annotation in fields.items() if get_origin(annotation) in _SEQUENCE_ORIGINS
    )


def bind_json(model: type, f: Callable[[Any], HttpHandler]) -> HttpHandler:
    adapter = TypeAdapter(model)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        instance = adapter.validate_json(await ctx.request.body())
        return await f(instance)(next, ctx)

    return handler


def try_bind_json(
    on_error: Callable[[str], HttpHandler],
    model: type,
    f: Callable[[Any], HttpHandler],
) -> HttpHandler:
    adapter = TypeAdapter(model)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        try:
            instance = adapter.validate_json(await ctx.request.body())
        except ValidationError as exc:
            return await on_error(str(exc))(next, ctx)
        return await f(instance)(next, ctx)

    return handler


def bind_query(model: type, f: Callable[[Any], HttpHandler]) -> HttpHandler:
    """Validate the query string into ``model``.

    Keys repeated in the query string become lists for fields annotated as
    sequences; for any other field the first value wins.
    """
    adapter = TypeAdapter(model)
    sequence_fields = _sequence_fields(model)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        instance = adapter.validate_python(_query_values(ctx, sequence_fields))
        return await f(instance)(next, ctx)

    return handler


def try_bind_query(
    on_error: Callable[[str], HttpHandler],
    model: type,
    f: Callable[[Any], HttpHandler],
) -> HttpHandler:
    adapter = TypeAdapter(model)
    sequence_fields = _sequence_fields(model)

    async def handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
        try:
            instance = adapter.validate_python(_query_values(ctx, sequence_fields))
        except ValidationError as exc:
            return await on_error(str(exc))(next, ctx)
        return await f(instance)(next, ctx)

    return handler
