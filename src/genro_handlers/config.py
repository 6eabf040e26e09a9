# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Configuration contract for configurable components.

``Configurable``
    Base class for components that accept keyword options (the ASGI
    middlewares, the request logger). A subclass declares its options as the
    parameters of ``configure()``; ``__init_subclass__`` wraps that method so
    that every call:

        - parses ``flags`` (e.g. ``"before:off,after"``) into booleans
        - validates the options with Pydantic's ``validate_call``
        - merges them into the instance's configuration store

    ``configuration()`` returns the declared defaults overlaid with whatever
    has been configured so far.

Example::

    class Greeter(Configurable):
        def configure(self, enabled: bool = True, greeting: str = "hello"):
            pass  # Storage handled by wrapper

    g = Greeter(flags="enabled:off")
    g.configuration()  # {"enabled": False, "greeting": "hello"}
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from pydantic import validate_call

__all__ = ["Configurable", "parse_flags"]


def parse_flags(flags: str) -> dict[str, bool]:
    """Parse flag string like "enabled,before:off" into boolean dict."""
    mapping: dict[str, bool] = {}
    for chunk in flags.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        if ":" in chunk:
            name, value = chunk.split(":", 1)
            mapping[name.strip()] = value.strip().lower() != "off"
        else:
            mapping[chunk] = True
    return mapping


def _defaults(configure: Callable) -> dict[str, Any]:
    return {
        name: param.default
        for name, param in inspect.signature(configure).parameters.items()
        if name != "self" and param.default is not inspect.Parameter.empty
    }


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap configure() to handle flags, validation and storage."""
    validated = validate_call(original_configure)

    @wraps(original_configure)
    def wrapper(self: Configurable, *, flags: str | None = None, **kwargs: Any) -> None:
        if flags:
            kwargs.update(parse_flags(flags))
        validated(self, **kwargs)
        self._config.update(kwargs)

    return wrapper


class Configurable:
    """Keyword-configured component with a validated ``configure()``."""

    _config_defaults: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            original = cls.__dict__["configure"]
            cls._config_defaults = _defaults(original)
            cls.configure = _wrap_configure(original)  # type: ignore[method-assign]

    def __init__(self, **config: Any) -> None:
        self._config: dict[str, Any] = {}
        self.configure(**config)

    def configure(self, *, flags: str | None = None) -> None:
        """Override to declare accepted options as keyword parameters."""
        if flags:
            self._config.update(parse_flags(flags))

    def configuration(self) -> dict[str, Any]:
        """Return declared defaults merged with the configured values."""
        return {**self._config_defaults, **self._config}
