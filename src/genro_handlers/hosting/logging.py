# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Request logging around handlers.

Wraps a handler with start/end messages including timing.

Configuration
-------------
Accepted keys:
    - ``enabled``: Gate the logger entirely (default True)
    - ``before``: Log "start" message (default True)
    - ``after``: Log "end" message with timing (default True)

Example::

    from genro_handlers import compose, logged, route, text

    app = logged(compose(route("/slow"), text("done")), "slow")
    # INFO genro_handlers: slow start
    # INFO genro_handlers: slow end (0.42 ms)

    quiet = logged(handler, "quiet", flags="before:off")
"""

from __future__ import annotations

import logging
import time
from typing import Any

from genro_handlers.config import Configurable
from genro_handlers.core.context import HttpContext
from genro_handlers.core.pipeline import HttpFunc, HttpHandler

__all__ = ["RequestLogger", "logged"]


class RequestLogger(Configurable):
    """Configurable start/end logging with timing."""

    def __init__(self, *, logger: logging.Logger | None = None, **config: Any) -> None:
        self._logger = logger or logging.getLogger("genro_handlers")
        super().__init__(**config)

    def configure(  # type: ignore[override]
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
    ) -> None:
        """Configure logging options.

        Args:
            enabled: Enable/disable logging entirely.
            before: Log "{name} start" before the handler runs.
            after: Log "{name} end (X ms)" after it returns.
        """
        pass  # Storage is handled by the wrapper

    def wrap(self, handler: HttpHandler, name: str) -> HttpHandler:
        """Return ``handler`` wrapped with start/end logging."""

        async def logged_handler(next: HttpFunc, ctx: HttpContext) -> HttpContext | None:
            cfg = self.configuration()
            if not cfg["enabled"]:
                return await handler(next, ctx)
            if cfg["before"]:
                self._logger.info("%s start", name)
            t0 = time.perf_counter()
            result = await handler(next, ctx)
            elapsed = (time.perf_counter() - t0) * 1000
            if cfg["after"]:
                self._logger.info("%s end (%.2f ms)", name, elapsed)
            return result

        return logged_handler


def logged(
    handler: HttpHandler,
    name: str,
    *,
    logger: logging.Logger | None = None,
    **config: Any,
) -> HttpHandler:
    """Shortcut for ``RequestLogger(**config).wrap(handler, name)``."""
    return RequestLogger(logger=logger, **config).wrap(handler, name)
