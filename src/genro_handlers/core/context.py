# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""HttpContext - the request/response exchange threaded through every handler.

The host owns the lifecycle of a context: it builds one per inbound request,
hands it to the root handler and flushes the response afterwards. Handlers
only borrow it for the duration of the pipeline.

The context is always an explicit argument. Nothing in this package stores it
in a ContextVar, thread-local or module global.

Example::

    from genro_handlers.core.context import HttpContext

    ctx = HttpContext.create("/user/42", method="GET", headers={"Accept": "text/plain"})
    ctx.next_part_of_path()   # "/user/42"
    ctx.response.has_started  # False until a writer touches the body

The ``has_started`` flag on :class:`HttpResponse` is owned by this package:
the first write sets it, and ``compose`` reads it to avoid writing a second
response. Hosts that buffer (like the ASGI adapter) flush the body only after
the pipeline returns.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic_core import to_json
from starlette.datastructures import Headers, MutableHeaders, QueryParams

from genro_handlers.exceptions import ServiceNotFound

__all__ = [
    "ANONYMOUS",
    "ClaimsPrincipal",
    "HttpContext",
    "HttpRequest",
    "HttpResponse",
]

LOGGER_NAME = "genro_handlers"


@dataclass(frozen=True)
class ClaimsPrincipal:
    """Identity of the caller as established by the host's auth machinery.

    Attributes:
        name: Display name of the user, if any.
        authentication_type: Scheme that authenticated the user. ``None``
            means the principal is anonymous.
        roles: Roles granted to the user.
        claims: Arbitrary claim values keyed by claim type.
    """

    name: str | None = None
    authentication_type: str | None = None
    roles: frozenset[str] = frozenset()
    claims: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.authentication_type is not None

    def is_in_role(self, role: str) -> bool:
        return role in self.roles


ANONYMOUS = ClaimsPrincipal()


class HttpRequest:
    """Read-only view of the inbound request.

    ``path`` is kept exactly as received (percent-encoded); placeholders that
    need decoding do it themselves.
    """

    __slots__ = (
        "method",
        "path",
        "query_string",
        "query",
        "headers",
        "scheme",
        "host",
        "port",
        "protocol",
        "_body",
        "_body_reader",
    )

    def __init__(
        self,
        method: str,
        path: str,
        *,
        query_string: str = "",
        headers: Headers | None = None,
        scheme: str = "http",
        host: str | None = None,
        port: int | None = None,
        protocol: str = "HTTP/1.1",
        body: bytes | None = None,
        body_reader: Callable[[], Awaitable[bytes]] | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.query_string = query_string
        self.query = QueryParams(query_string)
        self.headers = headers if headers is not None else Headers()
        self.scheme = scheme
        self.host = host
        self.port = port
        self.protocol = protocol
        self._body = body
        self._body_reader = body_reader

    async def body(self) -> bytes:
        """Return the request body, reading it from the host on first access."""
        if self._body is None:
            self._body = await self._body_reader() if self._body_reader else b""
        return self._body


class HttpResponse:
    """Buffered response under construction."""

    __slots__ = ("status_code", "headers", "_chunks", "has_started")

    def __init__(self) -> None:
        self.status_code = 200
        self.headers = MutableHeaders()
        self._chunks: list[bytes] = []
        self.has_started = False

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)

    def start(self) -> None:
        """Mark the response as committed without writing a body."""
        self.has_started = True

    async def write(self, data: bytes) -> None:
        self.has_started = True
        if data:
            self._chunks.append(bytes(data))

    def clear(self) -> None:
        """Reset status, headers and body.

        Raises:
            RuntimeError: If the response has already started.
        """
        if self.has_started:
            raise RuntimeError("Cannot clear a response that has already started")
        self.status_code = 200
        self.headers = MutableHeaders()
        self._chunks = []


class HttpContext:
    """One in-flight request/response exchange.

    Attributes:
        request: The inbound :class:`HttpRequest`.
        response: The :class:`HttpResponse` being built.
        user: The :class:`ClaimsPrincipal` set by the host (anonymous by default).
        items: Per-request scratch space shared by handlers.
        services: Read-only service locator keyed by type.
        sub_path: Prefix consumed by enclosing sub-routes, ``None`` at top level.
    """

    __slots__ = ("request", "response", "user", "items", "services", "sub_path")

    def __init__(
        self,
        request: HttpRequest,
        response: HttpResponse | None = None,
        *,
        user: ClaimsPrincipal | None = None,
        services: Mapping[type, Any] | None = None,
        items: dict[str, Any] | None = None,
    ) -> None:
        self.request = request
        self.response = response if response is not None else HttpResponse()
        self.user = user if user is not None else ANONYMOUS
        self.services = MappingProxyType(dict(services or {}))
        self.items = items if items is not None else {}
        self.sub_path: str | None = None

    @classmethod
    def create(
        cls,
        path: str = "/",
        method: str = "GET",
        *,
        query_string: str = "",
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        body: bytes = b"",
        scheme: str = "http",
        host: str = "localhost",
        port: int | None = None,
        user: ClaimsPrincipal | None = None,
        services: Mapping[type, Any] | None = None,
    ) -> HttpContext:
        """Build a context from plain values (non-ASGI hosts, tests)."""
        if headers is None:
            raw: list[tuple[bytes, bytes]] = []
        else:
            pairs = headers.items() if isinstance(headers, Mapping) else headers
            raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in pairs]
        request = HttpRequest(
            method,
            path,
            query_string=query_string,
            headers=Headers(raw=raw),
            scheme=scheme,
            host=host,
            port=port,
            body=body,
        )
        return cls(request, user=user, services=services)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    def get_service(self, service_type: type) -> Any:
        """Return the service registered for ``service_type``.

        Raises:
            ServiceNotFound: If no such service was registered by the host.
        """
        try:
            return self.services[service_type]
        except KeyError:
            raise ServiceNotFound(service_type) from None

    def try_get_service(self, service_type: type, default: Any = None) -> Any:
        return self.services.get(service_type, default)

    def get_logger(self, name: str | None = None) -> logging.Logger:
        return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------
    def next_part_of_path(self) -> str:
        """Return the part of the request path not consumed by a sub-route."""
        path = self.request.path
        if self.sub_path and path.startswith(self.sub_path):
            return path[len(self.sub_path) :]
        return path

    # ------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------
    def set_status_code(self, status_code: int) -> None:
        self.response.status_code = status_code

    def set_http_header(self, name: str, value: Any) -> None:
        self.response.headers[name] = str(value)

    def set_content_type(self, content_type: str) -> None:
        self.response.headers["content-type"] = content_type

    async def write_bytes(self, data: bytes) -> HttpContext:
        """Write ``data`` as the response body and set Content-Length.

        HEAD requests get the headers but no body.
        """
        self.response.headers["content-length"] = str(len(data))
        if self.request.method == "HEAD":
            self.response.start()
        else:
            await self.response.write(data)
        return self

    async def write_text(self, value: str) -> HttpContext:
        self.set_content_type("text/plain; charset=utf-8")
        return await self.write_bytes(value.encode("utf-8"))

    async def write_html(self, value: str) -> HttpContext:
        self.set_content_type("text/html; charset=utf-8")
        return await self.write_bytes(value.encode("utf-8"))

    async def write_json(self, value: Any) -> HttpContext:
        self.set_content_type("application/json; charset=utf-8")
        return await self.write_bytes(to_json(value))
