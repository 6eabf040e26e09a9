# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions for Genro Handlers.

Only construction-time contract violations and host lookup failures are
exceptions. A request that does not match a route is never an error: the
handler simply returns ``None`` and the pipeline moves on.
"""

__all__ = [
    "FormatStringError",
    "RouteTemplateError",
    "ServiceNotFound",
]


class FormatStringError(ValueError):
    """Raised when a route format string cannot be used.

    This covers unknown format characters (``%x``), a dangling ``%`` at the
    end of the template, and route handlers whose arity or annotations do not
    line up with the placeholders of the template.

    Attributes:
        template: The offending format string.
    """

    def __init__(self, template: str, reason: str) -> None:
        self.template = template
        self.reason = reason
        super().__init__(f"Format string error in '{template}': {reason}")


class RouteTemplateError(ValueError):
    """Raised when a ``route_bind`` template does not fit its target model.

    Attributes:
        template: The route template.
        model: The model type the captures were supposed to bind onto.
    """

    def __init__(self, template: str, model: type, reason: str) -> None:
        self.template = template
        self.model = model
        super().__init__(
            f"Route template '{template}' cannot bind to {model.__name__}: {reason}"
        )


class ServiceNotFound(LookupError):
    """Raised when a handler asks the service locator for an unknown type.

    Attributes:
        service_type: The type that was requested.
    """

    def __init__(self, service_type: type) -> None:
        self.service_type = service_type
        name = getattr(service_type, "__name__", repr(service_type))
        super().__init__(f"Service '{name}' not registered")
