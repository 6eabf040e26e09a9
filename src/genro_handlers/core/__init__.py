"""Core runtime aggregator for Genro Handlers.

Exposes the handler building blocks from a single module.

Public API:
    - ``HttpContext``, ``HttpRequest``, ``HttpResponse``, ``ClaimsPrincipal``
    - ``compose``, ``choose``, ``warbler``, ``early_return``, ``skip_pipeline``
    - routing handlers (``route``, ``routef``, ``subroute``...)
    - binding, negotiation, status and auth handlers
    - request limits and conditional requests (``max_content_length``,
      ``validate_preconditions``...)

Importing this module performs only imports; it does not build pipelines
or touch the network.
"""

from .auth import (
    AuthenticationService,
    challenge,
    requires_auth_policy,
    requires_authentication,
    requires_role,
    requires_role_of,
    requires_role_rule,
    sign_out,
)
from .binding import bind_json, bind_query, route_bind, try_bind_json, try_bind_query
from .context import ANONYMOUS, ClaimsPrincipal, HttpContext, HttpRequest, HttpResponse
from .format import MatchMode, RoutePattern, parse_pattern, render_path
from .limits import have_any_content_types, have_content_type, max_content_length, must_accept_any
from .negotiation import DefaultNegotiationConfig, NegotiationConfig, negotiate, negotiate_with
from .pipeline import (
    HttpFunc,
    HttpFuncResult,
    HttpHandler,
    choose,
    compose,
    early_return,
    handle_context,
    skip_pipeline,
    warbler,
)
from .preconditions import Precondition, evaluate_preconditions, validate_preconditions
from .responses import (
    CONNECT,
    DELETE,
    GET,
    GET_HEAD,
    HEAD,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    TRACE,
    clear_response,
    html_string,
    http_verb,
    json,
    must_accept,
    redirect_to,
    set_body,
    set_body_from_string,
    set_content_type,
    set_http_header,
    set_status_code,
    text,
)
from .routing import (
    route,
    route_ci,
    route_cif,
    route_cix,
    route_ports,
    route_starts_with,
    route_starts_with_ci,
    route_starts_with_cif,
    route_starts_withf,
    routef,
    routex,
    subroute,
    subroute_ci,
    subroutef,
)
from .status import (
    accepted,
    bad_gateway,
    bad_request,
    conflict,
    created,
    forbidden,
    gateway_timeout,
    gone,
    internal_error,
    invalid_http_version,
    method_not_allowed,
    not_acceptable,
    not_found,
    not_implemented,
    ok,
    precondition_required,
    service_unavailable,
    too_many_requests,
    unauthorized,
    unprocessable_entity,
    unsupported_media_type,
    with_status,
)

__all__ = [
    # context
    "ANONYMOUS",
    "ClaimsPrincipal",
    "HttpContext",
    "HttpRequest",
    "HttpResponse",
    # pipeline
    "HttpFunc",
    "HttpFuncResult",
    "HttpHandler",
    "choose",
    "compose",
    "early_return",
    "handle_context",
    "skip_pipeline",
    "warbler",
    # format
    "MatchMode",
    "RoutePattern",
    "parse_pattern",
    "render_path",
    # routing
    "route",
    "route_ci",
    "route_cif",
    "route_cix",
    "route_ports",
    "route_starts_with",
    "route_starts_with_ci",
    "route_starts_with_cif",
    "route_starts_withf",
    "routef",
    "routex",
    "subroute",
    "subroute_ci",
    "subroutef",
    # binding
    "bind_json",
    "bind_query",
    "route_bind",
    "try_bind_json",
    "try_bind_query",
    # responses
    "CONNECT",
    "DELETE",
    "GET",
    "GET_HEAD",
    "HEAD",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
    "TRACE",
    "clear_response",
    "html_string",
    "http_verb",
    "json",
    "must_accept",
    "redirect_to",
    "set_body",
    "set_body_from_string",
    "set_content_type",
    "set_http_header",
    "set_status_code",
    "text",
    # negotiation
    "DefaultNegotiationConfig",
    "NegotiationConfig",
    "negotiate",
    "negotiate_with",
    # status
    "accepted",
    "bad_gateway",
    "bad_request",
    "conflict",
    "created",
    "forbidden",
    "gateway_timeout",
    "gone",
    "internal_error",
    "invalid_http_version",
    "method_not_allowed",
    "not_acceptable",
    "not_found",
    "not_implemented",
    "ok",
    "precondition_required",
    "service_unavailable",
    "too_many_requests",
    "unauthorized",
    "unprocessable_entity",
    "unsupported_media_type",
    "with_status",
    # limits
    "have_any_content_types",
    "have_content_type",
    "max_content_length",
    "must_accept_any",
    # preconditions
    "Precondition",
    "evaluate_preconditions",
    "validate_preconditions",
    # auth
    "AuthenticationService",
    "challenge",
    "requires_auth_policy",
    "requires_authentication",
    "requires_role",
    "requires_role_of",
    "requires_role_rule",
    "sign_out",
]
