"""
Route registration calls.

Recognition is purely syntactic: any `X.Verb("/path", h)`, `X.HandleFunc(...)`
or `X.Handle(...)` call counts, whatever the type of X. Each call expression is
offered to an ordered list of matchers; the first matcher that claims it wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Protocol, Sequence

from tree_sitter import Node

from postgen.domain.models import ANY_METHOD, HTTP_VERBS, Endpoint, GraphQLInfo
from postgen.extractors.golang.syntax import GoSource, call_arguments, call_selector, iter_calls, unquote

logger = logging.getLogger(__name__)

HANDLE_SELECTORS = frozenset({"HandleFunc", "Handle"})
BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# header names that show up as string literals next to route calls
HEADER_LIKE_PATHS = ("/X-Request-ID", "/Content-Type", "/Authorization", "/Accept", "/User-Agent")


def _is_title_separator(ch: str) -> bool:
    if ch.isascii():
        return not (ch.isalnum() or ch == "_")
    if ch.isalpha() or ch.isdigit():
        return False
    return ch.isspace()


def go_title(s: str) -> str:
    """Upper-case the first letter of every word, leaving other letters alone."""
    out = []
    prev = " "
    for ch in s:
        out.append(ch.upper() if _is_title_separator(prev) else ch)
        prev = ch
    return "".join(out)


def is_valid_endpoint_path(path: str) -> bool:
    if not path or not path.startswith("/"):
        return False

    lowered = path.lower()
    if any(lowered == h.lower() for h in HEADER_LIKE_PATHS):
        return False

    # "/Some-Header" is a header name, not a route
    if "-" in path and path.count("/") == 1:
        part = path[1:]
        if go_title(part) == part:
            return False

    return len(path[1:]) >= 2


def is_graphql_path(path: str) -> bool:
    lowered = path.lower()
    return "graphql" in lowered or "graph" in lowered or lowered.endswith("/query")


def route_path(src: GoSource, call: Node) -> Optional[str]:
    """The literal first argument of a call when it is an acceptable route path."""
    args = call_arguments(call)
    if not args:
        return None
    path = unquote(src, args[0])
    if path is None:
        return None
    if not is_valid_endpoint_path(path):
        logger.debug("%s:%d: rejected path %r", src.path, call.start_point[0] + 1, path)
        return None
    return path


def guess_handler_name(src: GoSource, call: Node) -> str:
    args = call_arguments(call)
    if len(args) < 2:
        return ""
    handler = args[1]
    if handler.type == "identifier":
        return src.text(handler)
    if handler.type == "selector_expression":
        return src.text(handler.child_by_field_name("field"))
    return ""


def string_verbs(src: GoSource, args: Sequence[Node]) -> list[str]:
    """Literal verb arguments, upper-cased; anything else is dropped."""
    out = []
    for a in args:
        value = unquote(src, a)
        if value is None:
            continue
        verb = value.strip().upper()
        if verb in HTTP_VERBS:
            out.append(verb)
    return out


@dataclass(frozen=True)
class RouteCall:
    src: GoSource
    call: Node
    bodies: Mapping[str, str]

    def selector(self) -> tuple[Optional[Node], str]:
        return call_selector(self.src, self.call)

    def body_for(self, handler: str) -> str:
        return self.bodies.get(handler, "") if handler else ""

    def endpoint(
        self,
        method: str,
        path: str,
        handler: str,
        body: str = "",
        kind: str = "REST",
        graphql: Optional[GraphQLInfo] = None,
    ) -> Endpoint:
        return Endpoint(
            method=method,
            path=path,
            source_file=self.src.path,
            handler=handler,
            body_raw=body,
            kind=kind,
            graphql=graphql,
        )


class RouteMatcher(Protocol):
    def match(self, rc: RouteCall) -> Optional[list[Endpoint]]:
        """Endpoints for a claimed call (possibly none), or None to pass."""
        ...


def _methods_call_around(src: GoSource, call: Node) -> Optional[Node]:
    """The `.Methods(...)` call a registration call is chained into, if any."""
    parent = call.parent
    if parent is None or parent.type != "selector_expression":
        return None
    if src.text(parent.child_by_field_name("field")) != "Methods":
        return None
    outer = parent.parent
    if outer is None or outer.type != "call_expression":
        return None
    return outer


class MethodsChainMatcher:
    """
    gorilla/mux style:
      r.HandleFunc("/users", h).Methods("GET", "POST")
      r.Methods("POST").HandleFunc("/users", h)
    """

    def match(self, rc: RouteCall) -> Optional[list[Endpoint]]:
        operand, name = rc.selector()
        if operand is None or operand.type != "call_expression":
            return None
        _, inner = call_selector(rc.src, operand)

        if name == "Methods" and inner in HANDLE_SELECTORS:
            registration, methods_call = operand, rc.call
        elif name in HANDLE_SELECTORS and inner == "Methods":
            registration, methods_call = rc.call, operand
        else:
            return None

        methods = string_verbs(rc.src, call_arguments(methods_call))
        if not methods:
            return None
        path = route_path(rc.src, registration)
        if path is None:
            return None

        handler = guess_handler_name(rc.src, registration)
        body = rc.body_for(handler)
        return [
            rc.endpoint(m, path, handler, body=body if m in BODY_METHODS else "")
            for m in methods
        ]


class GraphQLPostMatcher:
    """r.POST("/graphql", h) and friends."""

    def match(self, rc: RouteCall) -> Optional[list[Endpoint]]:
        _, name = rc.selector()
        if name != "POST":
            return None
        path = route_path(rc.src, rc.call)
        if path is None or not is_graphql_path(path):
            return None
        return [
            rc.endpoint(
                "POST",
                path,
                guess_handler_name(rc.src, rc.call),
                kind="GraphQL",
                graphql=GraphQLInfo(operation="query"),
            )
        ]


class VerbMatcher:
    """chi / gin / echo / fiber style: r.Get("/x", h), r.POST("/x", h)."""

    def match(self, rc: RouteCall) -> Optional[list[Endpoint]]:
        _, name = rc.selector()
        method = name.upper()
        if method not in HTTP_VERBS:
            return None
        path = route_path(rc.src, rc.call)
        if path is None:
            return None
        handler = guess_handler_name(rc.src, rc.call)
        return [rc.endpoint(method, path, handler, body=rc.body_for(handler))]


class HandleMatcher:
    """net/http style: mux.HandleFunc("/x", h) without a method restriction."""

    def match(self, rc: RouteCall) -> Optional[list[Endpoint]]:
        _, name = rc.selector()
        if name not in HANDLE_SELECTORS:
            return None

        methods_call = _methods_call_around(rc.src, rc.call)
        if methods_call is not None and string_verbs(rc.src, call_arguments(methods_call)):
            # reported per verb by MethodsChainMatcher
            return []

        path = route_path(rc.src, rc.call)
        if path is None:
            return None
        handler = guess_handler_name(rc.src, rc.call)
        return [rc.endpoint(ANY_METHOD, path, handler, body=rc.body_for(handler))]


DEFAULT_MATCHERS: tuple[RouteMatcher, ...] = (
    MethodsChainMatcher(),
    GraphQLPostMatcher(),
    VerbMatcher(),
    HandleMatcher(),
)


class RouteCallRecognizer:
    def __init__(
        self,
        bodies: Optional[Mapping[str, str]] = None,
        matchers: Sequence[RouteMatcher] = DEFAULT_MATCHERS,
    ) -> None:
        self.bodies = bodies if bodies is not None else MappingProxyType({})
        self.matchers = tuple(matchers)

    def recognize(self, src: GoSource) -> list[Endpoint]:
        out: list[Endpoint] = []
        for call in iter_calls(src.root):
            rc = RouteCall(src=src, call=call, bodies=self.bodies)
            for matcher in self.matchers:
                found = matcher.match(rc)
                if found is None:
                    continue
                out.extend(found)
                break
        return out
