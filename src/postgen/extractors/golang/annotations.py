"""
Comment directives.

    // @route POST /v1/users Create a user
    // @header Authorization: Bearer {{token}}
    // @body {"name":"alice"}
    // @tag users
    // @graphql mutation /graphql Create user
    // @schema type User { id: ID! }
    // @query mutation { createUser { id } }
    // @variables {"name":"alice"}

Every route-like directive (@route, @rest, @graphql) of a comment group declares
one endpoint; all other directives of the same group apply to every one of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from postgen.domain.models import ANY_METHOD, HTTP_VERBS, Endpoint, GraphQLInfo
from postgen.extractors.golang.syntax import GoSource

_I = re.IGNORECASE

ROUTE_RE = re.compile(r"@route\s+([A-Z]+)\s+(\S+)(?:\s+(.*))?$", _I)
REST_RE = re.compile(r"@rest\s+([A-Z]+)\s+(\S+)(?:\s+(.*))?$", _I)
GRAPHQL_RE = re.compile(r"@graphql\s+(query|mutation|subscription)\s+(\S+)(?:\s+(.*))?$", _I)
HEADER_RE = re.compile(r"@header\s+([^:]+):\s*(.+)$", _I)
BODY_RE = re.compile(r"@body\s+(.+)$", _I)
TAG_RE = re.compile(r"@tag\s+([A-Za-z0-9_.\-/]+)$", _I)
SCHEMA_RE = re.compile(r"@schema\s+(.+)$", _I)
QUERY_RE = re.compile(r"@query\s+(.+)$", _I)
VARIABLES_RE = re.compile(r"@variables\s+(.+)$", _I)

_ALL = (HEADER_RE, BODY_RE, TAG_RE, SCHEMA_RE, QUERY_RE, VARIABLES_RE, GRAPHQL_RE, REST_RE, ROUTE_RE)


@dataclass(frozen=True)
class RouteDirective:
    method: str
    path: str
    description: str
    kind: str  # REST | GraphQL
    operation: str = ""


@dataclass
class SharedDirectives:
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    tags: list[str] = field(default_factory=list)
    schema_text: str = ""
    query: str = ""
    variables: str = ""


def parse_comments(src: GoSource) -> list[Endpoint]:
    """Endpoints declared by the directives of every comment group of a file."""
    out: list[Endpoint] = []
    for group in src.comment_groups():
        out.extend(parse_comment_lines(src.comment_lines(group), src.path))
    return out


def parse_comment_lines(lines: Iterable[str], source_file: str) -> list[Endpoint]:
    directives = []
    for raw in lines:
        line = raw.strip()
        if line and any(p.search(line) for p in _ALL):
            directives.append(line)

    routes = _route_directives(directives)
    if not routes:
        return []
    shared = _shared_directives(directives)

    endpoints = []
    for route in routes:
        graphql: Optional[GraphQLInfo] = None
        if route.kind == "GraphQL":
            graphql = GraphQLInfo(
                operation=route.operation,
                schema_text=shared.schema_text,
                query=shared.query,
                variables=shared.variables,
            )
        endpoints.append(
            Endpoint(
                method=route.method,
                path=route.path,
                source_file=source_file,
                description=route.description,
                headers=dict(shared.headers),
                body_raw=shared.body,
                tags=list(shared.tags),
                kind=route.kind,
                graphql=graphql,
            )
        )
    return endpoints


def _route_directives(lines: list[str]) -> list[RouteDirective]:
    routes: list[RouteDirective] = []
    for line in lines:
        m = GRAPHQL_RE.search(line)
        if m:
            routes.append(
                RouteDirective(
                    method="POST",
                    path=m.group(2),
                    description=(m.group(3) or "").strip(),
                    kind="GraphQL",
                    operation=m.group(1).lower(),
                )
            )
        for rx in (REST_RE, ROUTE_RE):
            m = rx.search(line)
            if not m:
                continue
            method = m.group(1).upper()
            if method not in HTTP_VERBS:
                method = ANY_METHOD
            routes.append(
                RouteDirective(
                    method=method,
                    path=m.group(2),
                    description=(m.group(3) or "").strip(),
                    kind="REST",
                )
            )
    return routes


def _shared_directives(lines: list[str]) -> SharedDirectives:
    shared = SharedDirectives()
    for line in lines:
        m = HEADER_RE.search(line)
        if m:
            key = m.group(1).strip()
            if key:
                shared.headers[key] = m.group(2).strip()
            continue

        m = BODY_RE.search(line)
        if m:
            shared.body = m.group(1).strip()
            continue

        m = TAG_RE.search(line)
        if m:
            tag = m.group(1).strip()
            if tag and tag not in shared.tags:
                shared.tags.append(tag)
            continue

        m = SCHEMA_RE.search(line)
        if m:
            shared.schema_text = m.group(1).strip()
            continue

        m = QUERY_RE.search(line)
        if m:
            shared.query = m.group(1).strip()
            continue

        m = VARIABLES_RE.search(line)
        if m:
            shared.variables = m.group(1).strip()
    return shared
