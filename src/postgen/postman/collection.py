"""
Postman Collection v2.1 rendering.

Endpoints become request items; folders are items without a request. Folder
layout is controlled by CollectionOptions: path-prefix folders, per-method
sub-folders and an extra "By Tag" tree.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from postgen.domain.models import Endpoint

SCHEMA_V21 = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"
BASE_URL_VAR = "{{baseUrl}}"
TAG_FOLDER = "By Tag"

DEFAULT_GRAPHQL_QUERIES = {
    "query": "query { # Add your query here }",
    "mutation": "mutation { # Add your mutation here }",
    "subscription": "subscription { # Add your subscription here }",
}


class _PostmanModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Info(_PostmanModel):
    name: str
    postman_id: str = Field(alias="_postman_id")
    schema_url: str = Field(default=SCHEMA_V21, alias="schema")
    description: Optional[str] = None


class Header(_PostmanModel):
    key: str
    value: str
    type: Optional[str] = None


class Body(_PostmanModel):
    mode: str = "raw"
    raw: str = ""
    options: dict[str, Any] = Field(default_factory=lambda: {"raw": {"language": "json"}})


class Url(_PostmanModel):
    raw: str
    host: list[str] = Field(default_factory=lambda: [BASE_URL_VAR])
    path: list[str] = Field(default_factory=list)


class Request(_PostmanModel):
    method: str
    header: list[Header] = Field(default_factory=list)
    body: Optional[Body] = None
    url: Url
    description: Optional[str] = None


class Item(_PostmanModel):
    name: str
    request: Optional[Request] = None
    response: Optional[list[Any]] = None
    item: Optional[list[Item]] = None

    @property
    def is_folder(self) -> bool:
        return self.request is None


class Variable(_PostmanModel):
    key: str
    value: str
    type: Optional[str] = None


class Collection(_PostmanModel):
    info: Info
    item: list[Item] = Field(default_factory=list)
    variable: list[Variable] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class CollectionOptions:
    name: str = "Go API"
    base_url: str = "http://localhost:8080"
    group_depth: int = 0  # 0 = flat
    group_by_method: bool = False
    tag_folders: bool = False


def sort_endpoints(endpoints: Iterable[Endpoint]) -> list[Endpoint]:
    """Presentation order: path, then method, then source file."""
    return sorted(endpoints, key=lambda e: (e.path, e.method, e.source_file))


def build_collection(opts: CollectionOptions, endpoints: Iterable[Endpoint]) -> Collection:
    eps = sort_endpoints(endpoints)
    depth = max(opts.group_depth, 0)

    tree: list[Item] = []
    for e in eps:
        leaf = leaf_item(e)
        if depth == 0:
            if opts.group_by_method:
                _folder(tree, e.method.upper()).item.append(leaf)
            else:
                tree.append(leaf)
            continue

        parent = tree
        for segment in split_path(e.path)[:depth]:
            if segment:
                parent = _folder(parent, segment).item
        if opts.group_by_method:
            parent = _folder(parent, e.method.upper()).item
        parent.append(leaf)

    if opts.tag_folders:
        by_tag = tag_tree(eps)
        if by_tag:
            tree.append(Item(name=TAG_FOLDER, item=by_tag))

    return Collection(
        info=Info(name=opts.name, postman_id=str(uuid.uuid4())),
        item=tree,
        variable=[Variable(key="baseUrl", value=opts.base_url, type="string")],
    )


def _folder(items: list[Item], name: str) -> Item:
    """Existing folder called name among items, created (appended) when absent."""
    for it in items:
        if it.is_folder and it.name == name:
            return it
    folder = Item(name=name, item=[])
    items.append(folder)
    return folder


def tag_tree(endpoints: Iterable[Endpoint]) -> list[Item]:
    buckets: dict[str, list[Item]] = {}
    for e in endpoints:
        tags = [t.strip() for t in e.tags if t.strip()]
        if not tags:
            continue
        leaf = leaf_item(e)
        for tag in tags:
            buckets.setdefault(tag, []).append(leaf)
    return [Item(name=tag, item=buckets[tag]) for tag in sorted(buckets)]


def leaf_item(e: Endpoint) -> Item:
    name = f"{e.method.upper()} {e.path}".strip()
    return Item(name=name, request=endpoint_request(e), response=[])


def endpoint_request(e: Endpoint) -> Request:
    headers = [Header(key=k, value=v) for k, v in e.headers.items()]
    has_content_type = any(h.key.lower() == "content-type" for h in headers)

    raw: Optional[str] = None
    if e.is_graphql:
        raw = graphql_body(e)
    elif e.body_raw:
        raw = e.body_raw

    body: Optional[Body] = None
    if raw is not None:
        if not has_content_type:
            headers.append(Header(key="Content-Type", value="application/json"))
        body = Body(raw=raw)

    return Request(
        method=e.method,
        header=headers,
        body=body,
        url=path_url(e.path),
        description=describe(e),
    )


def graphql_body(e: Endpoint) -> str:
    gql = e.graphql
    payload: dict[str, str] = {}
    if gql is not None and gql.query:
        payload["query"] = gql.query
    else:
        operation = gql.operation if gql is not None else "query"
        payload["query"] = DEFAULT_GRAPHQL_QUERIES.get(operation, DEFAULT_GRAPHQL_QUERIES["query"])
    if gql is not None and gql.variables:
        payload["variables"] = gql.variables
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def describe(e: Endpoint) -> str:
    if e.description:
        return e.description
    parts = [f"Source: {e.source_file}"]
    if e.handler:
        parts.append(f"Handler: {e.handler}")
    if e.kind:
        parts.append(f"Type: {e.kind}")
    if e.is_graphql and e.graphql is not None and e.graphql.operation:
        parts.append(f"Operation: {e.graphql.operation}")
    return " | ".join(parts)


def clean_path(path: str) -> str:
    if not path:
        return "/"
    return path if path.startswith("/") else "/" + path


def split_path(path: str) -> list[str]:
    """Non-empty path segments; the root path yields a single empty segment."""
    trimmed = path[1:] if path.startswith("/") else path
    if not trimmed:
        return [""]
    return [s for s in trimmed.split("/") if s]


def path_url(path: str) -> Url:
    return Url(raw=BASE_URL_VAR + clean_path(path), path=split_path(path))
