from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

EndpointKind = Literal["REST", "GraphQL"]
GraphQLOperation = Literal["query", "mutation", "subscription"]

HTTP_VERBS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"})
ANY_METHOD = "ANY"


class GraphQLInfo(BaseModel):
    operation: GraphQLOperation = "query"
    schema_text: str = ""
    query: str = ""
    variables: str = ""


class Endpoint(BaseModel):
    """One discovered route (from a comment directive or a route call)."""

    method: str
    path: str
    source_file: str = ""
    handler: str = ""
    description: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body_raw: str = ""
    tags: list[str] = Field(default_factory=list)
    kind: Optional[EndpointKind] = None
    graphql: Optional[GraphQLInfo] = None

    @property
    def is_graphql(self) -> bool:
        return self.kind == "GraphQL"
