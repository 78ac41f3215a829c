from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from tree_sitter import Node

from postgen.domain.analysis import ProjectAnalysis, StructDefinition, StructField
from postgen.extractors.golang.syntax import (
    GoSource,
    address_of_identifier,
    call_arguments,
    call_selector,
    iter_calls,
    walk,
)
from postgen.extractors.golang.types import render_json_object, struct_fields
from postgen.repo.architecture_detector import DTO_SUFFIXES

logger = logging.getLogger(__name__)

BIND_SELECTORS = frozenset({"ShouldBindJSON", "BindJSON", "ShouldBind", "Bind"})

GENERIC_REQUEST_SHAPE = '{"data":"string","parameters":{}}'
DEFAULT_SHAPE = '{"id":"string","name":"string","value":"string","timestamp":"2024-01-01T00:00:00Z"}'

# checked in order, first substring hit wins
NAME_SHAPES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("user",), '{"name":"string","email":"string","id":"string"}'),
    (("create", "post"), '{"name":"string","value":"string","type":"string"}'),
    (("update", "put", "patch"), '{"id":"string","name":"string","value":"string"}'),
    (("delete",), '{"id":"string","reason":"string"}'),
    (("request", "req"), GENERIC_REQUEST_SHAPE),
)


@dataclass(frozen=True)
class BodyDetectionResult:
    has_body: bool = False
    example: str = ""
    struct_name: str = ""


@dataclass(frozen=True)
class LocalStruct:
    """Anonymous struct declared inside the function being inspected."""

    fields: list[StructField] = field(default_factory=list)


def body_from_variable_name(var_name: str) -> str:
    lowered = var_name.lower()
    for needles, shape in NAME_SHAPES:
        if any(n in lowered for n in needles):
            return shape
    return DEFAULT_SHAPE


def body_idiom(src: GoSource, call: Node) -> Optional[str]:
    """
    Name of the body-consuming idiom a call matches, or None:
      bind       c.ShouldBindJSON(&v) / BindJSON / ShouldBind / Bind
      decode     json.NewDecoder(r.Body).Decode(&v)
      unmarshal  json.Unmarshal(data, &v)
      read_all   io.ReadAll(r.Body)
    """
    operand, name = call_selector(src, call)
    if operand is None:
        return None
    if name in BIND_SELECTORS:
        return "bind"
    if name == "Decode" and operand.type == "call_expression":
        _, inner = call_selector(src, operand)
        if inner == "NewDecoder":
            return "decode"
    if operand.type == "identifier":
        pkg = src.text(operand)
        if pkg == "json" and name == "Unmarshal":
            return "unmarshal"
        if pkg == "io" and name == "ReadAll":
            return "read_all"
    return None


def target_identifier(src: GoSource, call: Node) -> str:
    # json.Unmarshal decodes into its second argument
    for arg in call_arguments(call)[:2]:
        name = address_of_identifier(src, arg)
        if name:
            return name
    return ""


def local_struct_hint(src: GoSource, body: Node) -> Optional[LocalStruct]:
    """First anonymous struct bound to a variable in syntax order."""
    for node in walk(body):
        if node.type == "var_spec":
            type_node = node.child_by_field_name("type")
            if type_node is not None and type_node.type == "struct_type":
                return LocalStruct(fields=struct_fields(src, type_node))
            found = _struct_literal(src, node.child_by_field_name("value"))
        elif node.type in ("short_var_declaration", "assignment_statement"):
            found = _struct_literal(src, node.child_by_field_name("right"))
        else:
            continue
        if found is not None:
            return found
    return None


def _struct_literal(src: GoSource, exprs: Optional[Node]) -> Optional[LocalStruct]:
    if exprs is None:
        return None
    for expr in exprs.named_children:
        if expr.type != "composite_literal":
            continue
        type_node = expr.child_by_field_name("type")
        if type_node is not None and type_node.type == "struct_type":
            return LocalStruct(fields=struct_fields(src, type_node))
    return None


def _names_match(var_name: str, struct_name: str) -> bool:
    if struct_name in var_name or var_name in struct_name:
        return True
    # CreateUserRequest ~ createUser
    for suffix in DTO_SUFFIXES:
        if struct_name.endswith(suffix):
            stripped = struct_name[: -len(suffix)]
            return bool(stripped) and (stripped in var_name or var_name in stripped)
    return False


class BodyDetector:
    """
    Decides whether a function consumes a JSON request body and synthesizes an
    example payload for it.

    The project index is an explicit dependency: detectors built for different
    scans never share state.
    """

    def __init__(self, analysis: Optional[ProjectAnalysis] = None) -> None:
        self.analysis = analysis

    def detect(self, src: GoSource, fn: Node) -> BodyDetectionResult:
        body = fn.child_by_field_name("body")
        if body is None:
            return BodyDetectionResult()

        local = local_struct_hint(src, body)

        for call in iter_calls(body):
            idiom = body_idiom(src, call)
            if idiom is None:
                continue
            example, struct_name = self._synthesize(target_identifier(src, call), local)
            logger.debug(
                "%s: %s consumes a body via %s (struct=%s)",
                src.path,
                src.function_name(fn),
                idiom,
                struct_name or "-",
            )
            return BodyDetectionResult(has_body=True, example=example, struct_name=struct_name)

        return BodyDetectionResult()

    def _synthesize(self, target: str, local: Optional[LocalStruct]) -> tuple[str, str]:
        if target and self.analysis is not None:
            sd = self._match_project_struct(target)
            if sd is not None:
                return render_json_object(sd.fields), sd.name

        if local is not None and local.fields:
            return render_json_object(local.fields), ""

        if target:
            return body_from_variable_name(target), ""

        return GENERIC_REQUEST_SHAPE, ""

    def _match_project_struct(self, target: str) -> Optional[StructDefinition]:
        assert self.analysis is not None
        lowered = target.lower()
        for sd in self.analysis.structs.values():
            if _names_match(lowered, sd.name.lower()):
                return sd

        for dto in self.analysis.architecture.dto_patterns:
            if lowered in dto.lower():
                sd = self.analysis.find_struct(dto)
                if sd is not None:
                    return sd
        return None


def index_handler_bodies(sources: Iterable[GoSource], detector: BodyDetector) -> Mapping[str, str]:
    """
    Stage one of a scan: function name -> example body for every function of
    every file that consumes a body. Read-only once built.
    """
    bodies: dict[str, str] = {}
    for src in sources:
        for fn in src.functions():
            result = detector.detect(src, fn)
            if result.has_body and result.example:
                bodies[src.function_name(fn)] = result.example
    logger.debug("indexed %d handler bodies", len(bodies))
    return MappingProxyType(bodies)
