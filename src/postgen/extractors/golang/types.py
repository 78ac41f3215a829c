from __future__ import annotations

import json
import re
from typing import Iterable, Optional

from tree_sitter import Node

from postgen.domain.analysis import StructField
from postgen.extractors.golang.syntax import GoSource, unquote

UNKNOWN_TYPE = "interface{}"
EXCLUDED_KEY = "-"

_INTEGER_TYPES = {
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "byte", "rune",
}
_FLOAT_TYPES = {"float32", "float64"}

# key:"value" pairs of a struct tag (reflect.StructTag conventions)
_TAG_PAIR = re.compile(r'([^\s:"]+):"((?:[^"\\]|\\.)*)"')

_NAME_TYPES = ("type_identifier", "identifier", "package_identifier", "field_identifier")
_LIST_TYPES = ("slice_type", "array_type", "implicit_length_array_type")


def render_type(src: GoSource, node: Optional[Node]) -> str:
    """
    Canonical text of a type expression:
      T, pkg.T, []T (slices and arrays), map[K]V, *T, ...T
    Anything else renders as "interface{}".
    """
    if node is None:
        return UNKNOWN_TYPE

    t = node.type
    if t in _NAME_TYPES:
        return src.text(node)
    if t == "qualified_type":
        return f"{src.text(node.child_by_field_name('package'))}.{src.text(node.child_by_field_name('name'))}"
    if t == "selector_expression":
        return f"{render_type(src, node.child_by_field_name('operand'))}.{src.text(node.child_by_field_name('field'))}"
    if t in _LIST_TYPES:
        return "[]" + render_type(src, node.child_by_field_name("element"))
    if t == "map_type":
        key = render_type(src, node.child_by_field_name("key"))
        value = render_type(src, node.child_by_field_name("value"))
        return f"map[{key}]{value}"
    if t == "pointer_type":
        inner = node.named_children[0] if node.named_children else None
        return "*" + render_type(src, inner)
    if t == "parenthesized_type":
        return render_type(src, node.named_children[0] if node.named_children else None)
    if t == "generic_type":
        return render_type(src, node.child_by_field_name("type"))
    return UNKNOWN_TYPE


def extract_json_tag(tag: str) -> str:
    """
    Serialization key from a struct tag such as `json:"name,omitempty" db:"x"`.

    Returns "" when the tag has no json key (or only options), and "-" when the
    field is excluded from serialization.
    """
    for key, value in _TAG_PAIR.findall(tag or ""):
        if key != "json":
            continue
        if value == EXCLUDED_KEY:
            return EXCLUDED_KEY
        return value.split(",", 1)[0]
    return ""


def resolve_json_key(field_name: str, tag: Optional[str]) -> str:
    key = extract_json_tag(tag) if tag else ""
    return key or field_name.lower()


def example_value(go_type: str) -> str:
    """Representative JSON value (as text) for a canonical type name."""
    t = go_type.strip().lstrip("*")
    if t == "string":
        return '"string"'
    if t in _INTEGER_TYPES:
        return "0"
    if t in _FLOAT_TYPES:
        return "0.0"
    if t == "bool":
        return "false"
    if t.startswith("[]"):
        return "[" + example_value(t[2:]) + "]"
    if t.startswith("map["):
        return "{}"
    # interface{}, any and custom types
    return '"string"'


def render_json_object(fields: Iterable[StructField]) -> str:
    """Single-line JSON example for a struct, keys in declaration order."""
    pairs = []
    for f in fields:
        key = f.json_key or f.name.lower()
        if key == EXCLUDED_KEY:
            continue
        pairs.append(f"{json.dumps(key, ensure_ascii=False)}:{example_value(f.type)}")
    return "{" + ",".join(pairs) + "}"


def struct_fields(src: GoSource, struct_node: Node) -> list[StructField]:
    """Fields of a struct_type node, embedded fields named after their type."""
    out: list[StructField] = []
    body = next((c for c in struct_node.named_children if c.type == "field_declaration_list"), None)
    if body is None:
        return out

    for decl in body.named_children:
        if decl.type != "field_declaration":
            continue
        type_node = decl.child_by_field_name("type")
        type_str = render_type(src, type_node)
        tag_node = decl.child_by_field_name("tag")
        tag = unquote(src, tag_node) if tag_node is not None else None

        names = [src.text(n) for n in decl.children_by_field_name("name")]
        if not names:
            # embedded: `Base`, `*Base`, `pkg.Base`
            if any(c.type == "*" for c in decl.children):
                type_str = "*" + type_str
            names = [type_str.lstrip("*").rsplit(".", 1)[-1]]

        for name in names:
            out.append(StructField(name=name, type=type_str, json_key=resolve_json_key(name, tag)))
    return out
