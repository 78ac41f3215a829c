"""
Tree-sitter helpers for Go sources.

Wraps the tree-sitter Go grammar with the handful of queries the extractors
need: top-level declarations, call expressions, comment groups and string
literals. Parsing never executes or type-checks anything.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Union

import tree_sitter_go
from tree_sitter import Language, Node, Parser, Tree

from postgen.errors import SourceParseError

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tree_sitter_go.language())

FUNCTION_NODE_TYPES = ("function_declaration", "method_declaration")


@lru_cache(maxsize=1)
def _parser() -> Parser:
    return Parser(GO_LANGUAGE)


@dataclass(frozen=True)
class GoSource:
    path: str
    data: bytes
    tree: Tree

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.data[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    @property
    def package_name(self) -> str:
        for child in self.root.named_children:
            if child.type == "package_clause":
                for sub in child.named_children:
                    if sub.type in ("package_identifier", "identifier"):
                        return self.text(sub)
        return ""

    def imports(self) -> list[str]:
        out: list[str] = []
        for child in self.root.named_children:
            if child.type != "import_declaration":
                continue
            for node in walk(child):
                if node.type == "import_spec":
                    value = unquote(self, node.child_by_field_name("path"))
                    if value is not None:
                        out.append(value)
        return out

    def declarations(self, *types: str) -> Iterator[Node]:
        for child in self.root.named_children:
            if not types or child.type in types:
                yield child

    def functions(self) -> Iterator[Node]:
        """Top-level function and method declarations, in source order."""
        return self.declarations(*FUNCTION_NODE_TYPES)

    def function_name(self, fn: Node) -> str:
        return self.text(fn.child_by_field_name("name"))

    def find_function(self, name: str) -> Optional[Node]:
        for fn in self.functions():
            if self.function_name(fn) == name:
                return fn
        return None

    def comment_groups(self) -> list[list[Node]]:
        """
        Group every comment of the file the way go/ast does: comments with no
        token between them and at most one line break between them form one
        group. Trailing comments on consecutive code lines stay separate.
        """
        groups: list[list[Node]] = []
        prev: Optional[Node] = None
        for node in walk(self.root):
            if node.type != "comment":
                continue
            if (
                prev is None
                or node.start_point[0] > prev.end_point[0] + 1
                or self.data[prev.end_byte:node.start_byte].strip()
            ):
                groups.append([node])
            else:
                groups[-1].append(node)
            prev = node
        return groups

    def comment_lines(self, group: list[Node]) -> list[str]:
        """Text of a comment group with the comment markers removed, one entry per line."""
        lines: list[str] = []
        for c in group:
            raw = self.text(c)
            if raw.startswith("//"):
                lines.append(raw[2:])
            elif raw.startswith("/*"):
                lines.extend(raw[2:-2].splitlines())
            else:
                lines.append(raw)
        return lines

    def doc_comments(self, node: Node) -> list[str]:
        """Comment lines directly above a declaration (its doc comment)."""
        group: list[Node] = []
        expected_row = node.start_point[0]
        prev = node.prev_sibling
        while prev is not None and prev.type == "comment" and prev.end_point[0] + 1 >= expected_row:
            group.append(prev)
            expected_row = prev.start_point[0]
            prev = prev.prev_sibling
        group.reverse()
        return [self.text(c)[2:] if self.text(c).startswith("//") else self.text(c) for c in group]


def parse_go_source(source: Union[str, bytes], path: str = "<memory>") -> GoSource:
    data = source.encode("utf-8") if isinstance(source, str) else source
    tree = _parser().parse(data)
    if tree.root_node.has_error:
        bad = _first_error(tree.root_node)
        line = bad.start_point[0] + 1 if bad is not None else None
        detail = "missing " + bad.type if bad is not None and bad.is_missing else "syntax error"
        raise SourceParseError(path, line=line, detail=detail)
    return GoSource(path=path, data=data, tree=tree)


def parse_go_file(path: Path) -> GoSource:
    logger.debug("parsing %s", path)
    return parse_go_source(path.read_bytes(), str(path))


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing or child.type == "ERROR":
            found = _first_error(child)
            if found is not None:
                return found
    return None


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal (a node before its children, children left to right)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def iter_calls(node: Node) -> Iterator[Node]:
    for n in walk(node):
        if n.type == "call_expression":
            yield n


def call_arguments(call: Node) -> list[Node]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [a for a in args.named_children if a.type != "comment"]


def call_selector(src: GoSource, call: Node) -> tuple[Optional[Node], str]:
    """
    For `X.Name(...)` return (X, "Name"); for any other callee (None, "").
    """
    fn = call.child_by_field_name("function")
    if fn is None or fn.type != "selector_expression":
        return None, ""
    return fn.child_by_field_name("operand"), src.text(fn.child_by_field_name("field"))


def address_of_identifier(src: GoSource, node: Optional[Node]) -> str:
    """Name of `ident` in a `&ident` (any unary operator) argument, else ""."""
    if node is None or node.type != "unary_expression":
        return ""
    operand = node.child_by_field_name("operand")
    if operand is None or operand.type != "identifier":
        return ""
    return src.text(operand)


def unquote(src: GoSource, node: Optional[Node]) -> Optional[str]:
    """Value of a Go string literal node, or None for anything else."""
    if node is None:
        return None
    raw = src.text(node)
    if node.type == "raw_string_literal":
        return raw[1:-1].replace("\r", "")
    if node.type != "interpreted_string_literal":
        return None
    return go_unquote(raw[1:-1])


_SIMPLE_ESCAPES = {
    "a": b"\a", "b": b"\b", "f": b"\f", "n": b"\n", "r": b"\r",
    "t": b"\t", "v": b"\v", "\\": b"\\", '"': b'"',
}
_ESCAPE = re.compile(
    r'\\(?:(?P<simple>[abfnrtv\\"])|x(?P<hex>[0-9A-Fa-f]{2})|(?P<oct>[0-3][0-7]{2})'
    r"|u(?P<u4>[0-9A-Fa-f]{4})|U(?P<u8>[0-9A-Fa-f]{8}))"
)


def go_unquote(body: str) -> Optional[str]:
    """
    Decode the body of an interpreted Go string literal (strconv.Unquote rules).

    \\x and octal escapes are single bytes, so "\\xc3\\xa9" is "é". Invalid
    escapes return None. Bytes that are not UTF-8 become U+FFFD.
    """
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out += ch.encode("utf-8")
            i += 1
            continue
        m = _ESCAPE.match(body, i)
        if m is None:
            return None
        if m.group("simple"):
            out += _SIMPLE_ESCAPES[m.group("simple")]
        elif m.group("hex"):
            out.append(int(m.group("hex"), 16))
        elif m.group("oct"):
            out.append(int(m.group("oct"), 8))
        else:
            code = int(m.group("u4") or m.group("u8"), 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                return None
            out += chr(code).encode("utf-8")
        i = m.end()
    return out.decode("utf-8", errors="replace")
