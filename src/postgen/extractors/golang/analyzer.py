from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from tree_sitter import Node

from postgen.domain.analysis import (
    FunctionInfo,
    InterfaceDefinition,
    MethodSignature,
    PackageInfo,
    Param,
    ProjectAnalysis,
    StructDefinition,
    TypeDefinition,
)
from postgen.errors import ProjectAnalysisError, SourceParseError
from postgen.extractors.golang.syntax import GoSource, parse_go_file
from postgen.extractors.golang.types import render_type, struct_fields
from postgen.repo.architecture_detector import detect_architecture_pattern
from postgen.repo.scanner import has_test_files, read_module_name, scan_go_files

logger = logging.getLogger(__name__)


def load_sources(root: Path, extra_ignores: Iterable[str] = ()) -> list[GoSource]:
    """
    Parse every non-test Go file under root, in walk order.
    The first file that does not parse aborts the whole load.
    """
    sources: list[GoSource] = []
    for path in scan_go_files(root, extra_ignores):
        try:
            sources.append(parse_go_file(path))
        except SourceParseError as exc:
            raise ProjectAnalysisError(f"failed to analyze project: {exc}") from exc
    logger.debug("parsed %d Go files under %s", len(sources), root)
    return sources


def analyze_project(root: Path, extra_ignores: Iterable[str] = ()) -> ProjectAnalysis:
    root = Path(root)
    return analyze_sources(load_sources(root, extra_ignores), root)


def analyze_sources(sources: Iterable[GoSource], root: Path) -> ProjectAnalysis:
    """Build the whole-project index from already parsed files."""
    analysis = ProjectAnalysis()
    for src in sources:
        _index_file(src, analysis)

    for pkg in analysis.packages.values():
        pkg.has_tests = has_test_files(Path(pkg.path))

    analysis.module_name = read_module_name(Path(root))
    analysis.architecture = detect_architecture_pattern(
        analysis.packages,
        [sd.name for sd in analysis.structs.values()],
    )

    logger.info(
        "analyzed %d packages: %d structs, %d interfaces, %d functions (architecture=%s %.2f)",
        len(analysis.packages),
        len(analysis.structs),
        len(analysis.interfaces),
        len(analysis.functions),
        analysis.architecture.kind,
        analysis.architecture.confidence,
    )
    return analysis


def _index_file(src: GoSource, analysis: ProjectAnalysis) -> None:
    package_name = src.package_name
    path = Path(src.path)

    pkg = analysis.packages.get(package_name)
    if pkg is None:
        pkg = PackageInfo(name=package_name, path=str(path.parent), is_main=package_name == "main")
        analysis.packages[package_name] = pkg
    pkg.files.append(path.name)
    pkg.imports.extend(src.imports())

    for decl in src.declarations("type_declaration"):
        comments = src.doc_comments(decl)
        for spec in decl.named_children:
            if spec.type in ("type_spec", "type_alias"):
                _index_type_spec(src, spec, comments, package_name, analysis)

    for fn in src.functions():
        _index_function(src, fn, package_name, analysis)


def _index_type_spec(
    src: GoSource,
    spec: Node,
    comments: list[str],
    package_name: str,
    analysis: ProjectAnalysis,
) -> None:
    name = src.text(spec.child_by_field_name("name"))
    type_node = spec.child_by_field_name("type")
    qualified = f"{package_name}.{name}"
    exported = name[:1].isupper()

    if type_node is not None and type_node.type == "struct_type":
        analysis.structs[qualified] = StructDefinition(
            name=name,
            package=package_name,
            file=src.path,
            exported=exported,
            fields=struct_fields(src, type_node),
            comments=list(comments),
        )
    elif type_node is not None and type_node.type == "interface_type":
        methods = []
        for elem in type_node.named_children:
            # embedded interfaces / type sets are skipped
            if elem.type not in ("method_elem", "method_spec"):
                continue
            methods.append(
                MethodSignature(
                    name=src.text(elem.child_by_field_name("name")),
                    params=tuple(_params(src, elem.child_by_field_name("parameters"))),
                    returns=tuple(_results(src, elem.child_by_field_name("result"))),
                )
            )
        analysis.interfaces[qualified] = InterfaceDefinition(
            name=name,
            package=package_name,
            file=src.path,
            exported=exported,
            methods=methods,
        )
    else:
        analysis.types[qualified] = TypeDefinition(
            name=name,
            underlying=render_type(src, type_node),
            package=package_name,
            file=src.path,
            exported=exported,
        )


def _index_function(src: GoSource, fn: Node, package_name: str, analysis: ProjectAnalysis) -> None:
    name = src.function_name(fn)
    receiver: Optional[Param] = None
    if fn.type == "method_declaration":
        recv = _params(src, fn.child_by_field_name("receiver"))
        if recv:
            receiver = recv[0]

    analysis.functions[f"{package_name}.{name}"] = FunctionInfo(
        name=name,
        package=package_name,
        file=src.path,
        exported=name[:1].isupper(),
        params=_params(src, fn.child_by_field_name("parameters")),
        returns=_results(src, fn.child_by_field_name("result")),
        comments=src.doc_comments(fn),
        is_method=fn.type == "method_declaration",
        receiver=receiver,
    )


def _params(src: GoSource, node: Optional[Node]) -> list[Param]:
    if node is None:
        return []
    out: list[Param] = []
    for p in node.named_children:
        if p.type == "parameter_declaration":
            type_str = render_type(src, p.child_by_field_name("type"))
            names = p.children_by_field_name("name")
            if names:
                out.extend(Param(name=src.text(n), type=type_str) for n in names)
            else:
                out.append(Param(name="", type=type_str))
        elif p.type == "variadic_parameter_declaration":
            type_str = "..." + render_type(src, p.child_by_field_name("type"))
            out.append(Param(name=src.text(p.child_by_field_name("name")), type=type_str))
    return out


def _results(src: GoSource, node: Optional[Node]) -> list[Param]:
    if node is None:
        return []
    if node.type == "parameter_list":
        return _params(src, node)
    return [Param(name="", type=render_type(src, node))]
