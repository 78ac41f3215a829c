from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping

from postgen.domain.analysis import ProjectAnalysis
from postgen.domain.models import Endpoint
from postgen.extractors.golang.analyzer import analyze_sources, load_sources
from postgen.extractors.golang.annotations import parse_comments
from postgen.extractors.golang.body import BodyDetector, index_handler_bodies
from postgen.extractors.golang.routes import RouteCallRecognizer
from postgen.orchestrator.merge import EndpointSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOptions:
    root: Path
    use_types: bool = True
    build_tags: str = ""  # reserved, not used by the syntactic scan
    extra_ignores: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScanResult:
    endpoints: list[Endpoint]
    analysis: ProjectAnalysis
    files_scanned: int
    handler_bodies: Mapping[str, str]


def run_scan(root: Path, extra_ignores: Iterable[str] = ()) -> ScanResult:
    """
    Discover every endpoint under root.

    Stage 1 indexes request bodies of all functions project-wide; stage 2
    recognizes annotations and route calls file by file and attaches those
    bodies to handlers, wherever the handler is declared. A file that does not
    parse raises ProjectAnalysisError.
    """
    root = Path(root)
    sources = load_sources(root, extra_ignores)
    analysis = analyze_sources(sources, root)

    # stage 1: handler name -> example body
    bodies = index_handler_bodies(sources, BodyDetector(analysis))

    # stage 2: endpoints, in file walk order
    recognizer = RouteCallRecognizer(bodies)
    endpoints = EndpointSet()
    for src in sources:
        added = endpoints.extend(parse_comments(src))
        added += endpoints.extend(recognizer.recognize(src))
        if added:
            logger.debug("%s: %d endpoints", src.path, added)

    if not endpoints:
        logger.warning("no endpoints found under %s", root)
    else:
        logger.info("found %d endpoints in %d files", len(endpoints), len(sources))

    return ScanResult(
        endpoints=endpoints.to_list(),
        analysis=analysis,
        files_scanned=len(sources),
        handler_bodies=bodies,
    )


def scan_with_options(opts: ScanOptions) -> ScanResult:
    if opts.use_types or opts.build_tags:
        logger.debug(
            "typed analysis is not available; scanning syntactically (use_types=%s, build_tags=%r)",
            opts.use_types,
            opts.build_tags,
        )
    return run_scan(opts.root, extra_ignores=opts.extra_ignores)
