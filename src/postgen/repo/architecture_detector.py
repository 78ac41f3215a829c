from __future__ import annotations

from typing import Iterable

from postgen.domain.analysis import ArchitecturePattern, PackageInfo

CLEAN_KEYWORDS = (
    "domain", "entity", "entities",
    "usecase", "usecases", "application",
    "repository", "repositories", "infrastructure",
    "handler", "handlers", "delivery", "transport",
    "service", "services",
)
MVC_KEYWORDS = ("model", "view", "controller")
LAYERED_KEYWORDS = (
    "api", "web", "http",
    "business", "logic", "service",
    "data", "dal", "persistence",
    "common", "shared", "utils",
)
DTO_SUFFIXES = ("request", "req", "dto", "model", "entity", "response", "resp")


def _keyword_score(package_names: list[str], keywords: Iterable[str]) -> float:
    keywords = tuple(keywords)
    if not keywords:
        return 0.0
    lowered = [p.lower() for p in package_names]
    hits = sum(1 for kw in keywords if any(kw in p for p in lowered))
    return hits / len(keywords)


def _microservice_score(packages: dict[str, PackageInfo]) -> float:
    score = 0.0
    for pkg in packages.values():
        for imp in pkg.imports:
            if "grpc" in imp or "protobuf" in imp:
                score += 0.3
    if "main" in packages:
        score += 0.2
    for name in packages:
        lowered = name.lower()
        if "config" in lowered or "env" in lowered:
            score += 0.2
    return min(score, 1.0)


def detect_dto_patterns(struct_names: Iterable[str]) -> tuple[str, ...]:
    return tuple(n for n in struct_names if n.lower().endswith(DTO_SUFFIXES))


def detect_architecture_pattern(
    packages: dict[str, PackageInfo],
    struct_names: Iterable[str] = (),
) -> ArchitecturePattern:
    """
    Heuristic layout classification. Deterministic, package names only.
    Used as a tie-break signal; never raises.
    """
    layers = [name for name in packages if name != "main"]

    scores = [
        ("clean", _keyword_score(layers, CLEAN_KEYWORDS)),
        ("mvc", _keyword_score(layers, MVC_KEYWORDS)),
        ("layered", _keyword_score(layers, LAYERED_KEYWORDS)),
        ("microservice", _microservice_score(packages)),
    ]

    # first family wins ties
    kind, confidence = scores[0]
    for candidate, score in scores[1:]:
        if score > confidence:
            kind, confidence = candidate, score

    if confidence <= 0.0:
        kind, confidence = "unknown", 0.0

    return ArchitecturePattern(
        kind=kind,
        confidence=confidence,
        layers=tuple(layers),
        dto_patterns=detect_dto_patterns(struct_names),
    )
