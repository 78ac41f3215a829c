from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple


def _int(env: str, default: int) -> int:
    v = os.getenv(env)
    if v is None or not v.strip():
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _csv(env: str) -> Tuple[str, ...]:
    v = os.getenv(env, "")
    return tuple(p.strip() for p in v.split(",") if p.strip())


@dataclass
class Settings:
    # Collection defaults (CLI option defaults)
    COLLECTION_NAME: str = os.getenv("POSTGEN_COLLECTION_NAME", "Go API")
    BASE_URL: str = os.getenv("POSTGEN_BASE_URL", "http://localhost:8080")
    GROUP_DEPTH: int = _int("POSTGEN_GROUP_DEPTH", 1)
    ENV_NAME: str = os.getenv("POSTGEN_ENV_NAME", "Local")

    # Scanning
    EXTRA_SKIP_DIRS: Tuple[str, ...] = field(default_factory=lambda: _csv("POSTGEN_EXTRA_SKIP_DIRS"))

    # Logging
    LOG_LEVEL: str = os.getenv("POSTGEN_LOG_LEVEL", "WARNING")


settings = Settings()
