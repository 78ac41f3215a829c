from __future__ import annotations

from pathlib import Path
from typing import Iterable

DEFAULT_IGNORES = {
    "vendor",
    "node_modules",
    "__pycache__",
    "build",
    "dist",
    "bin",
}


def should_ignore_dir(dir_path: Path, extra: Iterable[str] = ()) -> bool:
    name = dir_path.name
    if name.startswith("."):
        return True
    return name in DEFAULT_IGNORES or name in set(extra)


def is_go_source(file_name: str) -> bool:
    return file_name.endswith(".go") and not file_name.endswith("_test.go")
