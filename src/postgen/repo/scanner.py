from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from postgen.repo.ignore import is_go_source, should_ignore_dir


def scan_go_files(repo_path: Path, extra_ignores: Iterable[str] = ()) -> list[Path]:
    """
    Return the non-test .go files under repo_path in walk order.

    Directories and files are visited in sorted order so that repeated scans of
    the same tree produce the same sequence. Paths keep repo_path as given.
    """
    extra = tuple(extra_ignores)
    out: list[Path] = []
    for root, dirs, files in _walk(repo_path):
        root_p = Path(root)

        # prune ignored dirs
        dirs[:] = sorted(d for d in dirs if not should_ignore_dir(root_p / d, extra))

        for f in sorted(files):
            if is_go_source(f):
                out.append(root_p / f)
    return out


def has_test_files(dir_path: Path) -> bool:
    try:
        return any(p.name.endswith("_test.go") for p in dir_path.iterdir() if p.is_file())
    except OSError:
        return False


def read_module_name(repo_path: Path) -> str:
    """Module path declared in go.mod, or "" when it cannot be read."""
    try:
        text = (repo_path / "go.mod").read_text(encoding="utf-8", errors="ignore")
    except OSError:
        return ""
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("module ") or line.startswith("module\t"):
            return line[len("module"):].strip().strip('"')
    return ""


def _walk(repo_path: Path):
    # Separate helper to make unit testing easier (can be mocked)
    return os.walk(repo_path)
