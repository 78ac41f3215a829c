from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from postgen.config import settings
from postgen.errors import PostgenError
from postgen.extractors.golang.analyzer import analyze_project
from postgen.orchestrator.pipeline import ScanOptions, ScanResult, scan_with_options
from postgen.postman.collection import CollectionOptions, build_collection, sort_endpoints
from postgen.postman.environment import build_environment

NO_ENDPOINTS_TIP = "No endpoints found. Tip: use @route for dynamic routes."

app = typer.Typer(no_args_is_help=True, add_completion=False)

endpoints_app = typer.Typer(no_args_is_help=True)
app.add_typer(endpoints_app, name="endpoints")

console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    pkg_logger = logging.getLogger("postgen")
    pkg_logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in pkg_logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        pkg_logger.addHandler(handler)
        pkg_logger.propagate = False


def _repo_path(dir: str) -> Path:
    repo_path = Path(dir).expanduser()
    if not repo_path.exists():
        raise typer.BadParameter(f"Repo path does not exist: {repo_path}")
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Repo path is not a directory: {repo_path}")
    return repo_path


def _scan(repo_path: Path, use_types: bool = True, build_tags: str = "") -> ScanResult:
    opts = ScanOptions(
        root=repo_path,
        use_types=use_types,
        build_tags=build_tags,
        extra_ignores=settings.EXTRA_SKIP_DIRS,
    )
    try:
        return scan_with_options(opts)
    except PostgenError as exc:
        typer.echo(f"error scanning {repo_path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _write(text: str, out: Optional[str]) -> Optional[Path]:
    if not out:
        typer.echo(text)
        return None
    out_path = Path(out).expanduser()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")
    return out_path


@app.command()
def generate(
    dir: str = typer.Argument(".", help="Root directory of the Go project"),
    name: str = typer.Option(settings.COLLECTION_NAME, help="Collection name"),
    base_url: str = typer.Option(settings.BASE_URL, help="Value of the {{baseUrl}} variable"),
    out: Optional[str] = typer.Option(None, help="Collection output path (default: stdout)"),
    group_depth: int = typer.Option(settings.GROUP_DEPTH, help="Folder depth from path segments (0 = flat)"),
    group_by_method: bool = typer.Option(False, help="Add one sub-folder per HTTP method"),
    tag_folders: bool = typer.Option(False, help="Add a 'By Tag' folder tree"),
    use_types: bool = typer.Option(True, help="Reserved: typed analysis"),
    build_tags: str = typer.Option("", help="Reserved: Go build tags"),
    env_out: Optional[str] = typer.Option(None, help="Also write a Postman environment here"),
    env_name: str = typer.Option(settings.ENV_NAME, help="Environment name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Scan a Go project and write a Postman v2.1 collection."""
    _configure_logging(verbose)
    repo_path = _repo_path(dir)

    result = _scan(repo_path, use_types=use_types, build_tags=build_tags)
    if not result.endpoints:
        typer.echo(NO_ENDPOINTS_TIP, err=True)

    collection = build_collection(
        CollectionOptions(
            name=name,
            base_url=base_url,
            group_depth=group_depth,
            group_by_method=group_by_method,
            tag_folders=tag_folders,
        ),
        result.endpoints,
    )
    written = _write(collection.to_json(), out)
    if written is not None:
        typer.echo(f"Wrote {len(result.endpoints)} endpoints to {written}", err=True)

    if env_out:
        env_path = _write(build_environment(env_name, base_url).to_json(), env_out)
        typer.echo(f"Wrote environment '{env_name}' to {env_path}", err=True)


@endpoints_app.command("list")
def endpoints_list(
    dir: str = typer.Argument(".", help="Root directory of the Go project"),
    method: Optional[str] = typer.Option(None, help="Filter by HTTP method (GET/POST/.../ANY)"),
    path_contains: Optional[str] = typer.Option(None, help="Substring match on HTTP path"),
    tag: Optional[str] = typer.Option(None, help="Only endpoints carrying this tag"),
    limit: int = typer.Option(200, help="Max rows to print"),
    format: str = typer.Option("table", help="Output format: table|json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    _configure_logging(verbose)
    repo_path = _repo_path(dir)

    fmt = format.lower().strip()
    if fmt not in ("table", "json"):
        raise typer.BadParameter("format must be one of: table, json")

    rows = sort_endpoints(_scan(repo_path).endpoints)
    if method:
        rows = [e for e in rows if e.method == method.upper()]
    if path_contains:
        rows = [e for e in rows if path_contains in e.path]
    if tag:
        rows = [e for e in rows if tag in e.tags]
    rows = rows[:limit]

    if fmt == "json":
        typer.echo(json.dumps([e.model_dump(exclude_none=True) for e in rows], indent=2))
        return

    console.print(f"[bold]Endpoints:[/bold] {len(rows)} (showing up to {limit})")

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("HANDLER")
    table.add_column("KIND", no_wrap=True)
    table.add_column("TAGS")
    table.add_column("FILE")

    for e in rows:
        table.add_row(e.method, e.path, e.handler, e.kind or "", ",".join(e.tags), e.source_file)

    console.print(table)


@app.command()
def analyze(
    dir: str = typer.Argument(".", help="Root directory of the Go project"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    """Print what the project analyzer knows about a Go project."""
    _configure_logging(verbose)
    repo_path = _repo_path(dir)

    try:
        analysis = analyze_project(repo_path, settings.EXTRA_SKIP_DIRS)
    except PostgenError as exc:
        typer.echo(f"error scanning {repo_path}: {exc}", err=True)
        raise typer.Exit(code=1)

    arch = analysis.architecture
    console.print(f"[bold green]postgen[/bold green] analyze: {repo_path}")
    console.print(f"Module: {analysis.module_name or '-'}")
    console.print(f"Packages: {len(analysis.packages)}")
    console.print(f"Structs: {len(analysis.structs)}")
    console.print(f"Interfaces: {len(analysis.interfaces)}")
    console.print(f"Functions: {len(analysis.functions)}")
    console.print(f"Architecture: [bold]{arch.kind}[/bold] (confidence={arch.confidence:.2f})")
    if arch.dto_patterns:
        console.print(f"DTO patterns: {', '.join(arch.dto_patterns)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
