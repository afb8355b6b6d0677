"""Typer-based CLI for monoindex."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import load_config
from .embeddings import HashEmbeddingModel, embed_symbols
from .errors import MonoindexError
from .models import AnalysisResult, SymbolDefinition
from .orchestrator import WorkspaceAnalyzer
from .symbol_indexer import kind_counts
from .vector_store import InMemoryVectorStore

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="Discover, batch and index the packages of a Python monorepo.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"monoindex v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=debug, rich_tracebacks=debug)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress messages."),
    debug: bool = typer.Option(False, "--debug", help="Log everything, including per-file decisions."),
):
    """monoindex: workspace analysis for Python monorepos."""
    _configure_logging(verbose, debug)


def _run_analysis(
    path: Path,
    config_path: Optional[Path],
    targets: Optional[List[str]] = None,
    max_tokens: Optional[int] = None,
) -> AnalysisResult:
    base_dir = path.resolve()
    try:
        config = load_config(base_dir, config_path).with_overrides(targets, max_tokens)
        return WorkspaceAnalyzer().analyze(config, base_dir)
    except MonoindexError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)


def _definition_dict(definition: SymbolDefinition) -> Dict[str, Any]:
    return {
        "id": definition.id,
        "name": definition.name,
        "qualname": definition.qualname,
        "kind": definition.kind.label,
        "documentable": definition.kind.documentable,
        "exported": definition.exported,
        "file": definition.location.relative_path,
        "line": definition.location.line,
        "column": definition.location.column,
        "usages": [
            {"file": u.file_path, "line": u.line, "column": u.column, "snippet": u.snippet}
            for u in definition.usages
        ],
    }


def _result_dict(result: AnalysisResult, base_dir: Path) -> Dict[str, Any]:
    def rel(p: Path) -> str:
        try:
            return p.resolve().relative_to(base_dir).as_posix() or "."
        except ValueError:
            return str(p)

    return {
        "packages": [
            {
                "name": p.name,
                "kind": p.kind,
                "path": rel(p.root_path),
                "priority": p.priority,
                "dependencies": p.dependency_count,
                "typed": p.typed,
            }
            for p in result.packages
        ],
        "batches": [
            {
                "id": b.id,
                "priority": b.priority,
                "estimated_tokens": b.estimated_tokens,
                "files": [rel(f.path) for f in b.files],
            }
            for b in result.batches
        ],
        "symbols": [_definition_dict(d) for d in result.symbol_table.values()],
    }


@app.command("analyze")
def analyze(
    path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Workspace root."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a monoindex.toml file."),
    target: Optional[List[str]] = typer.Option(
        None, "--target", "-t", help="Glob pattern replacing the include patterns (repeatable)."
    ),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Token budget per batch."),
    json_output: bool = typer.Option(False, "--json", help="Print the full result as JSON."),
):
    """Discover packages, batch their files and index symbols."""
    base_dir = path.resolve()
    result = _run_analysis(path, config_path, target, max_tokens)

    if json_output:
        typer.echo(json.dumps(_result_dict(result, base_dir), indent=2))
        return

    if not result.packages:
        console.print(f"[yellow]No packages found in {base_dir}[/yellow]")
        return

    pkg_table = Table(title="Packages")
    pkg_table.add_column("Name", style="cyan")
    pkg_table.add_column("Kind")
    pkg_table.add_column("Priority", justify="right")
    pkg_table.add_column("Deps", justify="right")
    pkg_table.add_column("Typed", justify="center")
    for pkg in result.packages:
        pkg_table.add_row(
            pkg.name, pkg.kind, f"{pkg.priority:g}", str(pkg.dependency_count), "✓" if pkg.typed else ""
        )
    console.print(pkg_table)

    batch_table = Table(title="Batches")
    batch_table.add_column("ID", justify="right")
    batch_table.add_column("Files", justify="right")
    batch_table.add_column("Tokens", justify="right")
    batch_table.add_column("Priority", justify="right")
    for batch in result.batches:
        batch_table.add_row(str(batch.id), str(len(batch)), str(batch.estimated_tokens), f"{batch.priority:g}")
    console.print(batch_table)

    table = result.symbol_table
    kinds = ", ".join(f"{kind} {count}" for kind, count in kind_counts(table))
    usages = sum(len(d.usages) for d in table.values())
    console.print(
        f"[green]✓[/green] {len(result.packages)} packages, {result.file_count} files, "
        f"{len(result.batches)} batches, {len(table)} symbols, {usages} usages"
    )
    if kinds:
        console.print(f"  [dim]{kinds}[/dim]")


@app.command("symbols")
def symbols(
    path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Workspace root."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a monoindex.toml file."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only show definitions with this name."),
    limit: int = typer.Option(50, "--limit", "-l", help="Maximum rows to show (0 for all)."),
    json_output: bool = typer.Option(False, "--json", help="Print definitions as JSON."),
):
    """List symbol definitions with their usage counts."""
    result = _run_analysis(path, config_path)
    table = result.symbol_table
    definitions = table.by_name(name) if name else list(table.values())
    if limit > 0:
        definitions = definitions[:limit]

    if json_output:
        typer.echo(json.dumps([_definition_dict(d) for d in definitions], indent=2))
        return

    if not definitions:
        console.print("[yellow]No matching symbols.[/yellow]")
        return

    out = Table(title=f"Symbols ({len(definitions)} of {len(table)})")
    out.add_column("Symbol", style="cyan")
    out.add_column("Kind")
    out.add_column("Location")
    out.add_column("Usages", justify="right")
    for d in definitions:
        out.add_row(d.qualname, d.kind.label, d.id, str(len(d.usages)))
    console.print(out)


@app.command("related")
def related(
    symbol: str = typer.Argument(..., help="Symbol id (path:line:column) or name."),
    path: Path = typer.Argument(Path("."), exists=True, file_okay=False, help="Workspace root."),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a monoindex.toml file."),
    min_score: float = typer.Option(0.1, "--min-score", help="Minimum cosine similarity."),
    limit: int = typer.Option(10, "--limit", "-l", help="Maximum results (0 for all)."),
):
    """Find symbols similar to SYMBOL using local hash embeddings."""
    result = _run_analysis(path, config_path)
    table = result.symbol_table

    definition = table.get(symbol)
    if definition is None:
        matches = table.by_name(symbol)
        if not matches:
            console.print(f"[red]Symbol {escape(repr(symbol))} not found.[/red]")
            raise typer.Exit(code=1)
        definition = matches[0]

    store = InMemoryVectorStore()
    store.add_entries(embed_symbols(table, HashEmbeddingModel()))
    query = store.get(definition.id)
    hits = store.find_related(
        query.embedding if query is not None else [],
        min_score=min_score,
        max_results=limit,
        exclude_id=definition.id,
    )

    console.print(f"Related to [cyan]{definition.qualname}[/cyan] ({definition.id})")
    if not hits:
        console.print("[yellow]No related symbols above the score threshold.[/yellow]")
        return

    out = Table()
    out.add_column("Score", justify="right")
    out.add_column("Symbol", style="cyan")
    out.add_column("Kind")
    out.add_column("File")
    for hit in hits:
        out.add_row(f"{hit.relationship_score:.3f}", hit.name, hit.kind, hit.relative_file_path)
    console.print(out)


if __name__ == "__main__":
    app()
