"""Command line interface for tgdocs."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tgdocs.config import AppConfig
from tgdocs.index.cache import CacheEngine
from tgdocs.tools import ToolHandler
from tgdocs.web.app import app as web_app
from tgdocs.web.app import configure_engine


console = Console()
app = typer.Typer(help="tgdocs - offline-first Terragrunt documentation lookup")

CACHE_DIR_OPTION = typer.Option(None, "--cache-dir", help="Snapshot directory")
OFFLINE_OPTION = typer.Option(False, "--offline", help="Never contact the documentation site")
VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Verbose logging")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_engine(cache_dir: Path | None, offline: bool) -> CacheEngine:
    config = AppConfig(
        cache_dir=cache_dir if cache_dir is not None else AppConfig().cache_dir,
        offline=offline,
    )
    return CacheEngine.from_config(config, base_dir=Path.cwd())


def _tools(cache_dir: Path | None, offline: bool) -> ToolHandler:
    return ToolHandler(_build_engine(cache_dir, offline))


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for"),
    limit: int = typer.Option(5, help="Number of results to display"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Full-text search across the documentation."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool(
        "search_terragrunt_docs", {"query": query, "limit": limit}
    )
    if not result["results"]:
        console.print(f"[yellow]No matches found[/yellow] ({result['total']} total).")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Title")
    table.add_column("Section")
    table.add_column("URL")
    table.add_column("Snippet")
    for item in result["results"]:
        table.add_row(
            escape(item["title"]),
            escape(item["section"]),
            escape(item["url"]),
            escape(item["snippet"][:180]),
        )
    console.print(table)
    console.print(f"Showing {len(result['results'])} of {result['total']} matches.")


@app.command()
def sections(
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """List documentation sections with their page counts."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool("get_terragrunt_sections")
    if not result["sections"]:
        console.print("[yellow]No documentation available.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Section")
    table.add_column("Pages", justify="right")
    for item in result["sections"]:
        table.add_row(escape(item["name"]), str(item["docCount"]))
    console.print(table)
    console.print(f"{result['totalSections']} sections, {result['totalDocs']} pages.")


@app.command()
def section(
    name: str = typer.Argument(..., help="Exact section name, e.g. getting-started"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the pages of one documentation section."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool("get_section_docs", {"section": name})
    if "error" in result:
        console.print(f"[yellow]{escape(result['error'])}[/yellow]")
        if result["availableSections"]:
            console.print("Available sections: " + escape(", ".join(result["availableSections"])))
        return

    for doc in result["docs"]:
        console.print(f"[bold]{escape(doc['title'])}[/bold]  {escape(doc['url'])}")
        console.print(doc["content"], markup=False)
        console.print()


@app.command()
def command(
    name: str = typer.Argument(..., help="CLI command, e.g. plan or run-all"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the reference page of a terragrunt CLI command."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool("get_cli_command_help", {"command": name})
    if "error" in result:
        console.print(f"[yellow]{escape(result['error'])}[/yellow]")
        console.print(escape(result["suggestion"]))
        return

    console.print(f"[bold]{escape(result['title'])}[/bold]  {escape(result['url'])}")
    console.print(result["content"], markup=False)


@app.command()
def config(
    name: str = typer.Argument(..., help="HCL block, attribute or function name"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Look up HCL configuration reference pages."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool("get_hcl_config_reference", {"config": name})
    if "error" in result:
        console.print(f"[yellow]{escape(result['error'])}[/yellow]")
        console.print(escape(result["suggestion"]))
        return

    for doc in result["results"]:
        console.print(f"[bold]{escape(doc['title'])}[/bold]  {escape(doc['url'])}")
        console.print(doc["content"], markup=False)
        console.print()


@app.command()
def examples(
    topic: str = typer.Argument(..., help="Topic to extract code examples for"),
    limit: int = typer.Option(5, help="Number of documents to display"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Extract HCL and CLI examples from matching pages."""
    _setup_logging(verbose)
    result = _tools(cache_dir, offline).call_tool(
        "get_code_examples", {"topic": topic, "limit": limit}
    )
    if "error" in result:
        console.print(f"[yellow]{escape(result['error'])}[/yellow]")
        console.print(escape(result["suggestion"]))
        return

    for item in result["examples"]:
        console.print(f"[bold]{escape(item['title'])}[/bold]  {escape(item['url'])}")
        for snippet in item["examples"]:
            console.print(snippet, markup=False)
            console.print()


@app.command()
def status(
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Load the corpus and report where it came from."""
    _setup_logging(verbose)
    engine = _build_engine(cache_dir, offline)
    engine.get_corpus()
    info = engine.status()
    last_fetch = info.last_fetch_time.isoformat() if info.last_fetch_time else "never"
    console.print(f"Source: [bold]{info.origin}[/bold]")
    console.print(f"Documents: {info.document_count}")
    console.print(f"Last fetch: {last_fetch}")
    console.print(f"Stale: {'yes' if info.is_stale else 'no'}")
    console.print(f"Cache directory: {escape(str(info.cache_dir))}")


@app.command()
def refresh(
    cache_dir: Path = CACHE_DIR_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Fetch a fresh copy of the documentation now."""
    _setup_logging(verbose)
    engine = _build_engine(cache_dir, offline=False)
    if not engine.refresh():
        console.print("[red]Refresh failed; the existing cache was left untouched.[/red]")
        raise typer.Exit(code=1)
    console.print(f"Refreshed {engine.status().document_count} documentation pages.")


@app.command("clear-cache")
def clear_cache(
    cache_dir: Path = CACHE_DIR_OPTION,
) -> None:
    """Delete the persisted documentation snapshot."""
    engine = _build_engine(cache_dir, offline=True)
    removed = engine.clear()
    console.print(f"Removed {removed} cache files.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    cache_dir: Path = CACHE_DIR_OPTION,
    offline: bool = OFFLINE_OPTION,
) -> None:
    """Serve the documentation tools over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    engine = _build_engine(cache_dir, offline)
    configure_engine(engine)
    console.print(
        f"Starting documentation API on http://{host}:{port} (cache: {escape(str(engine.store.cache_dir))})"
    )
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":  # pragma: no cover
    app()
