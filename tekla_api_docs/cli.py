"""
Tekla API Docs CLI - Tekla Open API documentation index

A command-line tool for:
1. Building the parsed-api dataset from an extracted help archive
2. Searching the API reference with fuzzy matching
3. Looking up classes, methods, namespaces and code examples
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tekla_api_docs import __version__
from tekla_api_docs.config import Settings
from tekla_api_docs.errors import DatasetBuildError
from tekla_api_docs.retrieval.resolution_engine import ResolutionEngine
from tekla_api_docs.schemas import ApiRecord, SearchResult
from tekla_api_docs.store.dataset_builder import build_dataset

app = typer.Typer(
    name="tekla-api-docs",
    help="Tekla Open API documentation index",
    add_completion=False,
)

console = Console()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None):
    """Configure root logging for CLI runs."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def _settings(
    dataset_dir: Optional[Path],
    html_dir: Optional[Path] = None,
    offline: bool = False,
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> Settings:
    settings = Settings.from_env(
        dataset_dir=dataset_dir,
        html_dir=html_dir,
        fallback_enabled=False if offline else None,
        log_level=log_level,
    )
    setup_logging(settings.log_level, log_file)
    return settings


def _engine(settings: Settings) -> ResolutionEngine:
    return asyncio.run(ResolutionEngine.create(settings))


def _print_results(results: List[SearchResult]):
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Kind")
    table.add_column("Namespace")
    table.add_column("Summary", overflow="fold")
    for position, result in enumerate(results, start=1):
        table.add_row(str(position), result.title, result.kind, result.namespace or "-", result.summary[:120])
    console.print(table)


def _print_record(record: ApiRecord):
    console.print(Panel.fit(
        f"[bold cyan]{record.title}[/bold cyan]\n\n"
        f"Kind: [yellow]{record.kind}[/yellow]\n"
        f"Namespace: [yellow]{record.namespace or 'unknown'}[/yellow]\n"
        f"Page: [yellow]{record.source_page or '-'}[/yellow]\n\n"
        f"{record.summary or record.description or 'No summary available'}",
        border_style="cyan"
    ))

    info = record.detailed_info
    if info is not None:
        if info.inheritance_chain:
            console.print(f"[bold]Inheritance:[/bold] {' → '.join(info.inheritance_chain)}")
        if info.syntax_text:
            console.print(Panel(info.syntax_text, title="Syntax", border_style="dim"))
        for label, members in (
            ("Constructors", info.constructors),
            ("Properties", info.properties),
            ("Methods", info.methods),
        ):
            if not members:
                continue
            table = Table(title=label, show_header=True, header_style="bold cyan")
            table.add_column("Name")
            table.add_column("Description", overflow="fold")
            table.add_column("Inherited from")
            for member in members:
                table.add_row(member.name, member.description, member.inherited_from or "")
            console.print(table)

    if record.members:
        console.print(f"\n[bold]Related members ({len(record.members)}):[/bold]")
        for member in record.members:
            console.print(f"  • {member.title} [dim]({member.kind})[/dim]")


@app.command()
def build(
    toc: Path = typer.Option(..., "--toc", "-t", help="Table of contents (.hhc) of the extracted archive"),
    html_dir: Path = typer.Option(..., "--html-dir", help="Directory of extracted HTML pages"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Dataset output directory (default: parsed-api)"),
    examples: Optional[Path] = typer.Option(None, "--examples", "-e", help="JSON list of code examples to include"),
    max_items: Optional[int] = typer.Option(None, "--max-items", help="Only process the first N TOC entries"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """
    Build the parsed-api dataset from an extracted help archive.

    Example:
        tekla-api-docs build \\
            --toc extracted-docs/TeklaOpenAPI_Reference.hhc \\
            --html-dir extracted-docs/html \\
            --output parsed-api
    """
    settings = _settings(output, html_dir=html_dir, log_level=log_level, log_file=log_file)

    console.print(Panel.fit(
        "[bold cyan]Tekla Open API Dataset Build[/bold cyan]\n\n"
        f"TOC: [yellow]{toc}[/yellow]\n"
        f"Pages: [yellow]{settings.html_dir}[/yellow]\n"
        f"Output: [yellow]{settings.dataset_dir}[/yellow]\n"
        f"Max items: [yellow]{max_items or 'all'}[/yellow]",
        border_style="cyan"
    ))

    try:
        stats = build_dataset(
            toc,
            settings.dataset_dir,
            settings=settings,
            max_items=max_items,
            examples_path=examples,
        )
    except DatasetBuildError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Wrote {stats.total_items} records to {settings.dataset_dir}[/green]")
    _print_statistics(stats.model_dump())


@app.command()
def search(
    query: str = typer.Argument(..., help="Free-text query (e.g., 'Beam')"),
    kind: str = typer.Option("all", "--kind", "-k", help="Restrict to one kind (class, method, property...)"),
    limit: int = typer.Option(10, "--limit", "-n", help="Maximum number of results"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
    offline: bool = typer.Option(False, "--offline", help="Never consult the developer site"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Fuzzy search over the API reference."""
    engine = _engine(_settings(dataset_dir, offline=offline))
    results = asyncio.run(engine.search(query, kind, limit))

    if as_json:
        console.print_json(json.dumps([result.model_dump(by_alias=True) for result in results]))
        return
    if not results:
        console.print(f"[yellow]No results for '{query}'[/yellow]")
        raise typer.Exit(1)
    _print_results(results)


@app.command(name="class")
def class_details(
    name: str = typer.Argument(..., help="Class name (e.g., 'Beam')"),
    members: bool = typer.Option(True, "--members/--no-members", help="Parse constructors, properties and methods"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
    html_dir: Optional[Path] = typer.Option(None, "--html-dir", help="Directory of extracted HTML pages"),
    offline: bool = typer.Option(False, "--offline", help="Never consult the developer site"),
):
    """Show the best-matching class."""
    engine = _engine(_settings(dataset_dir, html_dir=html_dir, offline=offline))
    record = asyncio.run(engine.get_class_details(name, members))
    if record is None:
        console.print(f"[red]❌ Class not found: {name}[/red]")
        raise typer.Exit(1)
    _print_record(record)


@app.command()
def method(
    name: str = typer.Argument(..., help="Method name (e.g., 'Insert')"),
    class_name: Optional[str] = typer.Option(None, "--class", "-c", help="Restrict to methods of this class"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
    offline: bool = typer.Option(False, "--offline", help="Never consult the developer site"),
):
    """Show the first matching method."""
    engine = _engine(_settings(dataset_dir, offline=offline))
    record = asyncio.run(engine.get_method_details(name, class_name))
    if record is None:
        scope = f" in {class_name}" if class_name else ""
        console.print(f"[red]❌ Method not found: {name}{scope}[/red]")
        raise typer.Exit(1)
    _print_record(record)


@app.command()
def browse(
    namespace: str = typer.Argument(..., help="Namespace prefix (e.g., 'Tekla.Structures.Model')"),
    members: bool = typer.Option(False, "--members", "-m", help="Include methods, properties and other members"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """List the contents of a namespace."""
    engine = _engine(_settings(dataset_dir, offline=True))
    records = asyncio.run(engine.browse_namespace(namespace, members))
    if not records:
        console.print(f"[yellow]Nothing under '{namespace}'[/yellow]")
        raise typer.Exit(1)
    _print_results([SearchResult(**record.to_search_entry().model_dump()) for record in records])


@app.command()
def namespaces(
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """List all known namespaces."""
    engine = _engine(_settings(dataset_dir, offline=True))
    for name in asyncio.run(engine.get_namespaces()):
        console.print(name)


@app.command()
def examples(
    element: str = typer.Argument(..., help="API element, e.g. 'Beam' or 'Tekla.Structures.Model.Beam'"),
    language: str = typer.Option("csharp", "--language", "-l", help="Snippet language, or 'all'"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """Show code examples that use an API element."""
    engine = _engine(_settings(dataset_dir, offline=True))
    entries = asyncio.run(engine.get_code_examples(element, language))
    if not entries:
        console.print(f"[yellow]No examples for '{element}'[/yellow]")
        raise typer.Exit(1)
    for entry in entries:
        if entry.entry_type == "overview":
            console.print(Panel.fit(f"[bold cyan]{entry.title}[/bold cyan]\n\n{entry.description}", border_style="cyan"))
        else:
            console.print(f"[bold]{entry.title}[/bold] [dim]({entry.language})[/dim]")
            console.print(entry.code)


@app.command()
def example(
    name: str = typer.Argument(..., help="Exact example name"),
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """Show one example with all its files and snippets."""
    engine = _engine(_settings(dataset_dir, offline=True))
    found = asyncio.run(engine.get_example_details(name))
    if found is None:
        console.print(f"[red]❌ Example not found: {name}[/red]")
        raise typer.Exit(1)
    console.print_json(found.model_dump_json(by_alias=True))


@app.command()
def categories(
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """List example categories."""
    engine = _engine(_settings(dataset_dir, offline=True))
    for category in asyncio.run(engine.get_example_categories()):
        console.print(category)


@app.command()
def stats(
    dataset_dir: Optional[Path] = typer.Option(None, "--dataset-dir", "-d", help="Dataset directory"),
):
    """Show dataset statistics."""
    engine = _engine(_settings(dataset_dir, offline=True))
    _print_statistics(asyncio.run(engine.get_statistics()).model_dump())


def _print_statistics(values: dict):
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    for key, value in values.items():
        table.add_row(key.replace("_", " ").title(), str(value))
    console.print(table)


@app.command()
def version():
    """Show version information."""
    console.print(f"tekla-api-docs [cyan]{__version__}[/cyan]")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
