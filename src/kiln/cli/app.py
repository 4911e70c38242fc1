"""Command line interface for Kiln."""

from __future__ import annotations

import logging
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.markup import escape
from rich.table import Table

from kiln.core.exceptions import KilnError
from kiln.core.logging import configure_logging, console
from kiln.pipeline import build_site
from kiln.site.writer import BuildReport

app = typer.Typer(
    name="kiln",
    help="Build a static blog from Markdown content and config.toml.",
    add_completion=False,
)

logger = logging.getLogger(__name__)

SiteArgument = Annotated[
    Path,
    typer.Argument(help="Site directory holding config.toml", file_okay=False),
]
DraftsOption = Annotated[bool, typer.Option("--drafts", help="Include items marked as drafts")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Configure logging for every command."""
    configure_logging("DEBUG" if verbose else None)


def _print_report(report: BuildReport, title: str) -> None:
    table = Table(title=title)
    table.add_column("Output", style="bold cyan")
    table.add_column("Count", justify="right")
    table.add_row("Routes", str(len(report.routes)))
    table.add_row("Content items", str(report.items))
    table.add_row("Taxonomy terms", str(report.terms))
    table.add_row("Search documents", str(report.search_documents))
    console.print(table)


def _run(site: Path, **kwargs: Any) -> BuildReport:
    try:
        return build_site(site, **kwargs)
    except KilnError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}", highlight=False)
        raise typer.Exit(code=1) from exc


@app.command()
def build(
    site: SiteArgument = Path("."),
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output directory")] = None,
    base_url: Annotated[str | None, typer.Option("--base-url", "-u", help="Override base_url")] = None,
    drafts: DraftsOption = False,
) -> None:
    """Build the site into the output directory."""
    output_dir = output.resolve() if output is not None else None
    report = _run(site, output_dir=output_dir, base_url=base_url, include_drafts=drafts)
    _print_report(report, "Build complete")
    console.print(f"Site written to {report.output_dir}", highlight=False)


@app.command()
def check(site: SiteArgument = Path("."), drafts: DraftsOption = False) -> None:
    """Run a full build without writing anything."""
    report = _run(site, include_drafts=drafts, dry_run=True)
    _print_report(report, "Site is valid")


@app.command()
def serve(
    site: SiteArgument = Path("."),
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port to listen on")] = 1111,
    drafts: DraftsOption = False,
) -> None:
    """Build the site for local preview and serve it over HTTP."""
    report = _run(site, base_url=f"http://{host}:{port}", include_drafts=drafts)
    _print_report(report, "Build complete")

    handler = partial(SimpleHTTPRequestHandler, directory=str(report.output_dir))
    with ThreadingHTTPServer((host, port), handler) as server:
        url = f"http://{host}:{port}"
        console.print(f"Serving {report.output_dir} at {url} (Ctrl+C to stop)", highlight=False)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Stopping server")


if __name__ == "__main__":
    app()
