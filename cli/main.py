"""XTract CLI — scrape typed records from the command line.

Usage:
    python cli/main.py --help

Commands:
    scrape    → extract records from URLs / HTML files with a JSON rules file
    fetch     → show how the HTTP fetcher classifies a single URL
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from xtract.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
from dataclasses import replace
from typing import List, Optional

import typer

from xtract.config import settings
from xtract.engine import Scraper, is_url
from xtract.errors import RulesError
from xtract.extraction.rules import load_rules
from xtract.scraper.fetcher import fetch

app = typer.Typer(
    name="xtract",
    help="XTract — declarative, throttled HTML scraping.",
    no_args_is_help=True,
)

_FORMATS = ("json", "csv", "xlsx")


def _split_targets(targets: List[str]) -> tuple[list[str], list[str]]:
    """Separate URLs from local HTML files; anything else is inline HTML."""
    urls: list[str] = []
    documents: list[str] = []
    for target in targets:
        if is_url(target):
            urls.append(target)
        elif Path(target).is_file():
            documents.append(Path(target).read_text(encoding="utf-8"))
        else:
            documents.append(target)
    return urls, documents


@app.command("scrape")
def scrape(
    rules: Path = typer.Argument(..., help="JSON rules file describing the fields."),
    targets: List[str] = typer.Argument(..., help="URLs, HTML files or inline HTML."),
    all_records: bool = typer.Option(
        False, "--all", help="Extract every record on each page, not just one."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Maximum concurrent fetches."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Batch timeout in seconds."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file. JSON goes to stdout when omitted; csv / xlsx go to the export directory."
    ),
    fmt: str = typer.Option("json", "--format", "-f", help="Output format: json | csv | xlsx."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not echo the event log."),
) -> None:
    """Scrape records from one or more targets using a rules file."""
    if fmt not in _FORMATS:
        typer.echo(f"[scrape] Unknown format {fmt!r}. Use: {' | '.join(_FORMATS)}")
        raise typer.Exit(1)

    try:
        extractors = load_rules(rules)
    except RulesError as exc:
        typer.echo(f"[scrape] ✗ {exc}")
        raise typer.Exit(1)

    run_settings = replace(settings, logging_enabled=not quiet)
    if output is None and fmt != "json":
        run_settings.ensure_export_dir()
        output = run_settings.export_dir / f"records.{fmt}"
    urls, documents = _split_targets(targets)

    with Scraper(extractors, settings=run_settings) as scraper:
        for document in documents:
            if all_records:
                scraper.scrape_all(document)
            else:
                scraper.scrape(document)

        if urls:
            if all_records:
                done = scraper.scrape_all_throttled(urls, concurrency, timeout=timeout)
            else:
                done = scraper.scrape_throttled(urls, concurrency, timeout=timeout)
            done.result()

        records = scraper.data()
        failed = scraper.failed_requests()

        for url in failed:
            typer.echo(f"[scrape] ✗ Failed: {url}")

        if not records:
            typer.echo("[scrape] No records extracted.")
            raise typer.Exit(1)

        if output is None:
            typer.echo(scraper.json_data())
        elif fmt == "csv":
            scraper.save_csv(output)
        elif fmt == "xlsx":
            scraper.save_excel(output)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(scraper.json_data(), encoding="utf-8")

    if output is not None:
        typer.echo(f"[scrape] ✓ {len(records)} record(s) written to {output}")


@app.command("fetch")
def fetch_cmd(
    url: str = typer.Argument(..., help="URL to fetch."),
) -> None:
    """Fetch a URL and report how the fetcher classifies the response."""
    typer.echo(f"[fetch] GET {url!r} …")
    response = asyncio.run(fetch(url))
    if response is None:
        typer.echo("[fetch] ✗ Transport failure (DNS, connection, TLS or timeout).")
        raise typer.Exit(1)

    typer.echo(f"[fetch] URI          : {response.request_uri}")
    typer.echo(f"[fetch] Status       : {response.status_code}")
    typer.echo(f"[fetch] Content type : {response.content_type or '(none)'}")
    typer.echo(f"[fetch] HTML         : {'yes' if response.is_html else 'no'}")
    if response.body is None:
        typer.echo("[fetch] Body         : (nothing to extract)")
    else:
        typer.echo(f"[fetch] Body         : {len(response.body)} chars")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
