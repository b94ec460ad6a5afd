from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from .remover import render_report, run_removal, run_removal_dry_run
from .workflows.doctor import build_doctor_report, format_doctor_report
from .workflows.errors import BatchAbortedError, DeindexerError, MissingCredentialsError, NoInputURLsError
from .workflows.gsc import RemoverConfig

app = typer.Typer(add_help_option=False, no_args_is_help=False)


def _minimal_help() -> str:
    return """Deindexer (Search Console removal CLI)

Usage:
  deindexer remove <site> <urls.csv> [--cache-dir <DIR>] [--concurrency <N>] [--json] [--dry-run]
  deindexer doctor

Common options:
  --cache-dir <DIR>   Where per-site status caches live (default: .cache).
  --concurrency <N>   URL inspections per batch (default: 50).
  --no-cache          Ignore and do not write the status cache.
  --skip-delete       Poll statuses only; do not send removal requests.
  --json              Print the run summary JSON to stdout only.
  --dry-run           Validate inputs and credentials without network calls.

Discoverability:
  --help-full     Expanded help + env vars + artifacts.
  --find <query>  Search commands, flags, env vars, artifacts.
  --doctor        Run environment diagnostics and exit.
"""


def _help_full() -> str:
    return """Deindexer CLI

Commands:
  remove   Inspect every URL in a CSV (column: url) and request removal of
           indexed pages that now return 404 from the Indexing API.
  doctor   Print environment diagnostics.

Site argument:
  example.com            -> sc-domain:example.com
  https://example.com    -> https://example.com/

Cache policy:
  Indexed pages are always re-inspected. Other statuses are reused for 14 days.

Artifacts:
  <cache-dir>/<site>.json   Per-URL status cache, rewritten after each poll.

Important env vars:
  DEINDEXER_ACCESS_TOKEN
  DEINDEXER_CLIENT_ID / DEINDEXER_CLIENT_SECRET / DEINDEXER_REFRESH_TOKEN
  DEINDEXER_CACHE_DIR
  DEINDEXER_CONCURRENCY
  DEINDEXER_TIMEOUT
  DEINDEXER_MAX_ATTEMPTS
  DEINDEXER_RATE_LIMIT_RETRIES

Exit codes:
  0 success, 2 configuration or input error, 3 fatal run error
  (or transport failures with --strict).
"""


_FIND_INDEX = {
    "Commands": {
        "remove": "Inspect URLs from a CSV and request removal of dead indexed pages.",
        "doctor": "Check credentials, cache directory and runtime settings.",
    },
    "Flags (remove)": {
        "--cache-dir": "Where per-site status caches live.",
        "--concurrency": "URL inspections per batch.",
        "--no-cache": "Ignore and do not write the status cache.",
        "--skip-delete": "Poll statuses only.",
        "--strict": "Exit 3 when any URL hit a rate limit, 403 or error.",
        "--json": "Print summary JSON to stdout only.",
        "--dry-run": "Validate inputs and credentials without network calls.",
        "--verbose": "Enable debug logging.",
    },
    "Global flags": {
        "--help-full": "Expanded help, env vars, artifacts.",
        "--find": "Search commands, flags, env vars, artifacts.",
        "--doctor": "Run environment diagnostics and exit.",
    },
    "Credentials": {
        "DEINDEXER_ACCESS_TOKEN": "Bearer token used as is (GOOGLE_ACCESS_TOKEN also works).",
        "DEINDEXER_CLIENT_ID": "OAuth client id for the refresh token exchange.",
        "DEINDEXER_CLIENT_SECRET": "OAuth client secret for the refresh token exchange.",
        "DEINDEXER_REFRESH_TOKEN": "OAuth refresh token, exchanged once per run.",
    },
    "Tuning": {
        "DEINDEXER_CACHE_DIR": "Override the cache directory.",
        "DEINDEXER_CONCURRENCY": "Override the batch size.",
        "DEINDEXER_TIMEOUT": "Per-request timeout in seconds.",
        "DEINDEXER_MAX_ATTEMPTS": "Retries for transport errors and 5xx.",
        "DEINDEXER_RATE_LIMIT_RETRIES": "Retries after a 429 on the publish metadata lookup.",
    },
    "Artifacts": {
        "<cache-dir>/<site>.json": "Per-URL status cache, reused for 14 days except indexed pages.",
    },
}


def _run_find(query: str) -> str:
    """Return index entries matching every word of ``query``, grouped by section."""

    terms = (query or "").lower().split()
    if not terms:
        return ""
    blocks = []
    for section, entries in _FIND_INDEX.items():
        hits = [
            f"  {name:<30} {desc}"
            for name, desc in entries.items()
            if all(term in f"{section} {name} {desc}".lower() for term in terms)
        ]
        if hits:
            blocks.append("\n".join([f"{section}:"] + hits))
    if not blocks:
        return f"No matches for '{query.strip()}'. Try: remove, cache, token, 429."
    return "\n\n".join(blocks)


def _setup_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if quiet and not verbose:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(message)s")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    help: bool = typer.Option(False, "--help", "-h", is_eager=True, help="Show minimal help."),
    help_full: bool = typer.Option(False, "--help-full", is_eager=True, help="Show expanded help."),
    find: Optional[str] = typer.Option(None, "--find", is_eager=True, help="Search commands, flags, env vars, artifacts."),
    doctor: bool = typer.Option(False, "--doctor", is_eager=True, help="Run environment diagnostics and exit."),
) -> None:
    if help_full:
        typer.echo(_help_full())
        raise typer.Exit(code=0)
    if find is not None:
        output = _run_find(find)
        if output:
            typer.echo(output)
        raise typer.Exit(code=0)
    if doctor:
        report = build_doctor_report()
        typer.echo(format_doctor_report(report))
        raise typer.Exit(code=0 if report.get("ok", True) else 2)
    if help or ctx.invoked_subcommand is None:
        typer.echo(_minimal_help())
        raise typer.Exit(code=0)


@app.command("doctor", add_help_option=True)
def doctor_cmd(
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Cache directory to check."),
) -> None:
    """Print environment diagnostics."""
    report = build_doctor_report(cache_dir=cache_dir)
    typer.echo(format_doctor_report(report))
    raise typer.Exit(code=0 if report.get("ok", True) else 2)


@app.command("remove", add_help_option=True)
def remove(
    site: str = typer.Argument(..., help="Domain (example.com) or URL prefix (https://example.com/)."),
    csv_file: Path = typer.Argument(..., help="CSV file with a 'url' column."),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Where per-site status caches live."),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="URL inspections per batch."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore and do not write the status cache."),
    skip_delete: bool = typer.Option(False, "--skip-delete", help="Poll statuses only."),
    strict: bool = typer.Option(False, "--strict", help="Exit 3 when any URL hit a rate limit, 403 or error."),
    json_out: bool = typer.Option(False, "--json", help="Print summary JSON to stdout only."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate inputs and credentials without network calls."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _setup_logging(verbose, quiet=json_out)
    config = RemoverConfig.from_env()
    if concurrency is not None:
        config.concurrency = concurrency
    try:
        if dry_run:
            summary, exit_code = run_removal_dry_run(site, csv_file, cache_dir=cache_dir)
        else:
            summary, exit_code = run_removal(
                site,
                csv_file,
                cache_dir=cache_dir,
                config=config,
                use_cache=not no_cache,
                skip_delete=skip_delete,
                strict=strict,
            )
    except (FileNotFoundError, ValueError, MissingCredentialsError, NoInputURLsError) as exc:
        if not json_out:
            typer.echo(f"❌ error: {exc}", err=True)
        raise typer.Exit(code=2)
    except BatchAbortedError as exc:
        if not json_out:
            cause = exc.__cause__
            detail = f" ({cause})" if cause else ""
            typer.echo(f"❌ fatal: {exc}{detail}", err=True)
        raise typer.Exit(code=3)
    except DeindexerError as exc:
        if not json_out:
            typer.echo(f"❌ fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    except Exception as exc:
        if not json_out:
            typer.echo(f"fatal: {exc}", err=True)
        raise typer.Exit(code=3)
    if json_out:
        sys.stdout.write(json.dumps(summary, ensure_ascii=False) + "\n")
    elif dry_run:
        typer.echo(json.dumps(summary, ensure_ascii=False, indent=2))
    else:
        typer.echo(render_report(summary))
    raise typer.Exit(code=exit_code)
