"""
cli.py - Command line entry point

    bankledger [PATHS...] [--output FILE] [--max-workers N]
               [--skip-malformed-rows] [--log-level LEVEL]

Replays every CSV in PATHS concurrently into one ledger and writes the final
account CSV to stdout (or --output). Logs go to stderr. A local ``.env`` is
loaded with python-dotenv before configuration is read, without overriding
variables already set.

Exit status is 0 once the export completes, even if some input streams
failed (those are logged). A failed export exits with 1.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv

from .config import IngestionConfig
from .core import ExportError
from .ingestion import IngestionCoordinator
from .logging_setup import configure_logging, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Replay transaction CSV files into client account balances.",
)


@app.command()
def replay(
    paths: Optional[List[Path]] = typer.Argument(
        None, help="Transaction CSV files (type, client, tx, amount)."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False,
        help="Write the account CSV here instead of stdout.",
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", min=1,
        help="Cap on concurrent workers (default: one per file, or BANKLEDGER_MAX_WORKERS).",
    ),
    skip_malformed_rows: Optional[bool] = typer.Option(
        None, "--skip-malformed-rows/--abort-on-malformed-row",
        help="Skip rows that fail to parse instead of abandoning the rest of that file.",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level",
        help="Logging level (default: BANKLEDGER_LOG_LEVEL or WARNING).",
    ),
) -> None:
    """Replay PATHS and print the final account balances."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    try:
        configure_logging(log_level)
        config = IngestionConfig.from_env(
            max_workers=max_workers, skip_malformed_rows=skip_malformed_rows,
        )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    coordinator = IngestionCoordinator(config=config)
    try:
        if output is None:
            report = coordinator.run(paths or [], sys.stdout)
        else:
            with output.open("w", encoding="utf-8", newline="") as fh:
                report = coordinator.run(paths or [], fh)
    except (ExportError, OSError) as e:
        logger.error("export failed: %s", e)
        typer.echo(f"Error: export failed: {e}", err=True)
        raise typer.Exit(1)

    if not report.ok:
        logger.warning("%d of %d stream(s) stopped early",
                       len(report.failed_streams), len(report.streams))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
