"""Verify command: run the conformance pipeline over a declaration source."""

from pathlib import Path
from typing import Callable, Optional

import typer

from ..constants import OutputFormat
from ..core import VerificationPipeline
from ..exceptions import ArchVerifyError, ConfigurationError
from ..formatters import get_formatter
from ..logging_config import get_logger, setup_logging
from ..report import Report
from ..rules import parse_rule_selection
from . import app
from ._common import EXIT_FATAL, console, err_console, resolve_config

logger = get_logger(__name__)

# Debounce: wait this long after the last change before re-verifying
DEBOUNCE_MS = 500

WATCHED_SUFFIXES = frozenset({".json", ".toml"})


@app.command()
def verify(
    path: Path = typer.Argument(
        ...,
        help="Declaration file or directory of *.json declaration files",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        dir_okay=False,
    ),
    fail_on_warning: bool = typer.Option(
        False,
        "--fail-on-warning",
        help="Treat warning-severity violations as failures",
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "-f",
        "--format",
        help="Output format",
        case_sensitive=False,
    ),
    rules: Optional[str] = typer.Option(
        None,
        "-r",
        "--rules",
        help="Rules to run, e.g. R1,R2 or -R5 to exclude",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "-w",
        "--workers",
        help="Parallel workers (default: auto-detect)",
        min=1,
        max=32,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    watch: bool = typer.Option(
        False,
        "--watch",
        help="Re-verify whenever a declaration file changes (requires watchfiles)",
    ),
):
    """
    Verify architecture conformance of a declaration source.

    Exit codes: 0 pass, 1 violations, 2 fatal extraction or configuration error.

    [bold cyan]Examples:[/bold cyan]

      archverify verify build/declarations

      archverify verify decls.json --format json --rules -R5

      archverify verify build/declarations --fail-on-warning --watch
    """
    setup_logging(verbose=verbose, quiet=quiet, log_file=str(log_file) if log_file else None)

    formatter = get_formatter(output_format.value)

    def run_once() -> Report:
        # Config is re-read on every run and validated before any declaration is read
        settings = resolve_config(config=config, fail_on_warning=fail_on_warning, workers=workers)
        enabled = parse_rule_selection(rules) if rules is not None else None
        report = VerificationPipeline(settings, enabled_rules=enabled).run(path)
        formatter.render(report)
        return report

    try:
        if watch:
            _watch(path, run_once)
            raise typer.Exit(0)

        report = run_once()
        raise typer.Exit(report.exit_code)

    except typer.Exit:
        raise

    except ConfigurationError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(EXIT_FATAL)

    except ArchVerifyError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(EXIT_FATAL)

    except KeyboardInterrupt:
        logger.info("Verification interrupted by user")
        console.print("\n[yellow]Verification interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during verification")
        err_console.print(f"[red]Unexpected error:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(EXIT_FATAL)


def _watch(path: Path, run_once: Callable[[], Report]) -> None:
    """Run once, then again on every change. Each run is a fresh pipeline."""
    try:
        from watchfiles import watch
    except ImportError:
        err_console.print("[red]--watch requires watchfiles:[/red] pip install 'archverify[watch]'")
        raise typer.Exit(EXIT_FATAL)

    run_once()

    root = path if path.is_dir() else path.parent
    logger.info(f"Watching {root} for changes")
    console.print(f"[dim]Watching {root} for changes (Ctrl+C to stop)[/dim]")

    try:
        for changes in watch(root, debounce=DEBOUNCE_MS, watch_filter=_DeclarationFilter(path)):
            changed_files = [p for _change, p in changes]
            logger.info(f"Detected {len(changed_files)} changed file(s), re-verifying...")
            try:
                run_once()
            except ConfigurationError as e:
                # Keep watching; the next edit may fix it
                logger.error(f"{e.__class__.__name__}: {e}")
                err_console.print(f"[red]Configuration error:[/red] {e}")
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped watching[/yellow]")


class _DeclarationFilter:
    """watchfiles filter: declaration files and config files, skipping hidden paths."""

    def __init__(self, target: Path) -> None:
        self.root = (target if target.is_dir() else target.parent).resolve()
        self.target = target.resolve() if target.is_file() else None

    def __call__(self, change: int, path: str) -> bool:
        p = Path(path).resolve()
        try:
            parts = p.relative_to(self.root).parts
        except ValueError:
            return False
        if any(part.startswith(".") for part in parts):
            return False
        if self.target is not None and p.suffix == ".json":
            return p == self.target
        return p.suffix in WATCHED_SUFFIXES
