"""List the conformance rules."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ConfigurationError
from ..rules import RULE_REGISTRY
from . import app
from ._common import EXIT_FATAL, console, err_console, resolve_config


@app.command()
def rules(
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML); shows effective severities",
        dir_okay=False,
    ),
):
    """
    List every rule with its effective severity and status.
    """
    try:
        settings = resolve_config(config=config)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(EXIT_FATAL)

    table = Table(title="Conformance Rules", expand=False)
    table.add_column("Rule", style="bold")
    table.add_column("Name")
    table.add_column("Severity", justify="center")
    table.add_column("Status")
    table.add_column("Description", style="white")

    for rule in RULE_REGISTRY:
        severity = settings.severity_for(rule.rule_id, rule.default_severity)
        if rule.rule_id in settings.disabled_rules:
            status = "[dim]disabled[/dim]"
        elif rule.rule_id in settings.suppressed_rules:
            status = "[yellow]suppressed[/yellow]"
        else:
            status = "[green]enabled[/green]"
        table.add_row(rule.rule_id, rule.name, severity.value, status, rule.description)

    console.print(table)
