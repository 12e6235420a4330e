"""Rich terminal formatter for archverify."""

from io import StringIO
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..constants import Severity
from ..report import Report, Violation
from .base import BaseFormatter


def _severity_label(severity: Severity, suppressed: bool = False) -> str:
    if suppressed:
        return "[dim]suppressed[/dim]"
    if severity is Severity.ERROR:
        return "[red bold]error[/red bold]"
    return "[yellow]warning[/yellow]"


class RichFormatter(BaseFormatter):
    """Narrative terminal output: a summary panel, then the ordered entries."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def render(self, report: Report) -> None:
        self._print(report, self.console)

    def format(self, report: Report) -> str:
        buffer = StringIO()
        self._print(report, Console(file=buffer, width=120, no_color=True, highlight=False))
        return buffer.getvalue()

    # -- private helpers --

    def _print(self, report: Report, console: Console) -> None:
        if report.fatal is not None:
            console.print(
                Panel(
                    f"[red]{escape(report.fatal.message)}[/red]",
                    title=f"[bold red]{report.fatal.error}[/bold red]",
                    expand=False,
                )
            )
            self._print_warnings(report, console)
            return

        self._print_summary(report, console)
        self._print_violations(report, console)
        self._print_escalations(report, console)
        self._print_warnings(report, console)

        if report.passed:
            console.print("[bold green]PASSED[/bold green]")
        else:
            console.print("[bold red]FAILED[/bold red]")

    def _print_summary(self, report: Report, console: Console) -> None:
        summary_text = (
            f"Checked [bold]{report.class_count}[/bold] classes in "
            f"[bold]{report.module_count}[/bold] modules  |  "
            f"rules: [cyan]{', '.join(report.rules_evaluated) or 'none'}[/cyan]  |  "
            f"[red]{report.count(Severity.ERROR)}[/red] errors, "
            f"[yellow]{report.count(Severity.WARNING)}[/yellow] warnings, "
            f"[dim]{report.suppressed_count} suppressed[/dim]"
        )
        console.print(Panel(summary_text, title="[bold cyan]Architecture Conformance[/bold cyan]", expand=False))
        console.print()

    def _print_violations(self, report: Report, console: Console) -> None:
        if not report.violations:
            console.print("[green]No violations.[/green]")
            console.print()
            return

        # Report order is final; print it as is
        for v in report.violations:
            console.print(self._line(v))
        console.print()

    @staticmethod
    def _line(v: Violation) -> str:
        where = f" [dim]({escape(v.location)})[/dim]" if v.location else ""
        module = escape(v.module) if v.module else "-"
        return (
            f"  {_severity_label(v.severity, v.suppressed)} [bold]{v.rule_id}[/bold] "
            f"[yellow]{module}[/yellow] {escape(v.subject)}{where}\n      {escape(v.message)}"
        )

    def _print_escalations(self, report: Report, console: Console) -> None:
        if not report.escalations:
            return

        table = Table(title="Escalation Signals", expand=False)
        table.add_column("Module", style="yellow")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_column("Threshold", justify="right")
        table.add_column("Severity", justify="center")
        table.add_column("Suggestion", style="white")

        for s in report.escalations:
            severity = _severity_label(s.severity)
            if s.blocking:
                severity += " [red](blocking)[/red]"
            table.add_row(escape(s.module), s.metric.value, str(s.value), str(s.threshold), severity, escape(s.suggestion))

        console.print(table)
        console.print()

    def _print_warnings(self, report: Report, console: Console) -> None:
        if not report.warnings:
            return
        console.print(f"[bold]Skipped declarations ({len(report.warnings)}):[/bold]")
        for w in report.warnings:
            where = w.source if w.index is None else f"{w.source}[{w.index}]"
            console.print(f"  [dim]{w.code}[/dim] {escape(where)}: {escape(w.reason)}")
        console.print()
