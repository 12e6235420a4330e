"""GitHub Actions formatter: workflow annotations plus a Markdown summary."""

import re
from typing import Optional

from ..constants import Severity
from ..report import Report, Violation
from .base import BaseFormatter

# "path/to/File.java:42" or "path/to/File.java"
_LOCATION = re.compile(r"^(?P<file>[^:]+?)(?::(?P<line>\d+))?(?::\d+)?$")


def _escape(text: str) -> str:
    """Escape a workflow command message (``%``, CR and LF are significant)."""
    return text.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _location_props(location: str) -> Optional[str]:
    if not location:
        return None
    m = _LOCATION.match(location)
    if m is None:
        return None
    props = f"file={m.group('file')}"
    if m.group("line"):
        props += f",line={m.group('line')}"
    return props


class GithubFormatter(BaseFormatter):
    """Output GitHub Actions ``::error`` / ``::warning`` annotations.

    Suppressed violations are not annotated; they only show in the summary
    count.
    """

    def render(self, report: Report) -> None:
        print(self.format(report))

    def format(self, report: Report) -> str:
        lines: list[str] = []

        if report.fatal is not None:
            lines.append(f"::error title={report.fatal.error}::{_escape(report.fatal.message)}")
            return "\n".join(lines)

        for v in report.active_violations:
            lines.append(self._annotation(v))

        for s in report.escalations:
            level = "error" if s.blocking or s.severity is Severity.ERROR else "warning"
            msg = f"{s.module}: {s.metric.value} = {s.value} (threshold {s.threshold}). {s.suggestion}"
            lines.append(f"::{level} title=escalation {s.metric.value}::{_escape(msg)}")

        for w in report.warnings:
            lines.append(f"::notice title={w.code}::{_escape(f'{w.source}: {w.reason}')}")

        # Markdown summary for the job summary or a PR comment
        lines.append("")
        lines.append("## Architecture Conformance")
        lines.append("")
        if report.active_violations:
            lines.append("| Severity | Rule | Module | Class or namespace |")
            lines.append("|----------|------|--------|--------------------|")
            for v in report.active_violations:
                lines.append(f"| {v.severity.value} | {v.rule_id} | {v.module or '-'} | `{v.subject}` |")
            lines.append("")

        status = "passed" if report.passed else "failed"
        lines.append(
            f"**Result:** {status} ({report.count(Severity.ERROR)} error(s), "
            f"{report.count(Severity.WARNING)} warning(s), {report.suppressed_count} suppressed)"
        )
        return "\n".join(lines)

    @staticmethod
    def _annotation(v: Violation) -> str:
        level = "error" if v.severity is Severity.ERROR else "warning"
        props = [p for p in (_location_props(v.location), f"title={v.rule_id}") if p]
        msg = f"{v.subject}: {v.message}"
        return f"::{level} {','.join(props)}::{_escape(msg)}"
