"""Report aggregation: merge, order, decide pass/fail."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from ..constants import Severity
from ..exceptions import ArchVerifyError, PartialParseWarning
from .models import EscalationSignal, FatalError, Report, Violation

if TYPE_CHECKING:
    from ..config import RuleSetConfig


class ReportAggregator:
    """Merges violations and escalation signals into one ordered report.

    Order: severity (error first), module, source location; rule id and
    message break the remaining ties so equal inputs give equal reports.
    """

    def __init__(self, config: RuleSetConfig) -> None:
        self.config = config

    def aggregate(
        self,
        violations: Iterable[Violation],
        escalations: Iterable[EscalationSignal],
        warnings: Iterable[PartialParseWarning] = (),
        rules_evaluated: Iterable[str] = (),
        class_count: int = 0,
        module_count: int = 0,
    ) -> Report:
        ordered_violations = tuple(sorted(violations, key=lambda v: v.sort_key))
        ordered_signals = tuple(sorted(escalations, key=lambda s: s.sort_key))
        ordered_warnings = tuple(
            sorted(warnings, key=lambda w: (w.source, -1 if w.index is None else w.index, w.code))
        )

        return Report(
            passed=self.passes(ordered_violations, ordered_signals),
            violations=ordered_violations,
            escalations=ordered_signals,
            warnings=ordered_warnings,
            rules_evaluated=tuple(rules_evaluated),
            class_count=class_count,
            module_count=module_count,
        )

    def passes(self, violations: Iterable[Violation], escalations: Iterable[EscalationSignal]) -> bool:
        for v in violations:
            if v.suppressed:
                continue
            if v.severity is Severity.ERROR:
                return False
            if self.config.fail_on_warning and v.severity is Severity.WARNING:
                return False
        return not any(s.blocking for s in escalations)


def fatal_report(error: ArchVerifyError, warnings: Iterable[PartialParseWarning] = ()) -> Report:
    """Report for a run that stopped before rule evaluation."""
    return Report(
        passed=False,
        warnings=tuple(warnings),
        fatal=FatalError(error=error.__class__.__name__, message=str(error)),
    )
