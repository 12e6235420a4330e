"""Report models: violations, escalation signals and the final report."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from ..constants import Severity, SignalMetric
from ..exceptions import PartialParseWarning


@dataclass(frozen=True)
class Violation:
    """A rule predicate that failed for one class or namespace."""

    rule_id: str
    severity: Severity
    module: str  # bounded context (or unit) the offender lives in, "" if none
    subject: str  # offending class fqn or namespace path
    message: str
    suppressed: bool = False
    location: str = ""  # source location, falls back to subject for ordering

    @property
    def sort_key(self) -> tuple:
        return (
            self.severity.rank,
            self.module,
            self.location or self.subject,
            self.rule_id,
            self.subject,
            self.message,
        )

    def with_severity(self, severity: Severity) -> Violation:
        return replace(self, severity=severity)

    def as_suppressed(self) -> Violation:
        return replace(self, suppressed=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "module": self.module,
            "classOrNamespace": self.subject,
            "message": self.message,
            "suppressed": self.suppressed,
            "location": self.location,
        }


@dataclass(frozen=True)
class EscalationSignal:
    """Advisory restructuring hint for a module whose growth crossed a threshold."""

    module: str
    metric: SignalMetric
    value: int
    threshold: int
    suggestion: str
    severity: Severity = Severity.WARNING
    blocking: bool = False

    @property
    def sort_key(self) -> tuple:
        return (self.severity.rank, self.module, self.metric.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "metric": self.metric.value,
            "value": self.value,
            "threshold": self.threshold,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
            "blocking": self.blocking,
        }


@dataclass(frozen=True)
class FatalError:
    """Why a run stopped before producing violations."""

    error: str  # exception class name
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "message": self.message}


@dataclass(frozen=True)
class Report:
    """The ordered, deterministic result of one run.

    ``violations`` and ``escalations`` are already sorted; renderers never
    reorder them.
    """

    passed: bool
    violations: tuple[Violation, ...] = ()
    escalations: tuple[EscalationSignal, ...] = ()
    warnings: tuple[PartialParseWarning, ...] = ()
    fatal: Optional[FatalError] = None
    rules_evaluated: tuple[str, ...] = field(default_factory=tuple)
    class_count: int = 0
    module_count: int = 0

    @property
    def suppressed_count(self) -> int:
        return sum(1 for v in self.violations if v.suppressed)

    @property
    def active_violations(self) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if not v.suppressed)

    def count(self, severity: Severity) -> int:
        return sum(1 for v in self.active_violations if v.severity is severity)

    @property
    def exit_code(self) -> int:
        """0 pass, 1 violations, 2 fatal."""
        if self.fatal is not None:
            return 2
        return 0 if self.passed else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "violations": [v.to_dict() for v in self.violations],
            "escalations": [s.to_dict() for s in self.escalations],
            "suppressedCount": self.suppressed_count,
            "warnings": [w.to_dict() for w in self.warnings],
            "fatal": self.fatal.to_dict() if self.fatal is not None else None,
        }
