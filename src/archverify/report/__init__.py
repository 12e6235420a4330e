"""Report models and aggregation."""

from .aggregator import ReportAggregator, fatal_report
from .models import EscalationSignal, FatalError, Report, Violation

__all__ = [
    "EscalationSignal",
    "FatalError",
    "Report",
    "ReportAggregator",
    "Violation",
    "fatal_report",
]
