"""Escalation analysis: module growth metrics and advisory signals."""

from .analyzer import EscalationAnalyzer
from .metrics import ModuleMetrics, compute_module_metrics

__all__ = ["EscalationAnalyzer", "ModuleMetrics", "compute_module_metrics"]
