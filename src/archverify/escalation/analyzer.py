"""Escalation analysis: turn module growth into restructuring advice.

Signals are advisory unless configuration promotes their metric to blocking.
A module caught in a dependency cycle always gets an error-severity signal,
whatever its other metrics say.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import Severity, SignalMetric
from ..logging_config import get_logger
from ..report.models import EscalationSignal
from .metrics import ModuleMetrics, compute_module_metrics

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import Model

logger = get_logger(__name__)

SUGGESTIONS: dict[SignalMetric, str] = {
    SignalMetric.USE_CASES: "Introduce a resource-grouping intermediate namespace for related use cases",
    SignalMetric.CLASSES: "Split the module into a sub-module",
    SignalMetric.AGGREGATES: "Split the module into a sub-module around its aggregate roots",
    SignalMetric.CYCLES: "Break the module dependency cycle before it grows",
}


class EscalationAnalyzer:
    """Computes growth metrics per module and emits escalation signals."""

    def __init__(self, config: RuleSetConfig) -> None:
        self.config = config

    def analyze(self, model: Model, graph: DependencyGraph) -> list[EscalationSignal]:
        metrics = compute_module_metrics(model, graph)
        signals: list[EscalationSignal] = []
        for module_metrics in metrics.values():
            signals.extend(self.signals_for(module_metrics))
        signals.sort(key=lambda s: s.sort_key)
        if signals:
            logger.info(f"{len(signals)} escalation signal(s) across {len(metrics)} module(s)")
        return signals

    def signals_for(self, m: ModuleMetrics) -> list[EscalationSignal]:
        thresholds = self.config.thresholds
        measured = (
            (SignalMetric.USE_CASES, m.use_case_count),
            (SignalMetric.CLASSES, m.class_count),
            (SignalMetric.AGGREGATES, m.aggregate_count),
        )

        signals = [
            self._signal(m.module, metric, value, thresholds.for_metric(metric), Severity.WARNING)
            for metric, value in measured
            if value > thresholds.for_metric(metric)
        ]
        if m.in_cycle:
            signals.append(self._signal(m.module, SignalMetric.CYCLES, m.cycle_count, 0, Severity.ERROR))
        return signals

    def _signal(
        self, module: str, metric: SignalMetric, value: int, threshold: int, severity: Severity
    ) -> EscalationSignal:
        return EscalationSignal(
            module=module,
            metric=metric,
            value=value,
            threshold=threshold,
            suggestion=SUGGESTIONS[metric],
            severity=severity,
            blocking=self.config.is_blocking(metric),
        )
