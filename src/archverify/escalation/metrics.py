"""Per-module growth metrics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..model.models import CapabilityTag

if TYPE_CHECKING:
    from ..graph.models import DependencyGraph
    from ..model.models import Model


@dataclass(frozen=True)
class ModuleMetrics:
    """Growth measurements of one bounded context."""

    module: str
    use_case_count: int = 0  # triggered use cases
    class_count: int = 0
    aggregate_count: int = 0  # distinct persistent entities
    cycle_count: int = 0  # condensation cycles this module takes part in

    @property
    def in_cycle(self) -> bool:
        return self.cycle_count > 0


def compute_module_metrics(model: Model, graph: DependencyGraph) -> dict[str, ModuleMetrics]:
    """Measure every module of the model.

    Args:
        model: The extracted model
        graph: The dependency graph (for cycle participation)

    Returns:
        Dict mapping module name to its metrics, in module name order
    """
    use_cases: dict[str, int] = dict.fromkeys(model.modules, 0)
    for path in model.triggered_use_cases:
        module = model.module_of(path)
        if module is not None:
            use_cases[module] += 1

    metrics: dict[str, ModuleMetrics] = {}
    for name in sorted(model.modules):
        classes = model.module_classes(name)
        metrics[name] = ModuleMetrics(
            module=name,
            use_case_count=use_cases[name],
            class_count=len(classes),
            aggregate_count=len(
                {c.fqn for c in classes if c.has_tag(CapabilityTag.PERSISTENT_ENTITY)}
            ),
            cycle_count=len(graph.cycles_touching(name, model.modules[name].common_path)),
        )
    return metrics
