"""Cycle-freedom rule (R7)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..model.models import ROOT_UNIT
from ..report.models import Violation
from .base import Rule

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import CycleGroup, DependencyGraph
    from ..model.models import Model


class CycleFreedomRule(Rule):
    """R7: the module condensation graph is acyclic.

    Each strongly connected group of modules is one violation listing every
    edge inside the group. No cycle size is tolerated.
    """

    rule_id = "R7"
    name = "cycle-freedom"
    description = "Module dependencies must not form cycles."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        return [self._cycle_violation(model, cycle) for cycle in graph.cycles]

    def _cycle_violation(self, model: Model, cycle: CycleGroup) -> Violation:
        edge_list = ", ".join(f"{e.label} ({e.edge_count})" for e in cycle.edges)

        # Suppressed only when every participant carries the marker.
        suppressed = all(self._unit_suppressed(model, u) for u in cycle.units)

        return Violation(
            rule_id=self.rule_id,
            severity=self.default_severity,
            module=model.owner_of(cycle.units[0]),
            subject=" <-> ".join(cycle.units),
            message=f"Module dependency cycle between {', '.join(cycle.units)}: {edge_list}",
            suppressed=suppressed,
        )

    def _unit_suppressed(self, model: Model, unit: str) -> bool:
        if unit != ROOT_UNIT:
            return unit in model.namespaces and model.is_suppressed(self.rule_id, path=unit)
        # The root unit has no namespace of its own; every class folded into it must opt out.
        members = [c.fqn for c in model.classes.values() if model.unit_of(c.namespace) == ROOT_UNIT]
        return bool(members) and all(model.is_suppressed(self.rule_id, fqn=fqn) for fqn in members)
