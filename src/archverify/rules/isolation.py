"""Isolation rules: config (R1), module boundary (R2), use case (R3)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..model.models import CapabilityTag, NamespaceKind, is_within
from ..report.models import Violation
from .base import Rule

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import Model


class ConfigIsolationRule(Rule):
    """R1: only the config namespace may depend on configuration types."""

    rule_id = "R1"
    name = "config-isolation"
    description = "Classes outside the config namespace must not reference configuration types."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        violations: list[Violation] = []
        for edge in graph.edges:
            target = model.classes[edge.target]
            if not target.has_tag(CapabilityTag.CONFIG_TYPE):
                continue
            source = model.classes[edge.source]
            if any(ns.kind == NamespaceKind.CONFIG for ns in model.lineage(source.namespace)):
                continue
            violations.append(
                self.class_violation(
                    model,
                    source,
                    f"References configuration type {target.fqn}; "
                    f"only the '{config.config_name}' namespace may depend on configuration types",
                )
            )
        return violations


class ModuleBoundaryRule(Rule):
    """R2: cross-module references may only reach a module's public surface."""

    rule_id = "R2"
    name = "module-boundary"
    description = "Other modules may only reference a module's service facade and event types."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        return [
            self.class_violation(
                model,
                model.classes[edge.source],
                f"Reaches internal class {edge.target} of module '{edge.target_owner}'; "
                f"only its service facade and event types are public",
            )
            for edge in graph.boundary_violations
        ]


class UseCaseIsolationRule(Rule):
    """R3: triggered use cases must not depend on one another.

    A use case may still reach into its own sub-namespaces, even when those
    hold triggers of their own.
    """

    rule_id = "R3"
    name = "use-case-isolation"
    description = "Classes of one triggered use case must not reference another use case."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        violations: list[Violation] = []
        for edge in graph.edges:
            source = model.classes[edge.source]
            target = model.classes[edge.target]
            source_case = model.triggered_use_case(source.namespace)
            target_case = model.triggered_use_case(target.namespace)
            if source_case is None or target_case is None:
                continue
            if source_case == target_case or is_within(target_case, source_case):
                continue
            violations.append(
                self.class_violation(
                    model,
                    source,
                    f"Use case '{source_case}' references {target.fqn} of use case '{target_case}'",
                )
            )
        return violations
