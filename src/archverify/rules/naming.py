"""Naming rules: suffix conventions (R5) and reserved namespaces (R8)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..constants import Severity
from ..model.models import CapabilityTag, NamespaceKind
from ..report.models import Violation
from .base import Rule

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import ClassUnit, Model

# Roles whose names are enforced. Other entries of the suffix table only help
# role inference.
ENFORCED_ROLES: tuple[CapabilityTag, ...] = (
    CapabilityTag.PERSISTENT_ENTITY,
    CapabilityTag.REPOSITORY_INTERFACE,
    CapabilityTag.SERVICE_FACADE,
    CapabilityTag.ERROR_ENUM,
)


def has_suffix(name: str, suffix: str) -> bool:
    return len(name) > len(suffix) and name.endswith(suffix)


class NamingConventionRule(Rule):
    """R5: role suffixes, and service facades at their module root."""

    rule_id = "R5"
    name = "naming-conformance"
    description = "Entities, repositories, service facades and error enums carry their configured suffix."
    default_severity = Severity.WARNING

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        violations: list[Violation] = []
        for unit in model.classes.values():
            for role in ENFORCED_ROLES:
                if not unit.has_tag(role):
                    continue
                suffix = config.suffix_conventions.get(role.value)
                if suffix and not has_suffix(unit.name, suffix):
                    violations.append(
                        self.class_violation(
                            model,
                            unit,
                            f"{role.value} '{unit.name}' must end with '{suffix}' "
                            f"(e.g. {unit.name}{suffix})",
                        )
                    )
            if unit.has_tag(CapabilityTag.SERVICE_FACADE):
                violations.extend(self._check_facade_placement(model, unit))
        return violations

    def _check_facade_placement(self, model: Model, unit: ClassUnit) -> list[Violation]:
        module_name = model.module_of(unit.namespace)
        if module_name is None:
            return [self.class_violation(model, unit, "ServiceFacade declared outside any module")]
        if model.namespace(unit.namespace).kind != NamespaceKind.BOUNDED_CONTEXT:
            return [
                self.class_violation(
                    model,
                    unit,
                    f"ServiceFacade must reside at the root of module '{module_name}' "
                    f"(found in '{unit.namespace}')",
                )
            ]
        return []


class ReservedNamespaceRule(Rule):
    """R8: reserved words appear only where their namespace kind allows."""

    rule_id = "R8"
    name = "reserved-namespace"
    description = "Reserved names may not name modules or use cases; the config namespace exists only at the root."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        reserved = config.all_reserved_names
        violations: list[Violation] = []
        for ns in model.namespaces.values():
            name = ns.name
            if ns.kind == NamespaceKind.BOUNDED_CONTEXT and name in reserved:
                violations.append(
                    self.namespace_violation(model, ns, f"Module named with reserved word '{name}'")
                )
            elif ns.kind == NamespaceKind.USE_CASE and name in reserved and name != config.config_name:
                violations.append(
                    self.namespace_violation(model, ns, f"Use case named with reserved word '{name}'")
                )
            elif name == config.config_name and ns.kind != NamespaceKind.CONFIG and ns.depth > 1:
                violations.append(
                    self.namespace_violation(
                        model,
                        ns,
                        f"'{name}' is reserved for the root configuration namespace",
                    )
                )
        return violations
