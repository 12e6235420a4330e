"""Base class for conformance rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from ..constants import Severity
from ..report.models import Violation

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import ClassUnit, Model, Namespace


class Rule(ABC):
    """A pure check over the model and graph.

    Rules never see each other's output and never mutate their inputs, so
    they can run in any order or in parallel. Severity overrides and
    suppression are applied by the engine, not by the rule.
    """

    rule_id: str
    name: str
    description: str
    default_severity: Severity = Severity.ERROR

    @abstractmethod
    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        ...

    def class_violation(self, model: Model, unit: ClassUnit, message: str) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            severity=self.default_severity,
            module=model.owner_of(unit.namespace),
            subject=unit.fqn,
            message=message,
            location=unit.location,
        )

    def namespace_violation(self, model: Model, ns: Namespace, message: str) -> Violation:
        return Violation(
            rule_id=self.rule_id,
            severity=self.default_severity,
            module=model.owner_of(ns.path),
            subject=ns.path,
            message=message,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.rule_id}>"
