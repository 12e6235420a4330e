"""Placement rules: transactions (R4) and repositories (R6)."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Optional

from ..model.models import CapabilityTag, is_within
from ..report.models import Violation
from .base import Rule

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import ClassUnit, Model


def is_allow_listed(unit: ClassUnit, allow_list: tuple[str, ...]) -> bool:
    """Match the fully-qualified or simple name against exact entries and fnmatch patterns."""
    for entry in allow_list:
        if entry in (unit.fqn, unit.name):
            return True
        if fnmatchcase(unit.fqn, entry):
            return True
    return False


class TransactionPlacementRule(Rule):
    """R4: transaction boundaries belong to use cases.

    Anything else needs a reviewed escape hatch on the allow-list. The
    allow-list is trusted as given; nothing here tries to infer review intent.
    """

    rule_id = "R4"
    name = "transaction-placement"
    description = "Transaction markers are allowed only on use-case classes or allow-listed escape hatches."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        violations: list[Violation] = []
        for unit in model.classes.values():
            if not unit.transactional:
                continue
            if model.is_use_case_owned(unit.namespace):
                continue
            if is_allow_listed(unit, config.escape_hatch_allow_list):
                continue
            violations.append(
                self.class_violation(
                    model,
                    unit,
                    "Transaction marker outside a use case; move the transaction boundary into "
                    "a use case or add a reviewed escape-hatch entry",
                )
            )
        return violations


class RepositoryPlacementRule(Rule):
    """R6: a repository lives with the use cases that reference it.

    - one referencing use case: inside that use case
    - two or more use cases of the module: in the module's common namespace
    - any reference from another module: always a violation
    """

    rule_id = "R6"
    name = "repository-placement"
    description = "Repositories live in their single use case, or in the module's common namespace when shared."

    def check(self, model: Model, graph: DependencyGraph, config: RuleSetConfig) -> list[Violation]:
        violations: list[Violation] = []
        for unit in model.classes.values():
            if not unit.has_tag(CapabilityTag.REPOSITORY_INTERFACE):
                continue
            module_name = model.module_of(unit.namespace)
            if module_name is None:
                continue
            violation = self._check_repository(model, graph, unit, module_name)
            if violation is not None:
                violations.append(violation)
        return violations

    def _check_repository(
        self, model: Model, graph: DependencyGraph, unit: ClassUnit, module_name: str
    ) -> Optional[Violation]:
        referencers = [model.classes[fqn] for fqn in graph.reverse.get(unit.fqn, ())]

        outsiders = sorted(r.fqn for r in referencers if model.module_of(r.namespace) != module_name)
        if outsiders:
            return self.class_violation(
                model,
                unit,
                f"Repository of module '{module_name}' is referenced from outside it: {', '.join(outsiders)}",
            )

        use_cases = sorted(
            {case for case in (model.use_case_scope(r.namespace) for r in referencers) if case is not None}
        )
        if len(use_cases) == 1:
            home = use_cases[0]
            if not is_within(unit.namespace, home):
                return self.class_violation(
                    model,
                    unit,
                    f"Repository is referenced only by use case '{home}' and must live in it "
                    f"(found in '{unit.namespace or '<root>'}')",
                )
        elif len(use_cases) >= 2:
            common = model.modules[module_name].common_path
            if not is_within(unit.namespace, common):
                return self.class_violation(
                    model,
                    unit,
                    f"Repository is shared by {len(use_cases)} use cases ({', '.join(use_cases)}) "
                    f"and must live in '{common}'",
                )
        return None
