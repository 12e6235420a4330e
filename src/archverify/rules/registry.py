"""Rule registry: the single source of truth for available rules.

Adding a rule requires:
1. A Rule subclass with a new id.
2. Its id in constants.RULE_IDS and an instance in RULE_REGISTRY below.
"""

from __future__ import annotations

from typing import Optional

from ..constants import RULE_IDS
from ..exceptions import UnknownRuleError
from .base import Rule
from .cycles import CycleFreedomRule
from .isolation import ConfigIsolationRule, ModuleBoundaryRule, UseCaseIsolationRule
from .naming import NamingConventionRule, ReservedNamespaceRule
from .placement import RepositoryPlacementRule, TransactionPlacementRule

RULE_REGISTRY: tuple[Rule, ...] = (
    ConfigIsolationRule(),
    ModuleBoundaryRule(),
    UseCaseIsolationRule(),
    TransactionPlacementRule(),
    NamingConventionRule(),
    RepositoryPlacementRule(),
    CycleFreedomRule(),
    ReservedNamespaceRule(),
)


def get_rule(rule_id: str) -> Rule:
    for rule in RULE_REGISTRY:
        if rule.rule_id == rule_id:
            return rule
    raise UnknownRuleError(rule_id, RULE_IDS)


def parse_rule_selection(spec: Optional[str]) -> frozenset[str]:
    """Parse a ``--rules`` value into the set of rule ids to run.

    ``"R1,R2"`` runs only R1 and R2, ``"-R4"`` runs everything but R4, and
    ``"R1,R2,-R2"`` mixes both (includes first, then excludes).
    """
    if spec is None or not spec.strip():
        return frozenset(RULE_IDS)

    includes: set[str] = set()
    excludes: set[str] = set()
    for raw in spec.split(","):
        token = raw.strip().upper()
        if not token:
            continue
        target = excludes if token.startswith(("-", "!")) else includes
        rule_id = token.lstrip("-!+")
        if rule_id not in RULE_IDS:
            raise UnknownRuleError(rule_id, RULE_IDS, source="--rules")
        target.add(rule_id)

    selected = includes or set(RULE_IDS)
    return frozenset(selected - excludes)

