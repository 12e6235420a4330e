"""Rule engine: parallel evaluation with deterministic output."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable, Optional

from ..logging_config import get_logger
from ..report.models import Violation
from .base import Rule
from .registry import RULE_REGISTRY

if TYPE_CHECKING:
    from ..config import RuleSetConfig
    from ..graph.models import DependencyGraph
    from ..model.models import Model

logger = get_logger(__name__)

_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


class RuleEngine:
    """Evaluates the enabled rules and post-processes their violations.

    Post-processing, per violation:
      - severity override from configuration
      - suppression from configuration, class markers or namespace markers
    The merged list is sorted, so thread scheduling never shows in the output.
    """

    def __init__(
        self,
        config: RuleSetConfig,
        enabled: Optional[Iterable[str]] = None,
        rules: Optional[Iterable[Rule]] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config
        candidates = list(rules) if rules is not None else list(RULE_REGISTRY)
        if enabled is not None:
            wanted = set(enabled)
            candidates = [r for r in candidates if r.rule_id in wanted]
        disabled = set(config.disabled_rules)
        self.rules = [r for r in candidates if r.rule_id not in disabled]
        self._max_workers = max_workers or config.workers or _DEFAULT_WORKERS

    @property
    def rule_ids(self) -> tuple[str, ...]:
        return tuple(r.rule_id for r in self.rules)

    def evaluate(self, model: Model, graph: DependencyGraph) -> list[Violation]:
        """Run every enabled rule and return the merged, sorted violations."""
        if not self.rules:
            return []

        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(self.rules))) as executor:
            results = list(executor.map(lambda rule: self._run_rule(rule, model, graph), self.rules))

        merged = [v for batch in results for v in batch]
        merged.sort(key=lambda v: v.sort_key)
        return merged

    def _run_rule(self, rule: Rule, model: Model, graph: DependencyGraph) -> list[Violation]:
        severity = self.config.severity_for(rule.rule_id, rule.default_severity)
        config_suppressed = rule.rule_id in self.config.suppressed_rules

        processed: list[Violation] = []
        for violation in rule.check(model, graph, self.config):
            if violation.severity is not severity:
                violation = violation.with_severity(severity)
            if not violation.suppressed and (
                config_suppressed or self._marker_suppressed(model, violation)
            ):
                violation = violation.as_suppressed()
            processed.append(violation)

        logger.debug(f"{rule.rule_id} ({rule.name}): {len(processed)} violation(s)")
        return processed

    @staticmethod
    def _marker_suppressed(model: Model, violation: Violation) -> bool:
        if violation.subject in model.classes:
            return model.is_suppressed(violation.rule_id, fqn=violation.subject)
        if violation.subject in model.namespaces:
            return model.is_suppressed(violation.rule_id, path=violation.subject)
        return False
