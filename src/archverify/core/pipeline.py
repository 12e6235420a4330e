"""Verification pipeline: extract -> build graph -> evaluate -> aggregate.

The pipeline is a linear state machine with no backtracking:

    Idle -> Extracting -> Extracted -> GraphBuilding -> Built
         -> RuleEvaluating -> Evaluated -> Aggregating -> Done
    Extracting -> FatalFailed -> Done   (fatal report, nothing else runs)

A pipeline object serves exactly one run. Re-running means building a new
pipeline over a fresh model; nothing carries over between runs.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..config import RuleSetConfig
from ..escalation import EscalationAnalyzer
from ..exceptions import FatalExtractionError, PartialParseWarning, PipelineStateError
from ..graph import DependencyGraph, build_dependency_graph
from ..logging_config import get_logger
from ..model import Model, ModelExtractor, load_declarations
from ..model.loader import DeclarationBatch
from ..report import Report, ReportAggregator, fatal_report
from ..rules import RuleEngine

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE = "Idle"
    EXTRACTING = "Extracting"
    EXTRACTED = "Extracted"
    FATAL_FAILED = "FatalFailed"
    GRAPH_BUILDING = "GraphBuilding"
    BUILT = "Built"
    RULE_EVALUATING = "RuleEvaluating"
    EVALUATED = "Evaluated"
    AGGREGATING = "Aggregating"
    DONE = "Done"


_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.EXTRACTING}),
    PipelineState.EXTRACTING: frozenset({PipelineState.EXTRACTED, PipelineState.FATAL_FAILED}),
    PipelineState.EXTRACTED: frozenset({PipelineState.GRAPH_BUILDING}),
    PipelineState.GRAPH_BUILDING: frozenset({PipelineState.BUILT}),
    PipelineState.BUILT: frozenset({PipelineState.RULE_EVALUATING}),
    PipelineState.RULE_EVALUATING: frozenset({PipelineState.EVALUATED}),
    PipelineState.EVALUATED: frozenset({PipelineState.AGGREGATING}),
    PipelineState.AGGREGATING: frozenset({PipelineState.DONE}),
    PipelineState.FATAL_FAILED: frozenset({PipelineState.DONE}),
    PipelineState.DONE: frozenset(),
}


class VerificationPipeline:
    """Runs the five stages once over one declaration source."""

    def __init__(
        self,
        config: RuleSetConfig,
        enabled_rules: Optional[Iterable[str]] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config
        self.max_workers = max_workers or config.workers
        self.engine = RuleEngine(config, enabled=enabled_rules, max_workers=self.max_workers)
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [PipelineState.IDLE]

        # Populated as stages complete, for inspection after the run
        self.model: Optional[Model] = None
        self.graph: Optional[DependencyGraph] = None

    def run(self, source: Path) -> Report:
        """Verify the declarations found at ``source``."""
        self._advance(PipelineState.EXTRACTING)
        try:
            batches, source_warnings = load_declarations(source, max_workers=self.max_workers)
            model = ModelExtractor(self.config, max_workers=self.max_workers).extract(
                batches, source_warnings
            )
        except FatalExtractionError as e:
            return self._fail(e)
        return self._run_from_model(model)

    def run_batches(
        self, batches: list[DeclarationBatch], source_warnings: Iterable[PartialParseWarning] = ()
    ) -> Report:
        """Verify declarations already in memory."""
        self._advance(PipelineState.EXTRACTING)
        model = ModelExtractor(self.config, max_workers=self.max_workers).extract(
            batches, source_warnings
        )
        return self._run_from_model(model)

    def _run_from_model(self, model: Model) -> Report:
        self.model = model
        self._advance(PipelineState.EXTRACTED)

        self._advance(PipelineState.GRAPH_BUILDING)
        graph = build_dependency_graph(model)
        self.graph = graph
        self._advance(PipelineState.BUILT)

        self._advance(PipelineState.RULE_EVALUATING)
        violations = self.engine.evaluate(model, graph)
        signals = EscalationAnalyzer(self.config).analyze(model, graph)
        self._advance(PipelineState.EVALUATED)

        self._advance(PipelineState.AGGREGATING)
        report = ReportAggregator(self.config).aggregate(
            violations,
            signals,
            warnings=model.warnings,
            rules_evaluated=self.engine.rule_ids,
            class_count=len(model.classes),
            module_count=len(model.modules),
        )
        self._advance(PipelineState.DONE)

        logger.info(
            f"Verification {'passed' if report.passed else 'failed'}: "
            f"{len(report.violations)} violation(s), {report.suppressed_count} suppressed, "
            f"{len(report.escalations)} escalation(s)"
        )
        return report

    def _fail(self, error: FatalExtractionError) -> Report:
        logger.error(f"Extraction failed: {error}")
        self._advance(PipelineState.FATAL_FAILED)
        self._advance(PipelineState.DONE)
        return fatal_report(error)

    def _advance(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise PipelineStateError(self.state.value, target.value)
        logger.info(f"Pipeline: {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)
