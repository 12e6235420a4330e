"""Tests for core/pipeline.py and api.py: the end-to-end run."""

import json

import pytest

from archverify import verify, verify_declarations
from archverify.config import RuleSetConfig
from archverify.core import PipelineState, VerificationPipeline
from archverify.exceptions import PipelineStateError, UnknownRuleError
from archverify.model.loader import batch_from_items

HAPPY_PATH = [
    PipelineState.IDLE,
    PipelineState.EXTRACTING,
    PipelineState.EXTRACTED,
    PipelineState.GRAPH_BUILDING,
    PipelineState.BUILT,
    PipelineState.RULE_EVALUATING,
    PipelineState.EVALUATED,
    PipelineState.AGGREGATING,
    PipelineState.DONE,
]


class TestPipelineStates:
    def test_happy_path(self, write_declarations, clean_declarations, config):
        pipeline = VerificationPipeline(config)
        report = pipeline.run(write_declarations(clean_declarations))
        assert report.passed
        assert pipeline.history == HAPPY_PATH
        assert pipeline.model is not None
        assert pipeline.graph is not None

    def test_fatal_short_circuits(self, tmp_path, config):
        pipeline = VerificationPipeline(config)
        report = pipeline.run(tmp_path / "missing")
        assert pipeline.history == [
            PipelineState.IDLE,
            PipelineState.EXTRACTING,
            PipelineState.FATAL_FAILED,
            PipelineState.DONE,
        ]
        assert report.fatal is not None
        assert report.exit_code == 2
        assert pipeline.graph is None

    def test_pipeline_runs_once(self, write_declarations, clean_declarations, config):
        path = write_declarations(clean_declarations)
        pipeline = VerificationPipeline(config)
        pipeline.run(path)
        with pytest.raises(PipelineStateError) as exc_info:
            pipeline.run(path)
        assert exc_info.value.current == "Done"
        assert exc_info.value.requested == "Extracting"

    def test_in_memory_batches(self, clean_declarations, config):
        pipeline = VerificationPipeline(config)
        report = pipeline.run_batches([batch_from_items(clean_declarations)])
        assert report.passed
        assert report.class_count == len(clean_declarations)
        assert report.module_count == 2
        assert report.rules_evaluated == ("R1", "R2", "R3", "R4", "R5", "R6", "R7", "R8")


class TestVerify:
    def test_clean_codebase_passes(self, write_declarations, clean_declarations):
        report = verify(write_declarations(clean_declarations))
        assert report.passed
        assert report.violations == ()
        assert report.escalations == ()

    def test_idempotent(self, write_declarations, clean_declarations, make_class):
        items = clean_declarations + [
            make_class("alpha", "AlphaService", references=["beta.BetaService"]),
            make_class("beta", "BetaService", references=["alpha.AlphaService"]),
            make_class("beta.sync", "SyncJob", ["Transactional"]),
            make_class("billing", "Policy", ["Entity"]),
            "garbage",
        ]
        path = write_declarations(items)
        first = json.dumps(verify(path).to_dict(), indent=2)
        second = json.dumps(verify(path).to_dict(), indent=2)
        assert first == second

    def test_injected_cycle(self, write_declarations, clean_declarations, make_class):
        items = clean_declarations + [
            make_class("billing", "BillingEvent", ["Event"], references=["shipping.ShippingService"]),
        ]
        report = verify(write_declarations(items))
        r7 = [v for v in report.violations if v.rule_id == "R7"]
        assert len(r7) == 1
        assert "billing -> shipping" in r7[0].message
        assert "shipping -> billing" in r7[0].message
        assert not report.passed

    def test_renaming_entity_changes_nothing_else(self, clean_declarations, make_class):
        before = verify_declarations(clean_declarations + [make_class("billing", "Policy", ["Entity"])])
        after = verify_declarations(clean_declarations + [make_class("billing", "PolicyEntity", ["Entity"])])
        assert [v.rule_id for v in before.violations] == ["R5"]
        assert after.violations == ()
        assert before.passed and after.passed
        assert before.escalations == after.escalations

    def test_suppressed_r4_does_not_fail(self, write_declarations, clean_declarations, make_class):
        items = clean_declarations + [
            make_class("billing", "LedgerJob", ["Transactional"], suppress=["R4"]),
        ]
        report = verify(write_declarations(items))
        data = report.to_dict()
        assert [v["ruleId"] for v in data["violations"]] == ["R4"]
        assert data["violations"][0]["suppressed"] is True
        assert data["suppressedCount"] == 1
        assert report.passed
        assert report.exit_code == 0

    def test_partial_parse_warnings_do_not_fail(self, write_declarations, clean_declarations):
        report = verify(write_declarations(clean_declarations + [{"kind": "class", "name": "No Spaces"}]))
        assert report.passed
        assert len(report.warnings) == 1

    def test_rule_selection(self, write_declarations, make_class):
        path = write_declarations([make_class("billing", "Policy", ["Entity", "Transactional"])])
        assert [v.rule_id for v in verify(path).violations] == ["R4", "R5"]
        assert [v.rule_id for v in verify(path, rules="-R4").violations] == ["R5"]
        assert [v.rule_id for v in verify(path, rules=["R4"]).violations] == ["R4"]

    def test_unknown_rule_raises_before_running(self, write_declarations, clean_declarations):
        with pytest.raises(UnknownRuleError):
            verify(write_declarations(clean_declarations), rules="R1,R99")

    def test_config_overrides(self, write_declarations, make_class):
        path = write_declarations([make_class("billing", "Policy", ["Entity"])])
        assert verify(path).passed
        assert not verify(path, fail_on_warning=True).passed
        assert not verify(path, config=RuleSetConfig(rule_severity_overrides={"R5": "error"})).passed

    def test_fatal_is_reported_not_raised(self, tmp_path):
        report = verify(tmp_path / "nowhere")
        assert report.fatal.error == "FatalExtractionError"
        assert report.to_dict()["fatal"]["message"].startswith("Cannot read declaration source")
