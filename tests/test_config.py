"""Tests for config.py: defaults, sources, merging and validation."""

import pytest

from archverify.config import RuleSetConfig, ThresholdConfig, config_from_mapping, load_config
from archverify.constants import Severity, SignalMetric
from archverify.exceptions import ConfigFileError, ConfigurationError, InvalidConfigError, UnknownRuleError


class TestDefaults:
    def test_defaults(self):
        cfg = RuleSetConfig()
        assert cfg.config_name == "config"
        assert cfg.common_name == "common"
        assert cfg.suffix_conventions["PersistentEntity"] == "Entity"
        assert cfg.suffix_conventions["RepositoryInterface"] == "Repository"
        assert cfg.suffix_conventions["ServiceFacade"] == "Service"
        assert cfg.suffix_conventions["ErrorEnum"] == "ErrorCode"
        assert cfg.thresholds == ThresholdConfig(25, 60, 12)
        assert cfg.blocking_signals == ()
        assert not cfg.fail_on_warning

    def test_reserved_names_include_configured_segments(self):
        cfg = RuleSetConfig(reserved_names=("util",), config_name="settings")
        assert cfg.all_reserved_names == frozenset({"util", "settings", "common"})

    def test_severity_for(self):
        cfg = RuleSetConfig(rule_severity_overrides={"R5": "error"})
        assert cfg.severity_for("R5", Severity.WARNING) is Severity.ERROR
        assert cfg.severity_for("R4", Severity.ERROR) is Severity.ERROR

    def test_is_blocking(self):
        assert RuleSetConfig(blocking_signals=("all",)).is_blocking(SignalMetric.CYCLES)
        assert not RuleSetConfig(blocking_signals=("classes",)).is_blocking(SignalMetric.CYCLES)


class TestLoadConfig:
    def test_no_sources(self, tmp_path):
        assert load_config(project_dir=tmp_path) == RuleSetConfig()

    def test_project_file(self, tmp_path):
        (tmp_path / "archverify.toml").write_text(
            "fail_on_warning = true\n"
            'escape_hatch_allow_list = ["billing.batch.*"]\n'
            "\n"
            "[thresholds]\n"
            "classes_per_module = 80\n"
            "\n"
            "[rule_severity_overrides]\n"
            'R5 = "error"\n'
        )
        cfg = load_config()
        assert cfg.fail_on_warning
        assert cfg.escape_hatch_allow_list == ("billing.batch.*",)
        assert cfg.thresholds == ThresholdConfig(use_cases_per_module=25, classes_per_module=80)
        assert cfg.rule_severity_overrides == {"R5": "error"}

    def test_explicit_file_overrides_project_file(self, tmp_path):
        (tmp_path / "archverify.toml").write_text("workers = 2\nfail_on_warning = true\n")
        explicit = tmp_path / "ci.toml"
        explicit.write_text("workers = 6\n")
        cfg = load_config(config_file=explicit)
        assert cfg.workers == 6
        assert cfg.fail_on_warning

    def test_pyproject_tool_table(self, tmp_path):
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text('[project]\nname = "x"\n\n[tool.archverify]\nsuppressed_rules = ["R5"]\n')
        assert load_config(config_file=pyproject).suppressed_rules == ("R5",)

    def test_env_vars(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHVERIFY_FAIL_ON_WARNING", "yes")
        monkeypatch.setenv("ARCHVERIFY_WORKERS", "3")
        cfg = load_config(project_dir=tmp_path)
        assert cfg.fail_on_warning
        assert cfg.workers == 3

    def test_bad_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHVERIFY_WORKERS", "many")
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config(project_dir=tmp_path)
        assert exc_info.value.key == "ARCHVERIFY_WORKERS"

    def test_overrides_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ARCHVERIFY_WORKERS", "3")
        cfg = load_config(project_dir=tmp_path, workers=5, fail_on_warning=None)
        assert cfg.workers == 5
        assert not cfg.fail_on_warning

    def test_tables_extend_defaults(self):
        cfg = config_from_mapping(
            {"suffix_conventions": {"PersistentEntity": "Record"}, "marker_tags": {"Aggregate": "PersistentEntity"}}
        )
        assert cfg.suffix_conventions["PersistentEntity"] == "Record"
        assert cfg.suffix_conventions["RepositoryInterface"] == "Repository"
        assert cfg.marker_tags["aggregate"] == "PersistentEntity"
        assert cfg.marker_tags["entity"] == "PersistentEntity"


class TestValidation:
    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigFileError):
            load_config(config_file=tmp_path / "absent.toml")

    def test_malformed_toml(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("fail_on_warning = = true\n")
        with pytest.raises(ConfigFileError):
            load_config(config_file=bad)

    def test_negative_threshold(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            config_from_mapping({"thresholds": {"classes_per_module": -1}})
        assert exc_info.value.key == "thresholds.classes_per_module"

    def test_non_integer_threshold(self):
        with pytest.raises(InvalidConfigError):
            ThresholdConfig(classes_per_module=True)

    def test_unknown_threshold_key(self):
        with pytest.raises(ConfigurationError):
            config_from_mapping({"thresholds": {"modules_per_module": 3}})

    def test_unknown_rule_id(self):
        with pytest.raises(UnknownRuleError) as exc_info:
            RuleSetConfig(suppressed_rules=("R9",))
        assert exc_info.value.source == "suppressed_rules"

    def test_unknown_rule_in_overrides(self):
        with pytest.raises(UnknownRuleError):
            config_from_mapping({"rule_severity_overrides": {"R0": "error"}})

    def test_bad_severity(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(rule_severity_overrides={"R5": "fatal"})

    def test_malformed_allow_list(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(escape_hatch_allow_list=("billing.Batch Job",))
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(escape_hatch_allow_list=("",))

    def test_list_expected(self):
        with pytest.raises(InvalidConfigError):
            config_from_mapping({"escape_hatch_allow_list": "billing.*"})

    def test_unknown_blocking_signal(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(blocking_signals=("lines",))

    def test_unknown_role(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(suffix_conventions={"Aggregate": "Root"})

    def test_config_and_common_must_differ(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(config_name="shared", common_name="shared")

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            config_from_mapping({"fail_on_error": True})

    def test_workers(self):
        with pytest.raises(InvalidConfigError):
            RuleSetConfig(workers=0)
