"""Tests for the archverify CLI: exit codes, formats, rule selection, watch mode."""

import json

import pytest
from typer.testing import CliRunner

from archverify import __version__
from archverify.cli import app
from archverify.cli.verify import _DeclarationFilter

runner = CliRunner()


def _json_payload(output):
    """The JSON document in CLI output, ignoring any log lines around it."""
    lines = output.splitlines()
    start = lines.index("{")
    end = len(lines) - lines[::-1].index("}")
    return json.loads("\n".join(lines[start:end]))


@pytest.fixture
def clean_file(write_declarations, clean_declarations):
    return write_declarations(clean_declarations)


@pytest.fixture
def boundary_violation_file(write_declarations, clean_declarations, make_class):
    return write_declarations(
        clean_declarations + [make_class("shipping", "Rates", references=["billing.invoicing.InvoiceEntity"])]
    )


@pytest.fixture
def warning_only_file(write_declarations, clean_declarations, make_class):
    return write_declarations(clean_declarations + [make_class("billing", "Policy", ["Entity"])])


class TestRootCommand:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "verify" in result.output


class TestVerifyExitCodes:
    def test_pass(self, clean_file):
        result = runner.invoke(app, ["verify", str(clean_file)])
        assert result.exit_code == 0, result.output
        assert "PASSED" in result.output

    def test_violations(self, boundary_violation_file):
        result = runner.invoke(app, ["verify", str(boundary_violation_file)])
        assert result.exit_code == 1
        assert "R2" in result.output

    def test_missing_source_is_fatal(self, tmp_path):
        result = runner.invoke(app, ["verify", str(tmp_path / "nowhere")])
        assert result.exit_code == 2

    def test_unknown_rule_is_fatal(self, clean_file):
        result = runner.invoke(app, ["verify", str(clean_file), "--rules", "R1,R12"])
        assert result.exit_code == 2

    def test_bad_config_is_fatal(self, clean_file, tmp_path):
        cfg = tmp_path / "bad.toml"
        cfg.write_text("[thresholds]\nclasses_per_module = -5\n")
        result = runner.invoke(app, ["verify", str(clean_file), "--config", str(cfg)])
        assert result.exit_code == 2

    def test_warnings_pass_by_default(self, warning_only_file):
        result = runner.invoke(app, ["verify", str(warning_only_file)])
        assert result.exit_code == 0

    def test_fail_on_warning(self, warning_only_file):
        result = runner.invoke(app, ["verify", str(warning_only_file), "--fail-on-warning"])
        assert result.exit_code == 1

    def test_rule_exclusion_clears_failure(self, boundary_violation_file):
        result = runner.invoke(app, ["verify", str(boundary_violation_file), "--rules", "-R2"])
        assert result.exit_code == 0

    def test_project_config_is_picked_up(self, warning_only_file, tmp_path):
        (tmp_path / "archverify.toml").write_text("fail_on_warning = true\n")
        result = runner.invoke(app, ["verify", str(warning_only_file)])
        assert result.exit_code == 1


class TestVerifyFormats:
    def test_json(self, boundary_violation_file):
        result = runner.invoke(app, ["verify", str(boundary_violation_file), "--format", "json"])
        assert result.exit_code == 1
        data = _json_payload(result.stdout)
        assert data["passed"] is False
        assert [v["ruleId"] for v in data["violations"]] == ["R2"]
        assert data["violations"][0]["classOrNamespace"] == "shipping.Rates"

    def test_json_is_identical_across_runs(self, boundary_violation_file):
        first = runner.invoke(app, ["verify", str(boundary_violation_file), "-f", "json"])
        second = runner.invoke(app, ["verify", str(boundary_violation_file), "-f", "json"])
        assert first.stdout == second.stdout

    def test_json_fatal(self, tmp_path):
        result = runner.invoke(app, ["verify", str(tmp_path / "nowhere"), "--format", "json"])
        assert result.exit_code == 2
        assert _json_payload(result.stdout)["fatal"]["error"] == "FatalExtractionError"

    def test_github(self, boundary_violation_file):
        result = runner.invoke(app, ["verify", str(boundary_violation_file), "--format", "github"])
        assert result.exit_code == 1
        assert result.stdout.startswith("::error title=R2::shipping.Rates")

    def test_unknown_format(self, clean_file):
        result = runner.invoke(app, ["verify", str(clean_file), "--format", "xml"])
        assert result.exit_code == 2

    def test_format_is_case_insensitive(self, clean_file):
        result = runner.invoke(app, ["verify", str(clean_file), "--format", "JSON"])
        assert result.exit_code == 0
        assert _json_payload(result.stdout)["passed"] is True


class TestVerifyLogging:
    def test_log_file_receives_errors(self, tmp_path):
        log_file = tmp_path / "archverify.log"
        result = runner.invoke(
            app, ["verify", str(tmp_path / "nowhere"), "--quiet", "--log-file", str(log_file)]
        )
        assert result.exit_code == 2
        assert "Extraction failed" in log_file.read_text()


class TestRulesCommand:
    def test_lists_every_rule(self):
        result = runner.invoke(app, ["rules"])
        assert result.exit_code == 0
        for rule_id in ("R1", "R2", "R3", "R4", "R5", "R6", "R7", "R8"):
            assert rule_id in result.output


class TestWatchMode:
    def test_reruns_on_change(self, clean_file, monkeypatch):
        watchfiles = pytest.importorskip("watchfiles")

        def fake_watch(root, **kwargs):
            yield {(watchfiles.Change.modified, str(clean_file))}

        monkeypatch.setattr(watchfiles, "watch", fake_watch)
        result = runner.invoke(app, ["verify", str(clean_file), "--watch", "--format", "json"])
        assert result.exit_code == 0
        assert result.stdout.count('"passed": true') == 2

    def test_filter(self, tmp_path):
        decls = tmp_path / "decls"
        decls.mkdir()
        watch_filter = _DeclarationFilter(decls)
        assert watch_filter(1, str(decls / "billing.json"))
        assert watch_filter(1, str(decls / "archverify.toml"))
        assert not watch_filter(1, str(decls / "notes.txt"))
        assert not watch_filter(1, str(decls / ".cache" / "x.json"))

    def test_filter_for_single_file(self, clean_file):
        watch_filter = _DeclarationFilter(clean_file)
        assert watch_filter(1, str(clean_file))
        assert not watch_filter(1, str(clean_file.parent / "other.json"))

    def test_config_edit_applies_to_next_run(self, warning_only_file, tmp_path, monkeypatch):
        watchfiles = pytest.importorskip("watchfiles")
        config_file = tmp_path / "archverify.toml"

        def fake_watch(root, **kwargs):
            config_file.write_text("fail_on_warning = true\n")
            yield {(watchfiles.Change.modified, str(config_file))}

        monkeypatch.setattr(watchfiles, "watch", fake_watch)
        result = runner.invoke(app, ["verify", str(warning_only_file), "--watch", "-f", "json"])
        assert result.exit_code == 0
        assert result.stdout.count('"passed": true') == 1
        assert result.stdout.count('"passed": false') == 1

    def test_bad_config_edit_keeps_watching(self, clean_file, tmp_path, monkeypatch):
        watchfiles = pytest.importorskip("watchfiles")
        config_file = tmp_path / "archverify.toml"

        def fake_watch(root, **kwargs):
            config_file.write_text("[thresholds]\nclasses_per_module = -1\n")
            yield {(watchfiles.Change.modified, str(config_file))}
            config_file.write_text("[thresholds]\nclasses_per_module = 80\n")
            yield {(watchfiles.Change.modified, str(config_file))}

        monkeypatch.setattr(watchfiles, "watch", fake_watch)
        result = runner.invoke(app, ["verify", str(clean_file), "--watch", "-f", "json"])
        assert result.exit_code == 0
        assert result.stdout.count('"passed": true') == 2
