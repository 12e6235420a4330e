"""Tests for exceptions/: hierarchy and messages."""

from pathlib import Path

from archverify.exceptions import (
    ArchVerifyError,
    ConfigFileError,
    ConfigurationError,
    ExtractionError,
    FatalExtractionError,
    InvalidConfigError,
    PartialParseWarning,
    PipelineStateError,
    UnknownRuleError,
)


class TestHierarchy:
    def test_configuration_errors(self):
        for exc in (
            ConfigFileError(Path("x.toml"), "missing"),
            InvalidConfigError("workers", 0, "too small"),
            UnknownRuleError("R9", ["R1", "R2"]),
        ):
            assert isinstance(exc, ConfigurationError)
            assert isinstance(exc, ArchVerifyError)

    def test_extraction_errors(self):
        exc = FatalExtractionError(Path("decls"), "path does not exist")
        assert isinstance(exc, ExtractionError)
        assert exc.details == {"source": "decls", "reason": "path does not exist"}

    def test_pipeline_state_error_is_not_a_configuration_error(self):
        assert not isinstance(PipelineStateError("Done", "Extracting"), ConfigurationError)


class TestMessages:
    def test_str_includes_details(self):
        exc = InvalidConfigError("workers", 0, "must be an integer of at least 1")
        assert str(exc) == "Invalid configuration for workers: 0 (key=workers, reason=must be an integer of at least 1)"

    def test_str_without_details(self):
        assert str(ArchVerifyError("plain")) == "plain"

    def test_unknown_rule_lists_known_ids(self):
        exc = UnknownRuleError("R9", ["R2", "R1"], source="--rules")
        assert exc.details["known"] == "R1, R2"


class TestPartialParseWarning:
    def test_to_dict(self):
        w = PartialParseWarning(code="AV102", source="a.json", reason="invalid path", index=2, subject="x..y")
        assert w.to_dict() == {
            "code": "AV102",
            "source": "a.json",
            "index": 2,
            "subject": "x..y",
            "reason": "invalid path",
        }
