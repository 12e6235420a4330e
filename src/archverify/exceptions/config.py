"""Configuration exceptions: settings files, thresholds, rule selection."""

from pathlib import Path
from typing import Any, Iterable

from .base import ArchVerifyError


class ConfigurationError(ArchVerifyError):
    """Base class for configuration-related errors.

    Always raised before extraction starts, so a run never begins with a
    half-valid rule set.
    """

    pass


class ConfigFileError(ConfigurationError):
    """Raised when a config file is missing or cannot be decoded."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid config file: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value!r}",
            details={"key": key, "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class UnknownRuleError(ConfigurationError):
    """Raised when a rule id does not name a registered rule."""

    def __init__(self, rule_id: str, known: Iterable[str], source: str = "configuration"):
        known_ids = sorted(known)
        super().__init__(
            f"Unknown rule id: {rule_id}",
            details={"source": source, "known": ", ".join(known_ids)},
        )
        self.rule_id = rule_id
        self.known = known_ids
        self.source = source
