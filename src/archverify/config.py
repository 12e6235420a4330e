"""Configuration loading and validation for archverify.

A rule set configuration is merged from several sources, lowest priority first:
    1. Defaults (defined in RuleSetConfig)
    2. Project config (./archverify.toml)
    3. Explicit config file (--config)
    4. Environment variables (ARCHVERIFY_* prefix, scalar fields only)
    5. CLI overrides (passed as kwargs)

Everything is validated here, before extraction starts: a bad threshold, an
unknown rule id or a malformed allow-list aborts the run with no partial
output.

Example:
    >>> config = load_config(fail_on_warning=True)
    >>> config.fail_on_warning
    True
    >>> config.thresholds.classes_per_module
    60
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional, get_type_hints

from .constants import (
    CONFIG_FILE_NAME,
    DEFAULT_MARKER_TAGS,
    DEFAULT_RESERVED_NAMES,
    DEFAULT_SUFFIX_CONVENTIONS,
    DEFAULT_TRANSACTION_MARKERS,
    ENV_PREFIX,
    RULE_IDS,
    Severity,
    SignalMetric,
)
from .exceptions import ConfigFileError, ConfigurationError, InvalidConfigError, UnknownRuleError
from .model.models import CapabilityTag

_TAG_NAMES = frozenset(t.value for t in CapabilityTag)
_METRIC_NAMES = frozenset(m.value for m in SignalMetric)


@dataclass(frozen=True)
class ThresholdConfig:
    """Growth thresholds per module. A signal fires when a value is strictly greater.

    Attributes:
        use_cases_per_module: triggered use cases before suggesting a
            resource-grouping intermediate namespace
        classes_per_module: classes before suggesting a sub-module split
        aggregates_per_module: distinct persistent entities before suggesting
            a sub-module split
    """

    use_cases_per_module: int = 25
    classes_per_module: int = 60
    aggregates_per_module: int = 12

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            # bool is an int subclass; "true" is never a threshold
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfigError(f"thresholds.{f.name}", value, "must be an integer")
            if value < 0:
                raise InvalidConfigError(f"thresholds.{f.name}", value, "must be non-negative")

    def for_metric(self, metric: SignalMetric) -> int:
        if metric is SignalMetric.USE_CASES:
            return self.use_cases_per_module
        if metric is SignalMetric.CLASSES:
            return self.classes_per_module
        if metric is SignalMetric.AGGREGATES:
            return self.aggregates_per_module
        return 0


@dataclass(frozen=True)
class RuleSetConfig:
    """Configuration for one verification run.

    Attributes:
        Namespace conventions:
            reserved_names: names that may only appear where their kind allows
            config_name: segment denoting the root Config namespace
            common_name: segment denoting a Common namespace at any level

        Role inference:
            suffix_conventions: role -> required naming suffix
            marker_tags: normalized marker -> role
            transaction_markers: markers that flag a class as transactional

        Rule control:
            escape_hatch_allow_list: classes (names or fnmatch patterns) allowed
                to carry a transaction marker outside a use case
            rule_severity_overrides: rule id -> "error" | "warning"
            suppressed_rules: rules whose violations are kept but suppressed
            disabled_rules: rules not evaluated at all

        Escalation:
            thresholds: per-module growth thresholds
            blocking_signals: signal metrics promoted to blocking ("all" = every one)

        Run control:
            fail_on_warning: non-suppressed warnings also fail the run
            workers: parallel workers (None = auto-detect)
    """

    reserved_names: tuple[str, ...] = DEFAULT_RESERVED_NAMES
    config_name: str = "config"
    common_name: str = "common"

    suffix_conventions: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SUFFIX_CONVENTIONS)
    )
    marker_tags: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MARKER_TAGS))
    transaction_markers: tuple[str, ...] = DEFAULT_TRANSACTION_MARKERS

    escape_hatch_allow_list: tuple[str, ...] = ()
    rule_severity_overrides: dict[str, str] = field(default_factory=dict)
    suppressed_rules: tuple[str, ...] = ()
    disabled_rules: tuple[str, ...] = ()

    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    blocking_signals: tuple[str, ...] = ()

    fail_on_warning: bool = False
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        for key in ("config_name", "common_name"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.isidentifier():
                raise InvalidConfigError(key, value, "must be a plain identifier")
        if self.config_name == self.common_name:
            raise InvalidConfigError("common_name", self.common_name, "must differ from config_name")

        _require_str_tuple("reserved_names", self.reserved_names)
        _require_str_tuple("transaction_markers", self.transaction_markers)

        for role, suffix in self.suffix_conventions.items():
            if role not in _TAG_NAMES:
                raise InvalidConfigError(f"suffix_conventions.{role}", suffix, "unknown role")
            if not isinstance(suffix, str) or not suffix.isidentifier():
                raise InvalidConfigError(f"suffix_conventions.{role}", suffix, "suffix must be an identifier")

        for marker, role in self.marker_tags.items():
            if role not in _TAG_NAMES:
                raise InvalidConfigError(f"marker_tags.{marker}", role, "unknown role")

        for entry in self.escape_hatch_allow_list:
            if not isinstance(entry, str) or not entry.strip() or any(c.isspace() for c in entry):
                raise InvalidConfigError(
                    "escape_hatch_allow_list", entry, "entries must be non-empty names without whitespace"
                )

        for rule_id, severity in self.rule_severity_overrides.items():
            _require_rule_id(rule_id, "rule_severity_overrides")
            try:
                Severity.parse(str(severity))
            except ValueError:
                raise InvalidConfigError(
                    f"rule_severity_overrides.{rule_id}", severity, "must be 'error' or 'warning'"
                )
        for rule_id in self.suppressed_rules:
            _require_rule_id(rule_id, "suppressed_rules")
        for rule_id in self.disabled_rules:
            _require_rule_id(rule_id, "disabled_rules")

        for metric in self.blocking_signals:
            if metric != "all" and metric not in _METRIC_NAMES:
                raise InvalidConfigError("blocking_signals", metric, f"choose from {sorted(_METRIC_NAMES)} or 'all'")

        if not isinstance(self.fail_on_warning, bool):
            raise InvalidConfigError("fail_on_warning", self.fail_on_warning, "must be true or false")
        if self.workers is not None:
            if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
                raise InvalidConfigError("workers", self.workers, "must be an integer of at least 1")

    @property
    def all_reserved_names(self) -> frozenset[str]:
        return frozenset(self.reserved_names) | {self.config_name, self.common_name}

    def severity_for(self, rule_id: str, default: Severity) -> Severity:
        override = self.rule_severity_overrides.get(rule_id)
        return Severity.parse(override) if override is not None else default

    def is_blocking(self, metric: SignalMetric) -> bool:
        return "all" in self.blocking_signals or metric.value in self.blocking_signals


def _require_str_tuple(key: str, values: tuple) -> None:
    for value in values:
        if not isinstance(value, str) or not value:
            raise InvalidConfigError(key, value, "entries must be non-empty strings")


def _require_rule_id(rule_id: str, source: str) -> None:
    if rule_id not in RULE_IDS:
        raise UnknownRuleError(str(rule_id), RULE_IDS, source=source)


def load_config(
    config_file: Optional[Path] = None,
    project_dir: Optional[Path] = None,
    **overrides: Any,
) -> RuleSetConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        project_dir: Directory searched for archverify.toml (default: cwd)
        **overrides: Direct overrides (typically from CLI flags); None values
            are ignored

    Returns:
        Validated RuleSetConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or a value fails validation
    """
    merged: dict[str, Any] = {}

    project_config = (project_dir or Path.cwd()) / CONFIG_FILE_NAME
    if project_config.is_file():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.is_file():
            raise ConfigFileError(config_file, "file not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())
    merged.update({k: v for k, v in overrides.items() if v is not None})

    return config_from_mapping(merged)


def config_from_mapping(data: Mapping[str, Any]) -> RuleSetConfig:
    """Build a RuleSetConfig from a decoded mapping (TOML table or dict)."""
    merged = dict(data)

    thresholds = merged.pop("thresholds", None)
    if thresholds is not None:
        if isinstance(thresholds, ThresholdConfig):
            merged["thresholds"] = thresholds
        elif isinstance(thresholds, Mapping):
            try:
                merged["thresholds"] = ThresholdConfig(**thresholds)
            except TypeError as e:
                raise ConfigurationError(f"Invalid [thresholds] config: {e}")
        else:
            raise InvalidConfigError("thresholds", thresholds, "must be a table")

    hints = get_type_hints(RuleSetConfig)
    for key, value in list(merged.items()):
        hint = str(hints.get(key, ""))
        if hint.startswith("tuple"):
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise InvalidConfigError(key, value, "must be a list")
            merged[key] = tuple(value)
        elif hint.startswith("dict"):
            if not isinstance(value, Mapping):
                raise InvalidConfigError(key, value, "must be a table")
            merged[key] = _merge_table(key, value)

    try:
        return RuleSetConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _merge_table(key: str, value: Mapping[str, Any]) -> dict[str, Any]:
    """Tables extend the defaults instead of replacing them."""
    if key == "suffix_conventions":
        return {**DEFAULT_SUFFIX_CONVENTIONS, **value}
    if key == "marker_tags":
        return {**DEFAULT_MARKER_TAGS, **{str(k).lower(): v for k, v in value.items()}}
    return dict(value)


def _load_env_vars() -> dict[str, Any]:
    """Load scalar configuration from ARCHVERIFY_* environment variables.

    Supported environment variables:
        ARCHVERIFY_FAIL_ON_WARNING: bool (true/false/1/0)
        ARCHVERIFY_WORKERS: int
        ARCHVERIFY_CONFIG_NAME: str
        ARCHVERIFY_COMMON_NAME: str
    """
    type_hints = get_type_hints(RuleSetConfig)
    result: dict[str, Any] = {}

    for field_name in RuleSetConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's scalar type.

    Returns None for container fields, which are not settable from the
    environment.
    """
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none = [t for t in args if t is not type(None)]
        if non_none:
            type_hint = non_none[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")
    if type_hint is int:
        return int(value)
    if type_hint is str:
        return value
    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file.

    A pyproject.toml contributes only its [tool.archverify] table.
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigFileError(path, e.strerror or str(e))
    except tomllib.TOMLDecodeError as e:
        raise ConfigFileError(path, str(e))

    if path.name == "pyproject.toml":
        return dict(data.get("tool", {}).get("archverify", {}))
    return data
