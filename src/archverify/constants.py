"""Identifiers shared by configuration, rules and reporting."""

from enum import Enum

# Rule ids in registry order (R1..R8).
RULE_IDS: tuple[str, ...] = ("R1", "R2", "R3", "R4", "R5", "R6", "R7", "R8")


class Severity(str, Enum):
    """Violation / signal severity. ERROR sorts before WARNING."""

    ERROR = "error"
    WARNING = "warning"

    @property
    def rank(self) -> int:
        return 0 if self is Severity.ERROR else 1

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse a severity name, accepting the common ``warn`` spelling."""
        normalized = value.strip().lower()
        if normalized == "warn":
            normalized = "warning"
        return cls(normalized)


class OutputFormat(str, Enum):
    """Report renderings selectable with --format."""

    TEXT = "text"
    JSON = "json"
    GITHUB = "github"


class SignalMetric(str, Enum):
    """Growth metrics tracked per module by the escalation analyzer."""

    USE_CASES = "use_cases"
    CLASSES = "classes"
    AGGREGATES = "aggregates"
    CYCLES = "cycles"


# Default marker -> capability tag table. Markers are normalized before lookup
# (leading "@" and package prefix dropped, lower-cased).
DEFAULT_MARKER_TAGS: dict[str, str] = {
    "entity": "PersistentEntity",
    "persistent": "PersistentEntity",
    "table": "PersistentEntity",
    "document": "PersistentEntity",
    "aggregate_root": "PersistentEntity",
    "repository": "RepositoryInterface",
    "service": "ServiceFacade",
    "facade": "ServiceFacade",
    "error_enum": "ErrorEnum",
    "error_code": "ErrorEnum",
    "controller": "WebEndpoint",
    "restcontroller": "WebEndpoint",
    "endpoint": "WebEndpoint",
    "http": "WebEndpoint",
    "event": "EventType",
    "domain_event": "EventType",
    "configuration": "ConfigType",
    "configurationproperties": "ConfigType",
}

# Default role -> naming suffix table.
DEFAULT_SUFFIX_CONVENTIONS: dict[str, str] = {
    "PersistentEntity": "Entity",
    "RepositoryInterface": "Repository",
    "ServiceFacade": "Service",
    "ErrorEnum": "ErrorCode",
    "WebEndpoint": "Controller",
    "EventType": "Event",
}

DEFAULT_TRANSACTION_MARKERS: tuple[str, ...] = ("transactional",)

DEFAULT_RESERVED_NAMES: tuple[str, ...] = ("config", "common")

CONFIG_FILE_NAME = "archverify.toml"
ENV_PREFIX = "ARCHVERIFY_"
