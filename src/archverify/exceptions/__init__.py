"""Exception hierarchy for archverify."""

from .base import ArchVerifyError
from .config import (
    ConfigFileError,
    ConfigurationError,
    InvalidConfigError,
    UnknownRuleError,
)
from .extraction import (
    ExtractionError,
    FatalExtractionError,
    PartialParseWarning,
    PipelineStateError,
    WarningCode,
)

__all__ = [
    "ArchVerifyError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "UnknownRuleError",
    "ExtractionError",
    "FatalExtractionError",
    "PartialParseWarning",
    "PipelineStateError",
    "WarningCode",
]
