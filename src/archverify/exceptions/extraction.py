"""Extraction exceptions and records: unreadable sources, malformed declarations."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .base import ArchVerifyError


class ExtractionError(ArchVerifyError):
    """Base class for extraction-related errors."""

    pass


class FatalExtractionError(ExtractionError):
    """Raised when the declaration source is unreadable as a whole.

    Aborts the pipeline; nothing after extraction runs.
    """

    def __init__(self, source: Path, reason: str):
        super().__init__(
            f"Cannot read declaration source: {source}",
            details={"source": str(source), "reason": reason},
        )
        self.source = source
        self.reason = reason


class PipelineStateError(ArchVerifyError):
    """Raised on an illegal pipeline state transition."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Illegal pipeline transition: {current} -> {requested}",
            details={"current": current, "requested": requested},
        )
        self.current = current
        self.requested = requested


@dataclass(frozen=True)
class PartialParseWarning:
    """A single declaration (or declaration file) that was excluded from the model.

    Not raised: recorded, reported, and never escalated to a fatal error.
    """

    code: str  # AV1xx, see WarningCode
    source: str  # file the declaration came from
    reason: str
    index: Optional[int] = None  # position in the source list, None = whole file
    subject: str = ""  # declaration name/path when known

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "source": self.source,
            "index": self.index,
            "subject": self.subject,
            "reason": self.reason,
        }


class WarningCode:
    """Codes attached to partial-parse warnings."""

    UNREADABLE_FILE = "AV100"
    MALFORMED_DECLARATION = "AV101"
    INVALID_PATH = "AV102"
    DUPLICATE_DECLARATION = "AV103"
