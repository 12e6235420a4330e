"""
archverify - Architecture Conformance Checker

Verifies that a codebase's package structure and class relationships follow a
modular-monolith architecture: isolated configuration, bounded contexts that
talk only through public facades, self-contained use cases, and a cycle-free
module graph. Flags growth that calls for restructuring.
"""

__version__ = "0.1.0"

from .api import verify, verify_declarations
from .config import RuleSetConfig, load_config
from .report import EscalationSignal, Report, Violation

__all__ = [
    "verify",  # Main entry point
    "verify_declarations",
    "RuleSetConfig",
    "load_config",
    "Report",
    "Violation",
    "EscalationSignal",
]
