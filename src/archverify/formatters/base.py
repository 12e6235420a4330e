"""Base formatter interface for archverify output rendering."""

from abc import ABC, abstractmethod

from ..report import Report


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, report: Report) -> None:
        """Render the report to stdout."""

    @abstractmethod
    def format(self, report: Report) -> str:
        """Return formatted string representation of the report."""
