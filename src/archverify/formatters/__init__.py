"""Output formatters for archverify."""

from ..constants import OutputFormat
from .base import BaseFormatter
from .github_formatter import GithubFormatter
from .json_formatter import JsonFormatter
from .rich_formatter import RichFormatter

FORMATS = tuple(f.value for f in OutputFormat)


def get_formatter(name: str) -> BaseFormatter:
    """Get a formatter instance by name.

    Args:
        name: One of "text" (alias "rich"), "json", "github"

    Returns:
        Formatter instance

    Raises:
        ValueError: If name is not recognized
    """
    formatters = {
        "text": RichFormatter,
        "rich": RichFormatter,
        "json": JsonFormatter,
        "github": GithubFormatter,
    }
    cls = formatters.get(name)
    if cls is None:
        raise ValueError(f"Unknown formatter: {name!r}. Choose from: {', '.join(FORMATS)}")
    return cls()


__all__ = [
    "BaseFormatter",
    "FORMATS",
    "GithubFormatter",
    "JsonFormatter",
    "RichFormatter",
    "get_formatter",
]
