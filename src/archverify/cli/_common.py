"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console

from ..config import RuleSetConfig, load_config

console = Console()
err_console = Console(stderr=True)

# Fatal extraction or configuration error; 0 and 1 come from Report.exit_code
EXIT_FATAL = 2


def resolve_config(
    config: Optional[Path] = None,
    fail_on_warning: bool = False,
    workers: Optional[int] = None,
) -> RuleSetConfig:
    """Build configuration from CLI options."""
    overrides = {}
    if fail_on_warning:
        overrides["fail_on_warning"] = True
    if workers is not None:
        overrides["workers"] = workers
    return load_config(config_file=config, **overrides)
