"""Public API for archverify.

Example:
    >>> from archverify import verify
    >>>
    >>> report = verify("build/declarations")
    >>> report.passed
    True
    >>>
    >>> # With customization
    >>> report = verify(
    ...     "build/declarations",
    ...     rules="R1,R2,R7",
    ...     fail_on_warning=True,
    ... )
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Union

from .config import RuleSetConfig, load_config
from .core import VerificationPipeline
from .logging_config import get_logger
from .model.loader import batch_from_items
from .report import Report
from .rules import parse_rule_selection

logger = get_logger(__name__)


def resolve_rules(rules: Union[str, Iterable[str], None]) -> Optional[frozenset[str]]:
    """Normalize a rule selection to explicit ids, None meaning all rules."""
    if rules is None:
        return None
    if isinstance(rules, str):
        return parse_rule_selection(rules)
    return parse_rule_selection(",".join(rules))


def verify(
    path: Union[str, Path],
    config: Optional[RuleSetConfig] = None,
    rules: Union[str, Iterable[str], None] = None,
    config_file: Optional[Path] = None,
    **overrides: Any,
) -> Report:
    """Verify the declarations at ``path`` and return the report.

    Orchestrates one complete run:
    1. Resolve configuration (given, or auto-discovered TOML + overrides)
    2. Read and extract declarations into the structural model
    3. Build the dependency graph and its module condensation
    4. Evaluate rules and escalation signals
    5. Aggregate into an ordered report

    Args:
        path: Declaration file or directory of declaration files
        config: Ready-made configuration; skips discovery when given
        rules: Rule selection such as ``"R1,R2"`` or ``"-R5"`` (default: all)
        config_file: Explicit TOML file, used when ``config`` is None
        **overrides: Configuration overrides (e.g., fail_on_warning=True)

    Returns:
        Report. A fatal extraction failure is reported, not raised.

    Raises:
        ConfigurationError: If configuration or rule selection is invalid
    """
    if config is None:
        config = load_config(config_file=config_file, **overrides)
    enabled = resolve_rules(rules)

    logger.debug(f"Verifying {path}")
    return VerificationPipeline(config, enabled_rules=enabled).run(Path(path))


def verify_declarations(
    declarations: list[Any],
    config: Optional[RuleSetConfig] = None,
    rules: Union[str, Iterable[str], None] = None,
) -> Report:
    """Verify in-memory declaration objects (same shape as the JSON input)."""
    config = config or RuleSetConfig()
    enabled = resolve_rules(rules)
    return VerificationPipeline(config, enabled_rules=enabled).run_batches(
        [batch_from_items(declarations)]
    )
