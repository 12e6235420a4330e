"""Conformance rules R1..R8 and the engine that runs them."""

from .base import Rule
from .engine import RuleEngine
from .registry import RULE_REGISTRY, get_rule, parse_rule_selection

__all__ = [
    "RULE_REGISTRY",
    "Rule",
    "RuleEngine",
    "get_rule",
    "parse_rule_selection",
]
