"""Structural model of a codebase.

Ontology:
  Namespace  - a node of the package hierarchy (config, common, module, use case)
  ClassUnit  - one declared type with its inferred capability tags
  Module     - a bounded context namespace plus its public surface
  Model      - everything above, frozen once extracted

Parents are referenced by path only. The model never holds object back-pointers,
so walking up the tree is a dictionary lookup, never an ownership link.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from ..exceptions import PartialParseWarning

ROOT_PATH = ""
ROOT_UNIT = "<root>"


class NamespaceKind(str, Enum):
    """Kinds of namespace in the recursive package structure."""

    CONFIG = "Config"
    COMMON = "Common"
    BOUNDED_CONTEXT = "BoundedContext"
    USE_CASE = "UseCase"
    PLAIN = "Plain"


class CapabilityTag(str, Enum):
    """Structural roles inferred for a class."""

    PERSISTENT_ENTITY = "PersistentEntity"
    REPOSITORY_INTERFACE = "RepositoryInterface"
    SERVICE_FACADE = "ServiceFacade"
    ERROR_ENUM = "ErrorEnum"
    WEB_ENDPOINT = "WebEndpoint"
    EVENT_TYPE = "EventType"
    DOMAIN_TYPE = "DomainType"
    CONFIG_TYPE = "ConfigType"
    PLAIN = "Plain"


# Tags that make the use case holding them a triggered operation.
TRIGGER_TAGS = frozenset({CapabilityTag.WEB_ENDPOINT, CapabilityTag.EVENT_TYPE})


def join_path(parent: str, segment: str) -> str:
    return f"{parent}.{segment}" if parent else segment


def parent_path(path: str) -> Optional[str]:
    """Path of the enclosing namespace, None for the root."""
    if path == ROOT_PATH:
        return None
    head, _, _ = path.rpartition(".")
    return head


def is_within(path: str, ancestor: str) -> bool:
    """True if ``path`` equals ``ancestor`` or lies below it."""
    if ancestor == ROOT_PATH:
        return True
    return path == ancestor or path.startswith(ancestor + ".")


@dataclass(frozen=True)
class Declaration:
    """A validated declaration as supplied by the parsing collaborator."""

    kind: str  # "class" | "namespace"
    path: str
    name: str = ""
    markers: tuple[str, ...] = ()
    visibility: str = "public"
    references: tuple[str, ...] = ()
    suppress: tuple[str, ...] = ()
    location: str = ""
    source: str = ""
    index: int = 0

    @property
    def fqn(self) -> str:
        return join_path(self.path, self.name) if self.kind == "class" else self.path


@dataclass(frozen=True)
class Namespace:
    """A node in the package hierarchy."""

    path: str
    kind: NamespaceKind
    parent: Optional[str] = None  # path of the parent namespace, lookup only
    children: tuple[str, ...] = ()
    suppressed_rules: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        return self.path.rpartition(".")[2]

    @property
    def depth(self) -> int:
        return 0 if self.path == ROOT_PATH else self.path.count(".") + 1


@dataclass(frozen=True)
class ClassUnit:
    """One declared type and everything inferred about it at extraction."""

    fqn: str
    name: str
    namespace: str
    tags: frozenset[CapabilityTag] = frozenset()
    visibility: str = "public"
    suffix: Optional[str] = None
    references: tuple[str, ...] = ()
    transactional: bool = False
    suppressed_rules: frozenset[str] = frozenset()
    location: str = ""

    def has_tag(self, tag: CapabilityTag) -> bool:
        return tag in self.tags


@dataclass(frozen=True)
class Module:
    """A bounded context: its root namespace, members and public surface."""

    name: str
    path: str
    classes: tuple[str, ...] = ()
    public_surface: frozenset[str] = frozenset()
    common_path: str = ""

    def is_public(self, fqn: str) -> bool:
        return fqn in self.public_surface


@dataclass(frozen=True)
class Model:
    """The immutable structural model produced by extraction."""

    namespaces: dict[str, Namespace] = field(default_factory=dict)
    classes: dict[str, ClassUnit] = field(default_factory=dict)
    modules: dict[str, Module] = field(default_factory=dict)
    warnings: tuple[PartialParseWarning, ...] = ()
    triggered_use_cases: frozenset[str] = frozenset()
    config_name: str = "config"
    common_name: str = "common"

    # ── Namespace lookups ──────────────────────────────────────────

    def namespace(self, path: str) -> Namespace:
        return self.namespaces[path]

    def lineage(self, path: str) -> Iterator[Namespace]:
        """Yield the namespace at ``path`` and then each ancestor up to the root."""
        current: Optional[str] = path
        while current is not None:
            ns = self.namespaces.get(current)
            if ns is None:
                return
            yield ns
            current = ns.parent

    def module_of(self, path: str) -> Optional[str]:
        """Name of the bounded context enclosing ``path``, if any."""
        if path == ROOT_PATH:
            return None
        top = path.split(".", 1)[0]
        return top if top in self.modules else None

    def owner_of(self, path: str) -> str:
        """Top-level owner of a namespace path: its module, root Config or root Common.

        Anything else directly at the root collapses into ROOT_UNIT.
        """
        if path == ROOT_PATH:
            return ROOT_UNIT
        top = path.split(".", 1)[0]
        if top in self.modules:
            return top
        ns = self.namespaces.get(top)
        if ns is not None and ns.kind in (NamespaceKind.CONFIG, NamespaceKind.COMMON):
            return top
        return ROOT_UNIT

    def unit_of(self, path: str) -> str:
        """Condensation unit for a namespace path.

        Units are the top-level owners plus each module's own Common
        namespace, so a cycle through a module's shared code stays visible.
        """
        owner = self.owner_of(path)
        module = self.modules.get(owner)
        if module is not None and module.common_path in self.namespaces and is_within(path, module.common_path):
            return module.common_path
        return owner

    def module_common_units(self) -> list[str]:
        """Module-level Common namespaces that exist in the model."""
        return [m.common_path for m in self.modules.values() if m.common_path in self.namespaces]

    def is_use_case_owned(self, path: str) -> bool:
        return any(ns.kind == NamespaceKind.USE_CASE for ns in self.lineage(path))

    def triggered_use_case(self, path: str) -> Optional[str]:
        """Nearest triggered use case enclosing ``path`` (inclusive)."""
        for ns in self.lineage(path):
            if ns.path in self.triggered_use_cases:
                return ns.path
        return None

    def use_case_scope(self, path: str) -> Optional[str]:
        """The use case a namespace belongs to.

        Prefers the nearest triggered use case; a namespace with none falls
        back to its nearest UseCase-kind ancestor.
        """
        triggered = self.triggered_use_case(path)
        if triggered is not None:
            return triggered
        for ns in self.lineage(path):
            if ns.kind == NamespaceKind.USE_CASE:
                return ns.path
        return None

    # ── Class lookups ──────────────────────────────────────────────

    def module_classes(self, module: str) -> list[ClassUnit]:
        return [self.classes[fqn] for fqn in self.modules[module].classes]

    def is_suppressed(self, rule_id: str, fqn: Optional[str] = None, path: Optional[str] = None) -> bool:
        """True if a class-level or enclosing namespace-level marker suppresses ``rule_id``."""
        if fqn is not None:
            unit = self.classes.get(fqn)
            if unit is not None:
                if _matches_rule(unit.suppressed_rules, rule_id):
                    return True
                path = unit.namespace
        if path is None:
            return False
        return any(_matches_rule(ns.suppressed_rules, rule_id) for ns in self.lineage(path))


def _matches_rule(suppressed: frozenset[str], rule_id: str) -> bool:
    return rule_id in suppressed or "*" in suppressed
