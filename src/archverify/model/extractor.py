"""Model extraction: raw declarations -> Namespace tree + ClassUnits.

Two phases:
1. Validate each batch independently (parallel, one buffer per batch).
   Malformed declarations become PartialParseWarnings and are dropped.
2. Merge the buffers in source order and build the frozen model: namespace
   kinds, capability tags, module public surfaces, triggered use cases.

Roles are resolved here once. No later stage looks at raw markers again.
"""

from __future__ import annotations

import os
import re
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ..exceptions import PartialParseWarning, WarningCode
from ..logging_config import get_logger
from .loader import DeclarationBatch, batch_from_items
from .models import (
    ROOT_PATH,
    TRIGGER_TAGS,
    CapabilityTag,
    ClassUnit,
    Declaration,
    Model,
    Module,
    Namespace,
    NamespaceKind,
    join_path,
    parent_path,
)

if TYPE_CHECKING:
    from ..config import RuleSetConfig

logger = get_logger(__name__)

_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)

_IDENTIFIER = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_VISIBILITIES = frozenset({"public", "internal", "private"})
_KINDS = frozenset({"class", "namespace"})


@dataclass
class _Buffer:
    """Per-batch extraction output; owned by exactly one worker."""

    declarations: list[Declaration] = field(default_factory=list)
    warnings: list[PartialParseWarning] = field(default_factory=list)


class _Malformed(Exception):
    def __init__(self, code: str, reason: str, subject: str = ""):
        super().__init__(reason)
        self.code = code
        self.reason = reason
        self.subject = subject


def normalize_marker(marker: str) -> str:
    """'@javax.persistence.Entity' -> 'entity', 'Error-Enum' -> 'error_enum'."""
    name = marker.strip().lstrip("@")
    name = name.split("(", 1)[0].rpartition(".")[2]
    return name.replace("-", "_").lower()


def normalize_path(path: str) -> str:
    return path.strip().replace("/", ".").replace("::", ".").strip(".")


def match_suffix(name: str, suffixes: Iterable[str]) -> Optional[str]:
    """Longest configured suffix ``name`` ends with (and is longer than)."""
    best: Optional[str] = None
    for suffix in suffixes:
        if len(name) > len(suffix) and name.endswith(suffix):
            if best is None or len(suffix) > len(best):
                best = suffix
    return best


def infer_namespace_kind(path: str, parent_kind: Optional[NamespaceKind], config: RuleSetConfig) -> NamespaceKind:
    """Kind of a namespace from its own segment and its parent's kind."""
    if path == ROOT_PATH:
        return NamespaceKind.PLAIN
    segment = path.rpartition(".")[2]
    if "." not in path:
        if segment == config.config_name:
            return NamespaceKind.CONFIG
        if segment == config.common_name:
            return NamespaceKind.COMMON
        return NamespaceKind.BOUNDED_CONTEXT
    if segment == config.common_name:
        return NamespaceKind.COMMON
    if parent_kind in (NamespaceKind.BOUNDED_CONTEXT, NamespaceKind.USE_CASE):
        return NamespaceKind.USE_CASE
    return NamespaceKind.PLAIN


def infer_tags(
    name: str,
    markers: Iterable[str],
    namespace_kind: NamespaceKind,
    in_module: bool,
    config: RuleSetConfig,
) -> tuple[frozenset[CapabilityTag], Optional[str]]:
    """Capability tags and naming suffix for one class.

    Priority: explicit markers, then the naming suffix, then a fallback
    determined by where the class lives.
    """
    suffix = match_suffix(name, config.suffix_conventions.values())

    tags = {
        CapabilityTag(config.marker_tags[m])
        for m in (normalize_marker(raw) for raw in markers)
        if m in config.marker_tags
    }
    if not tags and suffix is not None:
        tags = {CapabilityTag(role) for role, s in config.suffix_conventions.items() if s == suffix}
    if not tags:
        if namespace_kind == NamespaceKind.CONFIG:
            tags = {CapabilityTag.CONFIG_TYPE}
        elif in_module:
            tags = {CapabilityTag.DOMAIN_TYPE}
        else:
            tags = {CapabilityTag.PLAIN}
    return frozenset(tags), suffix


class ModelExtractor:
    """Builds the structural model from declaration batches."""

    def __init__(self, config: RuleSetConfig, max_workers: Optional[int] = None) -> None:
        self.config = config
        self._max_workers = max_workers or config.workers or _DEFAULT_WORKERS

    def extract(
        self,
        batches: list[DeclarationBatch],
        source_warnings: Iterable[PartialParseWarning] = (),
    ) -> Model:
        """Validate all batches in parallel, then build the model."""
        ordered = sorted(batches, key=lambda b: b.source)
        if len(ordered) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                buffers = list(executor.map(self.parse_batch, ordered))
        else:
            buffers = [self.parse_batch(b) for b in ordered]

        declarations: list[Declaration] = []
        warnings: list[PartialParseWarning] = list(source_warnings)
        for buf in buffers:
            declarations.extend(buf.declarations)
            warnings.extend(buf.warnings)

        return self.build_model(declarations, warnings)

    # ── Phase 1: per-batch validation ──────────────────────────────

    def parse_batch(self, batch: DeclarationBatch) -> _Buffer:
        buf = _Buffer()
        for index, item in enumerate(batch.items):
            try:
                buf.declarations.append(self.parse_declaration(item, batch.source, index))
            except _Malformed as e:
                buf.warnings.append(
                    PartialParseWarning(
                        code=e.code, source=batch.source, index=index, subject=e.subject, reason=e.reason
                    )
                )
        return buf

    def parse_declaration(self, item: Any, source: str, index: int) -> Declaration:
        if not isinstance(item, dict):
            raise _Malformed(WarningCode.MALFORMED_DECLARATION, "declaration is not an object")

        kind = item.get("kind", "class")
        if not isinstance(kind, str) or kind not in _KINDS:
            raise _Malformed(WarningCode.MALFORMED_DECLARATION, f"unknown declaration kind {kind!r}")

        raw_path = item.get("path", "")
        if not isinstance(raw_path, str):
            raise _Malformed(WarningCode.INVALID_PATH, "path must be a string")
        path = normalize_path(raw_path)
        if path and not all(_IDENTIFIER.fullmatch(seg) for seg in path.split(".")):
            raise _Malformed(WarningCode.INVALID_PATH, f"invalid path {raw_path!r}", subject=raw_path)

        name = item.get("name", "")
        if kind == "class":
            if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
                raise _Malformed(
                    WarningCode.MALFORMED_DECLARATION, f"invalid class name {name!r}", subject=path
                )
        elif not path:
            raise _Malformed(WarningCode.INVALID_PATH, "namespace declaration without a path")

        subject = join_path(path, name) if kind == "class" else path
        visibility = item.get("visibility", "public")
        if not isinstance(visibility, str) or visibility not in _VISIBILITIES:
            raise _Malformed(
                WarningCode.MALFORMED_DECLARATION, f"unknown visibility {visibility!r}", subject=subject
            )
        location = item.get("location", "")
        if not isinstance(location, str):
            raise _Malformed(WarningCode.MALFORMED_DECLARATION, "location must be a string", subject=subject)

        return Declaration(
            kind=kind,
            path=path,
            name=name if kind == "class" else "",
            markers=_string_list(item, "markers", subject),
            visibility=visibility,
            references=tuple(normalize_path(r) for r in _string_list(item, "references", subject)),
            suppress=tuple(s.strip().upper() for s in _string_list(item, "suppress", subject)),
            location=location,
            source=source,
            index=index,
        )

    # ── Phase 2: model construction ────────────────────────────────

    def build_model(
        self, declarations: list[Declaration], warnings: Optional[list[PartialParseWarning]] = None
    ) -> Model:
        warnings = list(warnings or [])
        class_decls: dict[str, Declaration] = {}
        ns_suppress: dict[str, set[str]] = defaultdict(set)

        for decl in declarations:
            if decl.kind == "namespace":
                ns_suppress[decl.path].update(decl.suppress)
                continue
            if decl.fqn in class_decls:
                first = class_decls[decl.fqn]
                warnings.append(
                    PartialParseWarning(
                        code=WarningCode.DUPLICATE_DECLARATION,
                        source=decl.source,
                        index=decl.index,
                        subject=decl.fqn,
                        reason=f"duplicate of declaration in {first.source}#{first.index}",
                    )
                )
                continue
            class_decls[decl.fqn] = decl

        for w in warnings:
            if w.index is None:
                continue  # file-level, already logged by the loader
            logger.warning(f"[{w.code}] {w.source}: {w.subject or 'declaration'} excluded ({w.reason})")

        namespaces = self._build_namespaces(
            {d.path for d in class_decls.values()} | set(ns_suppress), ns_suppress
        )
        module_names = {
            ns.path for ns in namespaces.values() if ns.kind == NamespaceKind.BOUNDED_CONTEXT
        }

        classes: dict[str, ClassUnit] = {}
        transaction_markers = {normalize_marker(m) for m in self.config.transaction_markers}
        for fqn in sorted(class_decls):
            decl = class_decls[fqn]
            ns = namespaces[decl.path]
            in_module = decl.path.split(".", 1)[0] in module_names if decl.path else False
            tags, suffix = infer_tags(decl.name, decl.markers, ns.kind, in_module, self.config)
            classes[fqn] = ClassUnit(
                fqn=fqn,
                name=decl.name,
                namespace=decl.path,
                tags=tags,
                visibility=decl.visibility,
                suffix=suffix,
                references=decl.references,
                transactional=any(normalize_marker(m) in transaction_markers for m in decl.markers),
                suppressed_rules=frozenset(decl.suppress),
                location=decl.location,
            )

        triggered = frozenset(
            unit.namespace
            for unit in classes.values()
            if namespaces[unit.namespace].kind == NamespaceKind.USE_CASE and unit.tags & TRIGGER_TAGS
        )

        modules = self._build_modules(module_names, classes)

        logger.info(
            f"Extracted {len(classes)} classes in {len(namespaces)} namespaces "
            f"({len(modules)} modules, {len(warnings)} warnings)"
        )
        return Model(
            namespaces=namespaces,
            classes=classes,
            modules=modules,
            warnings=tuple(warnings),
            triggered_use_cases=triggered,
            config_name=self.config.config_name,
            common_name=self.config.common_name,
        )

    def _build_namespaces(
        self, paths: set[str], suppress: dict[str, set[str]]
    ) -> dict[str, Namespace]:
        """Namespace tree including every ancestor, built top-down without recursion."""
        all_paths: set[str] = {ROOT_PATH}
        for path in paths:
            current: Optional[str] = path
            while current is not None and current not in all_paths:
                all_paths.add(current)
                current = parent_path(current)

        children: dict[str, list[str]] = defaultdict(list)
        for path in all_paths:
            parent = parent_path(path)
            if parent is not None:
                children[parent].append(path)

        kinds: dict[str, NamespaceKind] = {}
        # Sorting by depth guarantees a parent's kind is known before its children.
        for path in sorted(all_paths, key=lambda p: (p.count(".") + (1 if p else 0), p)):
            parent = parent_path(path)
            kinds[path] = infer_namespace_kind(path, kinds.get(parent) if parent is not None else None, self.config)

        return {
            path: Namespace(
                path=path,
                kind=kinds[path],
                parent=parent_path(path),
                children=tuple(sorted(children.get(path, ()))),
                suppressed_rules=frozenset(suppress.get(path, ())),
            )
            for path in sorted(all_paths)
        }

    def _build_modules(self, module_names: set[str], classes: dict[str, ClassUnit]) -> dict[str, Module]:
        members: dict[str, list[str]] = defaultdict(list)
        for unit in classes.values():
            top = unit.namespace.split(".", 1)[0] if unit.namespace else ""
            if top in module_names:
                members[top].append(unit.fqn)

        modules: dict[str, Module] = {}
        for name in sorted(module_names):
            common_path = join_path(name, self.config.common_name)
            surface = frozenset(
                fqn
                for fqn in members.get(name, ())
                if _is_public_member(classes[fqn], name, common_path)
            )
            modules[name] = Module(
                name=name,
                path=name,
                classes=tuple(sorted(members.get(name, ()))),
                public_surface=surface,
                common_path=common_path,
            )
        return modules


def _is_public_member(unit: ClassUnit, module_path: str, common_path: str) -> bool:
    """Service facades at the module root, event types at the root or in its Common namespace."""
    if unit.has_tag(CapabilityTag.SERVICE_FACADE) and unit.namespace == module_path:
        return True
    if unit.has_tag(CapabilityTag.EVENT_TYPE) and unit.namespace in (module_path, common_path):
        return True
    return False


def _string_list(item: dict, key: str, subject: str) -> tuple[str, ...]:
    value = item.get(key, [])
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _Malformed(WarningCode.MALFORMED_DECLARATION, f"{key} must be a list of strings", subject=subject)
    return tuple(v for v in value if v.strip())


def extract_model(items: list[Any], config: Optional[RuleSetConfig] = None) -> Model:
    """Convenience wrapper: build a model from in-memory declaration objects."""
    from ..config import RuleSetConfig

    return ModelExtractor(config or RuleSetConfig()).extract([batch_from_items(items)])
