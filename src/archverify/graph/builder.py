"""Dependency graph construction from the extracted model."""

from collections import defaultdict

from ..logging_config import get_logger
from ..model.models import ROOT_UNIT, Model, NamespaceKind
from .algorithms import find_cycle_groups
from .models import DependencyEdge, DependencyGraph, ModuleEdge

logger = get_logger(__name__)


def build_dependency_graph(model: Model) -> DependencyGraph:
    """Build the class graph and its module condensation from a model.

    References to types that are not in the model are recorded per class as
    unresolved (third-party types, generated code) and never become edges.
    A class referencing itself adds nothing.
    """
    adjacency: dict[str, list[str]] = {fqn: [] for fqn in model.classes}
    reverse: dict[str, list[str]] = {fqn: [] for fqn in model.classes}
    unresolved: dict[str, tuple[str, ...]] = {}
    edges: list[DependencyEdge] = []

    for fqn, unit in model.classes.items():
        missing: list[str] = []
        for target in sorted(set(unit.references)):
            if target == fqn:
                continue
            if target not in model.classes:
                missing.append(target)
                continue
            adjacency[fqn].append(target)
            reverse[target].append(fqn)
            edges.append(_make_edge(model, fqn, target))
        if missing:
            unresolved[fqn] = tuple(missing)

    if unresolved:
        logger.debug(
            f"{sum(len(v) for v in unresolved.values())} references point outside the model "
            f"({len(unresolved)} classes)"
        )

    units = _collect_units(model)
    module_edges = _condense(edges)
    cycles = find_cycle_groups(units, module_edges)

    logger.info(
        f"Built graph: {len(edges)} class edges, {len(module_edges)} module edges, "
        f"{len(cycles)} cycle group(s)"
    )

    return DependencyGraph(
        adjacency={k: tuple(v) for k, v in adjacency.items()},
        reverse={k: tuple(sorted(v)) for k, v in reverse.items()},
        edges=tuple(edges),
        edge_count=len(edges),
        unresolved_references=unresolved,
        units=units,
        module_edges=module_edges,
        cycles=cycles,
    )


def _make_edge(model: Model, source: str, target: str) -> DependencyEdge:
    source_ns = model.classes[source].namespace
    target_ns = model.classes[target].namespace
    source_owner = model.owner_of(source_ns)
    target_owner = model.owner_of(target_ns)

    valid = True
    if source_owner != target_owner and target_owner in model.modules:
        # Only a module's public surface may be reached from outside it.
        # A module's Common unit is still inside the module for this check.
        valid = model.modules[target_owner].is_public(target)

    return DependencyEdge(
        source=source,
        target=target,
        source_unit=model.unit_of(source_ns),
        target_unit=model.unit_of(target_ns),
        valid=valid,
        source_owner=source_owner,
        target_owner=target_owner,
    )


def _collect_units(model: Model) -> tuple[str, ...]:
    units: set[str] = set(model.modules)
    units.update(model.module_common_units())
    for ns in model.namespaces.values():
        if ns.depth == 1 and ns.kind in (NamespaceKind.CONFIG, NamespaceKind.COMMON):
            units.add(ns.path)
    if any(model.unit_of(c.namespace) == ROOT_UNIT for c in model.classes.values()):
        units.add(ROOT_UNIT)
    return tuple(sorted(units))


def _condense(edges: list[DependencyEdge]) -> tuple[ModuleEdge, ...]:
    """Collapse cross-unit class edges into deduplicated unit edges."""
    counts: dict[tuple[str, str], int] = defaultdict(int)
    violating: dict[tuple[str, str], int] = defaultdict(int)
    for edge in edges:
        if not edge.crosses_units:
            continue
        key = (edge.source_unit, edge.target_unit)
        counts[key] += 1
        if not edge.valid:
            violating[key] += 1

    return tuple(
        ModuleEdge(source=s, target=t, edge_count=counts[(s, t)], violating_count=violating[(s, t)])
        for s, t in sorted(counts)
    )
