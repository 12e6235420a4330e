"""Dependency graphs: class references and their module condensation."""

from .algorithms import find_cycle_groups, tarjan_scc
from .builder import build_dependency_graph
from .models import CycleGroup, DependencyEdge, DependencyGraph, ModuleEdge

__all__ = [
    "CycleGroup",
    "DependencyEdge",
    "DependencyGraph",
    "ModuleEdge",
    "build_dependency_graph",
    "find_cycle_groups",
    "tarjan_scc",
]
