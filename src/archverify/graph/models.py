"""Dependency graph models.

Two levels:
  Class graph       - one node per ClassUnit, one edge per static reference
  Condensation graph - one node per unit (module, root Config, root Common,
                      module-level Common), edges wherever a class edge
                      crosses units
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DependencyEdge:
    """A directed reference from one class to another."""

    source: str  # fully-qualified class name
    target: str
    source_unit: str
    target_unit: str
    valid: bool = True  # False = reaches an internal class of another module
    source_owner: str = ""  # module (or root unit) owning each end
    target_owner: str = ""

    @property
    def crosses_units(self) -> bool:
        return self.source_unit != self.target_unit


@dataclass(frozen=True)
class ModuleEdge:
    """A deduplicated unit-level edge of the condensation graph."""

    source: str
    target: str
    edge_count: int = 1  # number of class-level edges condensed into this one
    violating_count: int = 0  # how many of them are boundary-violating

    @property
    def label(self) -> str:
        return f"{self.source} -> {self.target}"


@dataclass(frozen=True)
class CycleGroup:
    """A strongly connected component of the condensation graph with more than one unit."""

    units: tuple[str, ...]
    edges: tuple[ModuleEdge, ...] = ()


@dataclass(frozen=True)
class DependencyGraph:
    """Read-only class and condensation graphs built once per run.

    Edges are directed: adjacency[A] contains B means A references B.
    """

    adjacency: dict[str, tuple[str, ...]] = field(default_factory=dict)
    reverse: dict[str, tuple[str, ...]] = field(default_factory=dict)
    edges: tuple[DependencyEdge, ...] = ()
    edge_count: int = 0

    # References to types outside the model (libraries, generated code)
    unresolved_references: dict[str, tuple[str, ...]] = field(default_factory=dict)

    units: tuple[str, ...] = ()
    module_edges: tuple[ModuleEdge, ...] = ()
    cycles: tuple[CycleGroup, ...] = ()

    @property
    def cross_unit_edges(self) -> tuple[DependencyEdge, ...]:
        return tuple(e for e in self.edges if e.crosses_units)

    @property
    def boundary_violations(self) -> tuple[DependencyEdge, ...]:
        return tuple(e for e in self.edges if not e.valid)

    def cycles_touching(self, *units: str) -> list[CycleGroup]:
        return [c for c in self.cycles if any(u in c.units for u in units)]
