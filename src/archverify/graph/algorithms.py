"""Graph algorithms over the condensation graph: SCC and cycle groups."""

from .models import CycleGroup, ModuleEdge


def tarjan_scc(adjacency: dict[str, list[str]], all_nodes: set[str]) -> list[set[str]]:
    """Tarjan's algorithm for strongly connected components (iterative).

    Uses an explicit call stack to avoid Python recursion limits on deep
    dependency chains. Roots are visited in sorted order so component
    discovery order is stable between runs.
    """
    counter = 0
    scc_stack: list[str] = []
    on_stack: set[str] = set()
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    result: list[set[str]] = []

    for root in sorted(all_nodes):
        if root in index:
            continue

        # Explicit call stack: each frame is (node, neighbor_iterator)
        call_stack: list[tuple] = []
        index[root] = lowlink[root] = counter
        counter += 1
        scc_stack.append(root)
        on_stack.add(root)
        neighbors = sorted(w for w in adjacency.get(root, []) if w in all_nodes)
        call_stack.append((root, iter(neighbors)))

        while call_stack:
            v, it = call_stack[-1]
            pushed = False
            for w in it:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    scc_stack.append(w)
                    on_stack.add(w)
                    w_neighbors = sorted(n for n in adjacency.get(w, []) if n in all_nodes)
                    call_stack.append((w, iter(w_neighbors)))
                    pushed = True
                    break
                elif w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if not pushed:
                # All neighbors processed: "return" from v
                call_stack.pop()
                if call_stack:
                    caller = call_stack[-1][0]
                    lowlink[caller] = min(lowlink[caller], lowlink[v])

                if lowlink[v] == index[v]:
                    component: set[str] = set()
                    while True:
                        w = scc_stack.pop()
                        on_stack.discard(w)
                        component.add(w)
                        if w == v:
                            break
                    result.append(component)

    return result


def find_cycle_groups(units: tuple[str, ...], module_edges: tuple[ModuleEdge, ...]) -> tuple[CycleGroup, ...]:
    """Every SCC with two or more units, with all edges running inside it.

    Intra-unit edges never reach the condensation graph, so a single-unit
    component is never a cycle here.
    """
    adjacency: dict[str, list[str]] = {u: [] for u in units}
    for edge in module_edges:
        adjacency[edge.source].append(edge.target)

    groups: list[CycleGroup] = []
    for component in tarjan_scc(adjacency, set(units)):
        if len(component) < 2:
            continue
        edges = tuple(
            sorted(
                (e for e in module_edges if e.source in component and e.target in component),
                key=lambda e: (e.source, e.target),
            )
        )
        groups.append(CycleGroup(units=tuple(sorted(component)), edges=edges))

    groups.sort(key=lambda g: g.units)
    return tuple(groups)
