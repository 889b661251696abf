"""Structural queries over a vault's link graph.

Every function here is pure: it reads a freshly built :class:`VaultGraph`
and returns a new result. Ties are always broken by vault listing order, so
results are deterministic for a given directory state.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

import networkx as nx

from vaultgraph.errors import NotFoundError
from vaultgraph.graph import BrokenLink, VaultGraph

FOUND = "found"
UNREACHABLE = "unreachable"
NOT_FOUND = "not_found"


@dataclass
class Centrality:
    """Degree of one document in the link graph."""

    document: str
    in_degree: int
    out_degree: int

    @property
    def degree(self) -> int:
        return self.in_degree + self.out_degree


@dataclass
class PathResult:
    """Outcome of a shortest-path search."""

    source: str
    target: str
    status: str  # FOUND, UNREACHABLE or NOT_FOUND
    path: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)  # set when NOT_FOUND

    @property
    def found(self) -> bool:
        return self.status == FOUND

    @property
    def hops(self) -> int | None:
        return len(self.path) - 1 if self.path else None


def backlinks(graph: VaultGraph, target: str) -> list[str]:
    """Documents with an edge into *target*, in listing order."""
    name = graph.filename(target)
    if not graph.has_document(name):
        raise NotFoundError(name)
    return graph.predecessors(name)


def orphans(graph: VaultGraph, exclude: Iterable[str] = ()) -> list[str]:
    """Documents with no incoming and no outgoing resolved links.

    Args:
        exclude: filenames never reported, e.g. a welcome note.
    """
    skip = set(exclude)
    return [
        name
        for name in graph.nodes
        if name not in skip
        and graph.in_degree(name) == 0
        and graph.out_degree(name) == 0
    ]


def clusters(graph: VaultGraph, min_size: int = 2) -> list[list[str]]:
    """Connected components of the graph with edge direction ignored.

    Components are discovered by breadth-first search from each unvisited
    document in listing order; members are listed in visit order.
    """
    visited: set[str] = set()
    found: list[list[str]] = []
    for start in graph.nodes:
        if start in visited:
            continue
        visited.add(start)
        component = [start]
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbor in graph.neighbors(current):
                if neighbor not in visited:
                    visited.add(neighbor)
                    component.append(neighbor)
                    queue.append(neighbor)
        if len(component) >= min_size:
            found.append(component)
    return found


def centrality(graph: VaultGraph, limit: int = 10) -> list[Centrality]:
    """Top *limit* documents by in-degree + out-degree."""
    scores = [
        Centrality(name, graph.in_degree(name), graph.out_degree(name))
        for name in graph.nodes
    ]
    # Stable sort: equal degrees keep listing order.
    scores.sort(key=lambda c: c.degree, reverse=True)
    return scores[: max(limit, 0)]


def shortest_path(
    graph: VaultGraph,
    source: str,
    target: str,
) -> PathResult:
    """Minimum-hop path following link direction.

    Never raises for unknown documents: the result's status says
    ``not_found`` and lists the missing names instead.
    """
    src = graph.filename(source)
    dst = graph.filename(target)
    missing = [n for n in (src, dst) if not graph.has_document(n)]
    if missing:
        return PathResult(src, dst, NOT_FOUND, missing=missing)
    if src == dst:
        return PathResult(src, dst, FOUND, path=[src])

    parents: dict[str, str | None] = {src: None}
    queue = deque([src])
    while queue:
        current = queue.popleft()
        for nxt in graph.successors(current):
            if nxt in parents:
                continue
            parents[nxt] = current
            if nxt == dst:
                path = [dst]
                while parents[path[-1]] is not None:
                    path.append(parents[path[-1]])
                return PathResult(src, dst, FOUND, path=path[::-1])
            queue.append(nxt)
    return PathResult(src, dst, UNREACHABLE)


def isolated_notes(graph: VaultGraph, max_connections: int = 1) -> list[dict]:
    """Weakly connected documents.

    A document qualifies when its outgoing link count, plus one if anything
    links to it, is at most *max_connections*.
    """
    results = []
    for name in graph.nodes:
        outgoing = graph.out_degree(name)
        has_incoming = graph.in_degree(name) > 0
        connections = outgoing + (1 if has_incoming else 0)
        if connections <= max_connections:
            results.append(
                {
                    "document": name,
                    "outgoing": outgoing,
                    "has_incoming": has_incoming,
                    "connections": connections,
                }
            )
    return results


def broken_links(graph: VaultGraph) -> list[BrokenLink]:
    """Internal links whose targets do not exist, in scan order."""
    return list(graph.broken)


def graph_stats(graph: VaultGraph) -> dict:
    """Summary numbers for the link structure."""
    undirected = graph.undirected()
    n = graph.digraph.number_of_nodes()
    return {
        "documents": n,
        "links": graph.digraph.number_of_edges(),
        "broken_links": len(graph.broken),
        "components": nx.number_connected_components(undirected) if n else 0,
        "isolated": len(orphans(graph)),
        "density": nx.density(graph.digraph) if n > 1 else 0.0,
    }
