"""Build the directed link graph of a vault.

The graph is derived data: it is rebuilt from the files on every request
and never stored. :class:`GraphProvider` is the seam where a cached or
incremental implementation could be swapped in later.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property

import networkx as nx

from vaultgraph.config import DEFAULT_EXTENSION, Vault
from vaultgraph.vault import Document, load_vault

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrokenLink:
    """An internal link whose target is not a file in the vault."""

    source: str
    target: str
    raw: str


@dataclass
class VaultGraph:
    """Directed graph of documents plus the links that did not resolve.

    Node keys are filenames. Node order is the vault listing order and is
    what every query uses to break ties.
    """

    digraph: nx.DiGraph = field(default_factory=nx.DiGraph)
    broken: list[BrokenLink] = field(default_factory=list)
    extension: str = DEFAULT_EXTENSION

    @property
    def nodes(self) -> list[str]:
        return list(self.digraph.nodes)

    def __len__(self) -> int:
        return self.digraph.number_of_nodes()

    def has_document(self, name: str) -> bool:
        return self.digraph.has_node(name)

    def filename(self, name: str) -> str:
        """Map a note name to its node key, appending the extension if needed."""
        if self.has_document(name) or name.endswith(self.extension):
            return name
        return name + self.extension

    @cached_property
    def order(self) -> dict[str, int]:
        """Listing position of each document."""
        return {name: i for i, name in enumerate(self.digraph.nodes)}

    def successors(self, name: str) -> list[str]:
        return self._ordered(self.digraph.successors(name))

    def predecessors(self, name: str) -> list[str]:
        return self._ordered(self.digraph.predecessors(name))

    def neighbors(self, name: str) -> list[str]:
        """Successors and predecessors, ignoring direction."""
        return self._ordered(
            set(self.digraph.successors(name)) | set(self.digraph.predecessors(name))
        )

    def in_degree(self, name: str) -> int:
        return self.digraph.in_degree(name)

    def out_degree(self, name: str) -> int:
        return self.digraph.out_degree(name)

    def undirected(self) -> nx.Graph:
        return self.digraph.to_undirected(as_view=False)

    def _ordered(self, names) -> list[str]:
        return sorted(names, key=self.order.__getitem__)


def resolve_target(target: str, names: set[str], extension: str) -> str | None:
    """Resolve a wikilink target to a filename by exact match."""
    filename = target if target.endswith(extension) else target + extension
    return filename if filename in names else None


def build_graph(
    documents: list[Document],
    extension: str = DEFAULT_EXTENSION,
) -> VaultGraph:
    """Build a directed graph from the wikilinks between documents.

    One node per document, in the given order. An edge ``a -> b`` exists when
    ``a`` links to ``b``; its ``count`` attribute is the number of such links.
    Self-links are kept. Unresolved targets go to ``graph.broken``.
    """
    names = {doc.name for doc in documents}
    G = nx.DiGraph()
    for doc in documents:
        G.add_node(doc.name, title=doc.title)

    broken: list[BrokenLink] = []
    for doc in documents:
        for link in doc.internal_links:
            target = resolve_target(link.target, names, extension)
            if target is None:
                broken.append(BrokenLink(doc.name, link.target, link.raw))
                continue
            if G.has_edge(doc.name, target):
                G[doc.name][target]["count"] += 1
            else:
                G.add_edge(doc.name, target, count=1)

    logger.debug(
        "Built graph: %d nodes, %d edges, %d broken links",
        G.number_of_nodes(),
        G.number_of_edges(),
        len(broken),
    )
    return VaultGraph(digraph=G, broken=broken, extension=extension)


class GraphProvider(ABC):
    """Supplies the link graph for a vault."""

    @abstractmethod
    def graph(self, vault: Vault) -> VaultGraph:
        """Return a graph reflecting the vault's current on-disk state."""


class RebuildingGraphProvider(GraphProvider):
    """Rescans the vault and rebuilds the graph on every call."""

    def graph(self, vault: Vault) -> VaultGraph:
        return build_graph(load_vault(vault), vault.extension)
