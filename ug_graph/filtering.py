"""
Search filtering - Decide which nodes and edges are visible for a query.

Filtering only computes visibility; it never changes the graph or the
layout.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import GraphNode, GraphEdge


@dataclass
class FilterResult:
    """Visible node and edge ids, in graph order."""
    query: str = ""
    visible_node_ids: list[str] = field(default_factory=list)
    visible_edge_ids: list[str] = field(default_factory=list)

    def is_node_visible(self, node_id: str) -> bool:
        return node_id in self._node_set

    def is_edge_visible(self, edge_id: str) -> bool:
        return edge_id in self._edge_set

    def __post_init__(self):
        self._node_set = set(self.visible_node_ids)
        self._edge_set = set(self.visible_edge_ids)


def node_matches(node: "GraphNode", query: str) -> bool:
    """Case-insensitive substring match over name, description, process name and tags."""
    needle = query.strip().lower()
    if not needle:
        return True
    return any(needle in text.lower() for text in node.search_fields() if text)


def filter_graph(
    nodes: list["GraphNode"],
    edges: list["GraphEdge"],
    query: str = ""
) -> FilterResult:
    """
    Compute visibility for a search query.

    An empty (or whitespace-only) query shows everything. An edge is visible
    only when both of its endpoints are visible.

    Args:
        nodes: All nodes in the graph
        edges: All edges in the graph
        query: Free-text query

    Returns:
        FilterResult with visible node and edge ids
    """
    query = query or ""
    visible_nodes = [n.id for n in nodes if node_matches(n, query)]
    visible_set = set(visible_nodes)
    visible_edges = [
        e.id for e in edges
        if e.source in visible_set and e.target in visible_set
    ]
    return FilterResult(
        query=query,
        visible_node_ids=visible_nodes,
        visible_edge_ids=visible_edges,
    )
