"""
Graph analysis - Structural summary of a loaded process graph.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .clustering import band_name

if TYPE_CHECKING:
    from .graph import GraphModel


@dataclass
class NodeConnectionInfo:
    """Connection information for a single node."""
    node_id: str
    name: str
    incoming: int = 0   # Edges pointing to this node
    outgoing: int = 0   # Edges pointing from this node

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class GraphSummary:
    """Complete summary of a graph's structure."""
    total_nodes: int
    total_edges: int
    total_processes: int
    nodes_by_kind: dict[str, int]
    nodes_by_process: dict[str, int]
    tags_in_use: list[str]
    connected_components: int
    most_connected_nodes: list[NodeConnectionInfo]
    orphan_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "total_processes": self.total_processes,
            "nodes_by_kind": self.nodes_by_kind,
            "nodes_by_process": self.nodes_by_process,
            "tags_in_use": self.tags_in_use,
            "connected_components": self.connected_components,
            "most_connected_nodes": [
                {
                    "id": n.node_id,
                    "name": n.name,
                    "connections": n.total,
                    "incoming": n.incoming,
                    "outgoing": n.outgoing
                }
                for n in self.most_connected_nodes
            ],
            "orphan_count": self.orphan_count
        }


def count_connected_components(graph: "GraphModel") -> int:
    """Count weakly connected components (edges treated as undirected)."""
    adjacency: dict[str, list[str]] = {n.id: [] for n in graph.nodes}
    for edge in graph.edges:
        if edge.source in adjacency and edge.target in adjacency:
            adjacency[edge.source].append(edge.target)
            adjacency[edge.target].append(edge.source)

    visited: set[str] = set()
    components = 0
    for start in adjacency:
        if start in visited:
            continue
        components += 1
        stack = [start]
        visited.add(start)
        while stack:
            current = stack.pop()
            for neighbor in adjacency[current]:
                if neighbor not in visited:
                    visited.add(neighbor)
                    stack.append(neighbor)
    return components


def calculate_node_connections(graph: "GraphModel") -> dict[str, NodeConnectionInfo]:
    """Calculate in/out edge counts for all nodes."""
    connections = {
        node.id: NodeConnectionInfo(node_id=node.id, name=node.name)
        for node in graph.nodes
    }
    for edge in graph.edges:
        if edge.source in connections:
            connections[edge.source].outgoing += 1
        if edge.target in connections:
            connections[edge.target].incoming += 1
    return connections


def summarize_graph(graph: "GraphModel", top_n: int = 5) -> GraphSummary:
    """
    Generate a summary of a graph.

    Args:
        graph: The graph to summarize
        top_n: Number of top connected nodes to include

    Returns:
        GraphSummary object with all analysis results
    """
    kind_counts: dict[str, int] = defaultdict(int)
    process_counts: dict[str, int] = defaultdict(int)
    all_tags: set[str] = set()
    for node in graph.nodes:
        kind_counts[node.kind.value] += 1
        process_counts[band_name(node)] += 1
        all_tags.update(node.tags)

    connections = calculate_node_connections(graph)
    # sorted() is stable, so ties keep graph order
    ranked = sorted(connections.values(), key=lambda c: c.total, reverse=True)
    most_connected = [c for c in ranked[:top_n] if c.total > 0]

    return GraphSummary(
        total_nodes=graph.node_count,
        total_edges=graph.edge_count,
        total_processes=len(graph.processes),
        nodes_by_kind=dict(kind_counts),
        nodes_by_process=dict(process_counts),
        tags_in_use=sorted(all_tags),
        connected_components=count_connected_components(graph),
        most_connected_nodes=most_connected,
        orphan_count=sum(1 for c in connections.values() if c.total == 0)
    )
