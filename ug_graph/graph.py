"""
Graph model - The single in-memory source of truth for nodes and edges.

Keeps node/edge collections in discovery order (layout depends on it) and
maintains O(1) lookup indexes alongside them. Nodes and edges can only be
added; the model is rebuilt wholesale when the source document changes.
"""

from typing import Optional

from .models import FlattenResult, GraphEdge, GraphNode, ProcessInfo


class GraphModel:
    """
    Nodes, edges and the process registry for one loaded document.

    Features:
    - O(1) node/edge lookups via index dictionaries
    - Incident-edge index per node
    - (source, target, label) index for interactive duplicate checks
    """

    def __init__(
        self,
        nodes: Optional[list[GraphNode]] = None,
        edges: Optional[list[GraphEdge]] = None,
        processes: Optional[dict[str, ProcessInfo]] = None,
    ):
        self._nodes: list[GraphNode] = []
        self._edges: list[GraphEdge] = []
        self._processes: dict[str, ProcessInfo] = dict(processes or {})

        # O(1) lookup indexes
        self._node_index: dict[str, GraphNode] = {}         # node_id -> GraphNode
        self._edge_index: dict[str, GraphEdge] = {}         # edge_id -> GraphEdge
        self._edges_by_node: dict[str, list[str]] = {}      # node_id -> edge_ids
        self._edge_triples: set[tuple[str, str, Optional[str]]] = set()

        for node in nodes or []:
            self.add_node(node)
        for edge in edges or []:
            self.add_edge(edge)

    @classmethod
    def from_flatten_result(cls, result: FlattenResult) -> "GraphModel":
        return cls(result.nodes, result.edges, result.processes)

    # --- Index Management ---

    def _index_edge(self, edge: GraphEdge):
        """Add an edge to the indexes."""
        self._edge_index[edge.id] = edge
        self._edges_by_node.setdefault(edge.source, []).append(edge.id)
        self._edges_by_node.setdefault(edge.target, []).append(edge.id)
        self._edge_triples.add(edge.triple)

    # --- Properties ---

    @property
    def nodes(self) -> list[GraphNode]:
        """All nodes in discovery order."""
        return self._nodes

    @property
    def edges(self) -> list[GraphEdge]:
        """All edges in discovery order."""
        return self._edges

    @property
    def processes(self) -> dict[str, ProcessInfo]:
        return self._processes

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    # --- Lookups ---

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Get a node by ID (O(1) lookup)."""
        return self._node_index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._node_index

    def get_edge(self, edge_id: str) -> Optional[GraphEdge]:
        """Get an edge by ID (O(1) lookup)."""
        return self._edge_index.get(edge_id)

    def get_edges_for_node(self, node_id: str) -> list[GraphEdge]:
        """Get all edges touching a node, in insertion order."""
        return [self._edge_index[eid] for eid in self._edges_by_node.get(node_id, [])]

    def has_edge_triple(self, source: str, target: str, label: Optional[str]) -> bool:
        """Check for an edge with the same source, target and label."""
        return (source, target, label or None) in self._edge_triples

    def get_process(self, process_id: Optional[str]) -> Optional[ProcessInfo]:
        if not process_id:
            return None
        return self._processes.get(process_id)

    # --- Mutations ---

    def add_node(self, node: GraphNode) -> GraphNode:
        """Append a node; raises ValueError if the id is empty or taken."""
        if not node.id:
            raise ValueError("Node id must not be empty")
        if node.id in self._node_index:
            raise ValueError(f"Node already exists: {node.id}")
        self._nodes.append(node)
        self._node_index[node.id] = node
        return node

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        """Append an edge; raises ValueError for self-loops or a taken id."""
        if edge.source == edge.target:
            raise ValueError(f"Self-referencing edge on {edge.source}")
        if edge.id in self._edge_index:
            raise ValueError(f"Edge already exists: {edge.id}")
        self._edges.append(edge)
        self._index_edge(edge)
        return edge
