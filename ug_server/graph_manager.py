"""
Graph Manager - Session state for the loaded process graph.

This module implements:
- Single document state (one document loaded at a time)
- Full re-flatten whenever a new document is loaded
- Interactive add-node / add-edge, followed by a full re-layout
- Search query state (visibility only, never re-layout)
- Position echoes from the canvas (drag), which never touch topology
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ug_graph import (
    CreateEdgeRequest,
    CreateNodeRequest,
    FilterResult,
    GraphModel,
    GraphNode,
    LayoutConfig,
    MutationResult,
    ProcessBand,
    add_edge,
    add_node,
    assign_process_bands,
    filter_graph,
    flatten_document,
    layered_layout,
    sample_document,
)


logger = logging.getLogger(__name__)


@dataclass
class GraphChange:
    """What a structural or layout change did, as seen by subscribers."""
    kind: str  # document_loaded, node_added, edge_added, layout_changed
    node_count: int
    edge_count: int
    bands: list[str] = field(default_factory=list)
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_message(self) -> dict:
        """WebSocket payload; clients re-fetch GET /api/graph for positions."""
        message = {
            "type": "graph_updated",
            "change": self.kind,
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "bands": list(self.bands),
        }
        if self.node_id:
            message["node_id"] = self.node_id
        if self.edge_id:
            message["edge_id"] = self.edge_id
        return message


class GraphManager:
    """
    Owns the single GraphModel instance and its positioned nodes.

    The rendering layer only ever sees snapshots from get_state().
    Registered change callbacks fire after every structural change and
    after layout option changes; query changes and drags do not fire them.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._graph: Optional[GraphModel] = None
        self._config = config or LayoutConfig()
        self._bands: list[ProcessBand] = []
        self._query = ""
        self._selected_id: Optional[str] = None
        self._on_change_callbacks: list[Callable[[GraphChange], Any]] = []

    # --- Properties ---

    @property
    def graph(self) -> Optional[GraphModel]:
        """Get the current graph."""
        return self._graph

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def bands(self) -> list[ProcessBand]:
        return self._bands

    @property
    def query(self) -> str:
        return self._query

    @property
    def selected(self) -> Optional[GraphNode]:
        if self._graph is None or self._selected_id is None:
            return None
        return self._graph.get_node(self._selected_id)

    def _require_graph(self) -> GraphModel:
        if self._graph is None:
            raise ValueError("No document loaded")
        return self._graph

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[GraphChange], Any]):
        """Register a callback receiving a GraphChange after each change."""
        self._on_change_callbacks.append(callback)

    def remove_on_change(self, callback: Callable[[GraphChange], Any]):
        """Unregister a previously registered change callback."""
        if callback in self._on_change_callbacks:
            self._on_change_callbacks.remove(callback)

    def _notify_change(self, kind: str, node_id: Optional[str] = None, edge_id: Optional[str] = None):
        graph = self._require_graph()
        change = GraphChange(
            kind=kind,
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            bands=[b.name for b in self._bands],
            node_id=node_id,
            edge_id=edge_id,
        )
        for callback in self._on_change_callbacks:
            callback(change)

    # --- Document Loading ---

    def load_document(self, document: Optional[dict]) -> GraphModel:
        """Replace the current graph with a freshly flattened document."""
        result = flatten_document(document)
        self._graph = GraphModel.from_flatten_result(result)
        self._selected_id = None
        logger.info(
            f"Loaded document: {self._graph.node_count} nodes, "
            f"{self._graph.edge_count} edges, {len(self._graph.processes)} processes"
        )
        self.relayout()
        self._notify_change("document_loaded")
        return self._graph

    def load_sample(self) -> GraphModel:
        """Load the bundled onboarding example."""
        return self.load_document(sample_document())

    # --- Layout ---

    def relayout(self) -> list[GraphNode]:
        """Re-run layered layout and band assignment over the whole graph."""
        graph = self._require_graph()
        layered_layout(graph.nodes, graph.edges, self._config)
        self._bands = assign_process_bands(graph.nodes, self._config)
        logger.debug(f"Layout complete: {graph.node_count} nodes, {len(self._bands)} bands")
        return graph.nodes

    def update_config(self, **changes: Any) -> LayoutConfig:
        """Change layout options (orientation, separations, grouping) and re-layout."""
        updates = {k: v for k, v in changes.items() if v is not None}
        self._config = LayoutConfig.model_validate({**self._config.model_dump(), **updates})
        if self._graph is not None:
            self.relayout()
            self._notify_change("layout_changed")
        return self._config

    def set_grouping(self, enabled: bool) -> LayoutConfig:
        """Toggle grouping by owning process."""
        return self.update_config(group_by_process=enabled)

    def move_node(self, node_id: str, x: float, y: float) -> Optional[GraphNode]:
        """
        Record a position echoed back by the canvas (e.g. a drag).

        Only the stored coordinates change; nothing is re-flattened or
        re-laid-out, and the next structural change resets the position.
        """
        node = self._require_graph().get_node(node_id)
        if node is None:
            return None
        node.x = x
        node.y = y
        return node

    # --- Mutations ---

    def add_node(self, request: CreateNodeRequest) -> MutationResult:
        """Validate and add a node; re-layout on success."""
        result = add_node(self._require_graph(), request)
        if result.success:
            self.relayout()
            self._notify_change("node_added", node_id=result.node.id)
        return result

    def add_edge(self, request: CreateEdgeRequest) -> MutationResult:
        """Validate and add an edge; re-layout on success."""
        result = add_edge(self._require_graph(), request)
        if result.success:
            self.relayout()
            self._notify_change("edge_added", edge_id=result.edge.id)
        return result

    # --- Selection & Search ---

    def select_node(self, node_id: Optional[str]) -> Optional[GraphNode]:
        """Mark a node as selected (node-click); None clears the selection."""
        if node_id is None:
            self._selected_id = None
            return None
        node = self._require_graph().get_node(node_id)
        self._selected_id = node.id if node else None
        return node

    def set_query(self, query: Optional[str]) -> FilterResult:
        """Store the search query and return the resulting visibility."""
        self._query = query or ""
        return self.visibility()

    def visibility(self, query: Optional[str] = None) -> FilterResult:
        graph = self._require_graph()
        return filter_graph(graph.nodes, graph.edges, self._query if query is None else query)

    def get_state(self, query: Optional[str] = None) -> dict:
        """Get the full positioned graph for API responses."""
        if self._graph is None:
            return {
                "graph": None,
                "config": self._config.model_dump(mode="json"),
                "query": self._query,
            }

        visible = self.visibility(query)
        return {
            "graph": {
                "nodes": [
                    n.to_render_dict(hidden=not visible.is_node_visible(n.id))
                    for n in self._graph.nodes
                ],
                "edges": [
                    e.to_render_dict(hidden=not visible.is_edge_visible(e.id))
                    for e in self._graph.edges
                ],
                "bands": [b.to_dict() for b in self._bands],
                "processes": [p.model_dump() for p in self._graph.processes.values()],
            },
            "config": self._config.model_dump(mode="json"),
            "query": visible.query,
            "selected": self._selected_id,
        }


# Global instance for the application
graph_manager = GraphManager(LayoutConfig.from_env())
