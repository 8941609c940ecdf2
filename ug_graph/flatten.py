"""
Document flattening - Turn a nested process document into a flat graph.

The document maps process keys to process objects, each holding `tasks`,
`gateways` and `events` keyed by local key (a plain list of entities is
accepted too and read in list order). Gateways, events and edges may
also sit at the top level, outside any process. Any scalar may be wrapped as
`{"value": X}`.

Traversal order is part of the contract: layout is seeded by discovery
order, so flattening the same document twice must yield identical lists.
"""

import logging
from typing import Any, Optional

from .models import (
    FlattenResult,
    GraphEdge,
    GraphNode,
    NodeKind,
    ProcessInfo,
)


logger = logging.getLogger(__name__)

# Entity collections per process, in emission order
ENTITY_COLLECTIONS = (
    ("tasks", NodeKind.TASK),
    ("gateways", NodeKind.GATEWAY),
    ("events", NodeKind.EVENT),
)


def unwrap(value: Any, fallback: Any = None) -> Any:
    """Return X for `{"value": X}` wrappers, the value itself otherwise."""
    if value is None:
        return fallback
    if isinstance(value, dict) and "value" in value:
        inner = value["value"]
        return fallback if inner is None else inner
    return value


def as_list(value: Any) -> list:
    """Normalize a singular-or-list field to a list."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _entities(value: Any) -> list:
    """Entities of a collection given either as a keyed mapping or a list."""
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return value
    return []


def _edge_key(source: Optional[str], target: Optional[str]) -> str:
    return f"{source}->{target}"


def collect_processes(document: dict) -> dict[str, ProcessInfo]:
    """Build the process registry (id -> ProcessInfo) from `processes`."""
    registry: dict[str, ProcessInfo] = {}
    for key, process in _mapping(document.get("processes")).items():
        process = _mapping(process)
        process_id = unwrap(process.get("id")) or key
        if not process_id:
            continue
        process_id = str(process_id)
        name = unwrap(process.get("name")) or process_id
        registry[process_id] = ProcessInfo(id=process_id, name=str(name))
    return registry


def _structured_edge(raw: dict, default_source: Optional[str] = None) -> Optional[GraphEdge]:
    """Parse a `{id, from_id, to_id, condition}` edge; None if incomplete."""
    source = unwrap(raw.get("from_id")) or default_source
    target = unwrap(raw.get("to_id"))
    if not source or not target:
        logger.debug(f"Skipping edge without endpoints: {raw!r}")
        return None
    edge_id = unwrap(raw.get("id")) or _edge_key(source, target)
    condition = _mapping(raw.get("condition"))
    label = unwrap(condition.get("expression"))
    return GraphEdge(
        id=str(edge_id),
        source=str(source),
        target=str(target),
        label=str(label) if label is not None else None,
    )


class _Flattener:
    """Single-use accumulator for one flatten pass."""

    def __init__(self, document: dict):
        self.document = document
        self.processes = collect_processes(document)
        self.nodes: list[GraphNode] = []
        self.edges: list[GraphEdge] = []
        self._node_ids: set[str] = set()

    def push_node(self, base: Any, kind: NodeKind, process_id: Optional[str] = None):
        """Emit one entity as a node, followed by its local edges."""
        base = _mapping(base)
        node_id = unwrap(base.get("id"))
        if not node_id:
            logger.debug(f"Skipping {kind.value} without id")
            return
        node_id = str(node_id)

        if node_id in self._node_ids:
            logger.warning(f"Duplicate node id {node_id!r}; keeping the first occurrence")
        else:
            self._node_ids.add(node_id)
            process = self.processes.get(process_id) if process_id else None
            same_as = unwrap(base.get("same_as"))
            self.nodes.append(GraphNode(
                id=node_id,
                kind=kind,
                name=str(unwrap(base.get("name")) or kind.value.upper()),
                description=_text(unwrap(base.get("detail")) or unwrap(base.get("summary"))),
                process_id=process_id or None,
                process_name=process.name if process else None,
                same_as=str(same_as) if same_as else None,
                tags=[str(unwrap(t)) for t in as_list(unwrap(base.get("tags")))],
                roles=base.get("roles"),
                sla=base.get("sla"),
                checklist=as_list(base.get("checklist")),
                acceptance=as_list(base.get("acceptance")),
                evidence=base.get("evidence"),
                controls=base.get("controls"),
                note=_text(unwrap(base.get("note"))),
            ))

        # Local edges: structured objects first, then bare target ids
        local_edges = as_list(unwrap(base.get("edges")))
        for raw in local_edges:
            if isinstance(raw, dict):
                edge = _structured_edge(raw, default_source=node_id)
                if edge is not None:
                    self.edges.append(edge)
        for raw in local_edges:
            if isinstance(raw, str) and raw:
                self.edges.append(GraphEdge(
                    id=_edge_key(node_id, raw),
                    source=node_id,
                    target=raw,
                ))

    def push_edges(self, raw_edges: Any):
        """Emit process-level or top-level edges (structured shape only)."""
        for raw in as_list(unwrap(raw_edges)):
            if not isinstance(raw, dict):
                continue
            edge = _structured_edge(raw)
            if edge is not None:
                self.edges.append(edge)

    def run(self) -> FlattenResult:
        for key, process in _mapping(self.document.get("processes")).items():
            process = _mapping(process)
            process_id = str(unwrap(process.get("id")) or key)
            for collection, kind in ENTITY_COLLECTIONS:
                for entity in _entities(process.get(collection)):
                    self.push_node(entity, kind, process_id)
            self.push_edges(process.get("edges"))

        for entity in _entities(self.document.get("gateways")):
            self.push_node(entity, NodeKind.GATEWAY)
        for entity in _entities(self.document.get("events")):
            self.push_node(entity, NodeKind.EVENT)
        self.push_edges(self.document.get("edges"))

        return FlattenResult(
            nodes=self.nodes,
            edges=dedupe_edges(self.edges),
            processes=self.processes,
        )


def dedupe_edges(edges: list[GraphEdge]) -> list[GraphEdge]:
    """
    Drop self-loops and keep only the first edge per (source, target) pair.

    Later duplicates lose regardless of differing ids or labels. A surviving
    edge whose id was already taken by another pair gets a `#n` suffix.
    """
    seen: set[tuple[str, str]] = set()
    used_ids: set[str] = set()
    result: list[GraphEdge] = []
    for edge in edges:
        if edge.source == edge.target:
            logger.debug(f"Dropping self-loop edge {edge.id}")
            continue
        if edge.pair in seen:
            logger.debug(f"Dropping duplicate edge {edge.id} ({edge.source} -> {edge.target})")
            continue
        seen.add(edge.pair)
        if edge.id in used_ids:
            suffix = 2
            while f"{edge.id}#{suffix}" in used_ids:
                suffix += 1
            edge = edge.model_copy(update={"id": f"{edge.id}#{suffix}"})
        used_ids.add(edge.id)
        result.append(edge)
    return result


def flatten_document(document: Optional[dict]) -> FlattenResult:
    """
    Flatten a process document into nodes, edges and a process registry.

    Args:
        document: The nested process document (may be None or empty)

    Returns:
        FlattenResult with deduplicated edges and unique node ids
    """
    result = _Flattener(document or {}).run()
    logger.debug(
        f"Flattened document: {len(result.nodes)} nodes, "
        f"{len(result.edges)} edges, {len(result.processes)} processes"
    )
    return result
