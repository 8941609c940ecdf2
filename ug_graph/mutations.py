"""
Interactive mutations - Validate and apply add-node / add-edge requests.

Rejections are returned as a MutationResult carrying a user-facing message;
a rejected request never touches the graph. Re-running layout after a
successful mutation is the caller's job (see GraphManager).
"""

import logging

from .graph import GraphModel
from .models import (
    CreateEdgeRequest,
    CreateNodeRequest,
    GraphEdge,
    GraphNode,
    MutationResult,
    NodeKind,
    generate_edge_id,
    generate_node_id,
)


logger = logging.getLogger(__name__)

VALID_KINDS = [k.value for k in NodeKind]


def _rejected(message: str) -> MutationResult:
    logger.warning(f"Mutation rejected: {message}")
    return MutationResult(success=False, message=message)


def _unused_id(taken, generate) -> str:
    candidate = generate()
    while taken(candidate):
        candidate = generate()
    return candidate


def add_node(graph: GraphModel, request: CreateNodeRequest) -> MutationResult:
    """
    Add a node from an interactive request.

    Rules:
    - Blank id: a fresh unique id is synthesized
    - Blank name: falls back to the id
    - Kind must be one of the defined node kinds
    - Unknown process id: kept, but no process name is resolved
    - Existing id: rejected
    """
    node_id = (request.id or "").strip()
    if not node_id:
        node_id = _unused_id(graph.has_node, generate_node_id)

    kind = (request.kind or NodeKind.TASK.value).strip().lower()
    if kind not in VALID_KINDS:
        return _rejected(f"Unknown node kind '{request.kind}' (expected one of: {', '.join(VALID_KINDS)})")

    if graph.has_node(node_id):
        return _rejected(f"Node ID already exists: {node_id}")

    process_id = (request.process_id or "").strip() or None
    process = graph.get_process(process_id)
    if process_id and process is None:
        logger.info(f"Process {process_id} not found; node {node_id} will have no process name")

    node = GraphNode(
        id=node_id,
        kind=NodeKind(kind),
        name=(request.name or "").strip() or node_id,
        process_id=process_id,
        process_name=process.name if process else None,
        same_as=None,
        tags=[],
        checklist=[],
        acceptance=[],
    )
    graph.add_node(node)
    logger.info(f"Added node {node.id} ({node.kind.value})")
    return MutationResult(success=True, message=f"Added node {node.id}", node=node)


def add_edge(graph: GraphModel, request: CreateEdgeRequest) -> MutationResult:
    """
    Add an edge from an interactive request.

    Endpoint existence is not checked here; dangling references are left to
    the rendering layer and to validate_graph().
    """
    source = (request.source or "").strip()
    target = (request.target or "").strip()
    label = (request.label or "").strip() or None

    if not source or not target:
        return _rejected("Both source and target nodes must be specified")
    if source == target:
        return _rejected(f"Self-loop edges are not allowed ({source} -> {target})")
    if graph.has_edge_triple(source, target, label):
        suffix = f" [{label}]" if label else ""
        return _rejected(f"Edge already exists: {source} -> {target}{suffix}")

    edge = GraphEdge(
        id=_unused_id(lambda eid: graph.get_edge(eid) is not None, generate_edge_id),
        source=source,
        target=target,
        label=label,
    )
    graph.add_edge(edge)
    logger.info(f"Added edge {edge.id} ({source} -> {target})")
    return MutationResult(success=True, message=f"Added edge {edge.id}", edge=edge)
