"""
UG Graph Backend - FastAPI Application

This is the main entry point for the process graph backend.
It provides:
- REST API for loading documents, reading the positioned graph,
  adding nodes/edges, search visibility and layout options
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, WebSocket, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ug_graph import (
    CreateEdgeRequest,
    CreateNodeRequest,
    NodeKind,
    Orientation,
    summarize_graph,
    validate_graph,
    validation_summary,
)
from ug_server.change_feed import change_feed
from ug_server.graph_manager import GraphChange, graph_manager

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

LOAD_SAMPLE_ON_STARTUP = os.environ.get("UG_GRAPH_LOAD_SAMPLE", "1").lower() not in ("0", "false", "no")


async def change_broadcaster(changes: "asyncio.Queue[GraphChange]"):
    """Background task that forwards manager changes to the change feed."""
    while True:
        change = await changes.get()
        await change_feed.publish(change)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    # Bridge between sync GraphManager callbacks and async WebSocket broadcasts
    changes: "asyncio.Queue[GraphChange]" = asyncio.Queue()
    graph_manager.on_change(changes.put_nowait)

    if LOAD_SAMPLE_ON_STARTUP and graph_manager.graph is None:
        graph_manager.load_sample()

    broadcaster_task = asyncio.create_task(change_broadcaster(changes))
    logger.info("UG graph backend started")

    yield

    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass
    graph_manager.remove_on_change(changes.put_nowait)
    logger.info("UG graph backend stopped")


# --- FastAPI App ---

app = FastAPI(
    title="UG Graph API",
    description="Graph assembly and layered layout backend for process documents",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_loaded():
    if graph_manager.graph is None:
        raise HTTPException(status_code=400, detail="No document loaded")
    return graph_manager.graph


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": change_feed.client_count}


# --- Graph State ---

@app.get("/api/graph")
async def get_graph(query: Optional[str] = Query(default=None)):
    """Get the positioned graph with per-node/edge visibility."""
    return graph_manager.get_state(query=query)


class LoadDocumentRequest(BaseModel):
    document: dict[str, Any]


@app.post("/api/graph/load")
async def load_document(request: LoadDocumentRequest):
    """Load a process document (full re-flatten and re-layout)."""
    graph_manager.load_document(request.document)
    return {"success": True, **graph_manager.get_state()}


@app.post("/api/graph/sample")
async def load_sample():
    """Load the bundled onboarding example."""
    graph_manager.load_sample()
    return {"success": True, **graph_manager.get_state()}


@app.get("/api/processes")
async def list_processes():
    """Processes available for node/edge creation forms."""
    graph = _require_loaded()
    return {"success": True, "processes": [p.model_dump() for p in graph.processes.values()]}


# --- Node Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest):
    """Create a new node."""
    try:
        result = graph_manager.add_node(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    node = graph_manager.graph.get_node(result.node.id)
    return {"success": True, "node": node.to_render_dict()}


@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node."""
    graph = _require_loaded()
    node = graph.get_node(node_id)
    if node:
        return {"success": True, "node": node.to_render_dict()}
    raise HTTPException(status_code=404, detail="Node not found")


class MoveNodeRequest(BaseModel):
    x: float
    y: float


@app.patch("/api/nodes/{node_id}/position")
async def move_node(node_id: str, request: MoveNodeRequest):
    """Record a position change made on the canvas."""
    try:
        node = graph_manager.move_node(node_id, request.x, request.y)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if node:
        return {"success": True, "node": node.to_render_dict()}
    raise HTTPException(status_code=404, detail="Node not found")


# --- Edge Operations ---

@app.post("/api/edges")
async def create_edge(request: CreateEdgeRequest):
    """Create a new edge."""
    try:
        result = graph_manager.add_edge(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return {"success": True, "edge": result.edge.to_render_dict()}


# --- Selection & Search ---

class SelectionRequest(BaseModel):
    node_id: Optional[str] = None


@app.post("/api/selection")
async def select_node(request: SelectionRequest):
    """Select a node (node-click) or clear the selection."""
    try:
        node = graph_manager.select_node(request.node_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if request.node_id is not None and node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return {"success": True, "node": node.to_render_dict() if node else None}


class QueryRequest(BaseModel):
    query: str = ""


@app.put("/api/query")
async def set_query(request: QueryRequest):
    """Update the search query; returns visible node and edge ids."""
    try:
        visible = graph_manager.set_query(request.query)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "query": visible.query,
        "visible_node_ids": visible.visible_node_ids,
        "visible_edge_ids": visible.visible_edge_ids,
    }


# --- Layout ---

class LayoutUpdateRequest(BaseModel):
    orientation: Optional[Orientation] = None
    node_sep: Optional[float] = None
    rank_sep: Optional[float] = None
    node_width: Optional[float] = None
    node_height: Optional[float] = None
    node_margin: Optional[float] = None
    group_by_process: Optional[bool] = None
    band_height: Optional[float] = None


@app.patch("/api/layout")
async def update_layout(request: LayoutUpdateRequest):
    """Change layout options and re-layout."""
    try:
        config = graph_manager.update_config(**request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "config": config.model_dump(mode="json")}


# --- Enums for Frontend ---

@app.get("/api/enums/kinds")
async def get_kinds():
    """Get available node kinds."""
    return {"kinds": [k.value for k in NodeKind]}


# --- Analysis & Validation ---

@app.get("/api/graph/validate")
async def validate_current_graph():
    """
    Validate the current graph for structural issues.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    graph = _require_loaded()
    issues = validate_graph(graph)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


@app.get("/api/graph/summary")
async def summarize_current_graph():
    """
    Get a structural summary of the current graph.

    Returns node counts by kind/process, tags, connected components,
    and most connected nodes.
    """
    graph = _require_loaded()
    return {"success": True, "summary": summarize_graph(graph).to_dict()}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive graph_updated events.
    """
    await change_feed.serve(websocket)


def run():
    """Run the API with uvicorn."""
    import uvicorn
    uvicorn.run(
        app,
        host=os.environ.get("UG_GRAPH_HOST", "127.0.0.1"),
        port=int(os.environ.get("UG_GRAPH_PORT", "8765")),
    )


if __name__ == "__main__":
    run()
