"""
UG Graph Core - Flattening, graph model, layered layout and filtering.

This module provides the core functionality used by the backend API,
ensuring a single source of truth for all graph logic.
"""

from .models import (
    # Enums
    NodeKind,
    # Core models
    GraphNode,
    GraphEdge,
    ProcessInfo,
    FlattenResult,
    # Request models (for API)
    CreateNodeRequest,
    CreateEdgeRequest,
    MutationResult,
)

from .config import LayoutConfig, Orientation
from .flatten import flatten_document, unwrap, as_list
from .graph import GraphModel
from .layout import layered_layout, compute_ranks, compute_ordering
from .clustering import assign_process_bands, ProcessBand, NO_PROCESS_BAND
from .mutations import add_node, add_edge
from .filtering import filter_graph, FilterResult
from .validation import validate_graph, validation_summary, ValidationIssue, IssueSeverity
from .analysis import summarize_graph
from .sample import sample_document

__all__ = [
    # Enums
    "NodeKind",
    "Orientation",
    # Models
    "GraphNode",
    "GraphEdge",
    "ProcessInfo",
    "FlattenResult",
    "GraphModel",
    "LayoutConfig",
    # Request models
    "CreateNodeRequest",
    "CreateEdgeRequest",
    "MutationResult",
    # Flattening
    "flatten_document",
    "unwrap",
    "as_list",
    # Layout
    "layered_layout",
    "compute_ranks",
    "compute_ordering",
    "assign_process_bands",
    "ProcessBand",
    "NO_PROCESS_BAND",
    # Mutations
    "add_node",
    "add_edge",
    # Filtering
    "filter_graph",
    "FilterResult",
    # Validation
    "validate_graph",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_graph",
    "sample_document",
]
