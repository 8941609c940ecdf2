"""
Core data models for process graphs.

These models define the canonical schema shared by every component:
- Nodes flattened out of tasks, gateways and events, with layout fields
- Edges connecting nodes (using source/target naming convention)
- The process registry used for display names and selection lists

Field Naming Convention:
- Python attributes are snake_case (`process_id`, `process_name`)
- `to_render_dict()` emits the camelCase keys the rendering layer consumes
- For document compatibility, edges accept `from`/`to` and `from_id`/`to_id`
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field, model_validator
import uuid


DEFAULT_NODE_WIDTH = 260
DEFAULT_NODE_HEIGHT = 112


class NodeKind(str, Enum):
    """Kinds of graph nodes."""
    TASK = "task"
    GATEWAY = "gateway"
    EVENT = "event"
    PROCESS = "process"
    POOL = "pool"
    UNKNOWN = "unknown"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return f"n{uuid.uuid4().hex[:8]}"


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return f"e{uuid.uuid4().hex[:8]}"


class GraphNode(BaseModel):
    """A node in the process graph."""
    id: str
    kind: NodeKind = NodeKind.TASK
    name: str = ""
    description: Optional[str] = None
    process_id: Optional[str] = None
    process_name: Optional[str] = None
    pool_id: Optional[str] = None
    same_as: Optional[str] = None  # cross-document link, displayed only
    tags: list[str] = Field(default_factory=list)
    # Opaque payloads, passed through to the inspector untouched
    roles: Any = None
    sla: Any = None
    checklist: list[Any] = Field(default_factory=list)
    acceptance: list[Any] = Field(default_factory=list)
    evidence: Any = None
    controls: Any = None
    note: Optional[str] = None
    # Layout
    x: float = 0
    y: float = 0
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom)."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def search_fields(self) -> list[str]:
        """Text fields matched by the search box."""
        fields = [self.name, self.description or "", self.process_name or ""]
        fields.extend(self.tags)
        return fields

    def to_render_dict(self, hidden: bool = False) -> dict:
        """Convert to the JSON shape consumed by the rendering layer."""
        result = {
            "id": self.id,
            "kind": self.kind.value,
            "name": self.name,
            "tags": list(self.tags),
            "same_as": self.same_as,
            "checklist": list(self.checklist),
            "acceptance": list(self.acceptance),
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "hidden": hidden,
        }
        # Only include optional fields if they're set
        optional = {
            "description": self.description,
            "processId": self.process_id,
            "processName": self.process_name,
            "poolId": self.pool_id,
            "roles": self.roles,
            "sla": self.sla,
            "evidence": self.evidence,
            "controls": self.controls,
            "note": self.note,
        }
        for key, value in optional.items():
            if value is not None:
                result[key] = value
        return result


class GraphEdge(BaseModel):
    """
    A directed edge between two nodes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` and `from_id`/`to_id` on input.
    """
    id: str = Field(default_factory=generate_edge_id)
    source: str
    target: str
    label: Optional[str] = None  # condition expression or free text

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert 'from'/'to' style fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            for legacy in ('from', 'from_id'):
                if legacy in data and 'source' not in data:
                    data['source'] = data.pop(legacy)
            for legacy in ('to', 'to_id'):
                if legacy in data and 'target' not in data:
                    data['target'] = data.pop(legacy)
        return data

    @property
    def pair(self) -> tuple[str, str]:
        return (self.source, self.target)

    @property
    def triple(self) -> tuple[str, str, Optional[str]]:
        """Duplicate key for interactively created edges."""
        return (self.source, self.target, self.label or None)

    def to_render_dict(self, hidden: bool = False) -> dict:
        """Convert to the JSON shape consumed by the rendering layer."""
        result = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "hidden": hidden,
        }
        if self.label:
            result["label"] = self.label
        return result


class ProcessInfo(BaseModel):
    """A process from the document's process collection."""
    id: str
    name: str


class FlattenResult(BaseModel):
    """Output of flattening a process document."""
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    processes: dict[str, ProcessInfo] = Field(default_factory=dict)


# --- Mutation Request/Response Models ---

class CreateNodeRequest(BaseModel):
    """Request to create a new node."""
    id: str = ""
    name: str = ""
    kind: str = NodeKind.TASK.value
    process_id: Optional[str] = None


class CreateEdgeRequest(BaseModel):
    """Request to create a new edge."""
    source: str = ""
    target: str = ""
    label: Optional[str] = None

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert legacy 'from'/'to' fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            if 'from' in data and 'source' not in data:
                data['source'] = data.pop('from')
            if 'to' in data and 'target' not in data:
                data['target'] = data.pop('to')
        return data


class MutationResult(BaseModel):
    """Outcome of an interactive add-node / add-edge request."""
    success: bool
    message: str = ""
    node: Optional[GraphNode] = None
    edge: Optional[GraphEdge] = None
