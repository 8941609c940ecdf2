"""
Process bands - Group laid-out nodes into per-process lanes.

Runs after layered_layout. Each owning process gets a contiguous stretch of
the secondary axis (y for LR, x for TB); bands are stacked in the order
their processes first appear in the node list.

Bands are not placed at fixed multiples of `band_height`. Each band starts
where the previous one ended and is as deep as its own nodes need (plus
`node_sep`), with `band_height` as the minimum depth. A fixed stride would
let a band holding many nodes of one rank spill into the next band.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

from .config import LayoutConfig

if TYPE_CHECKING:
    from .models import GraphNode


NO_PROCESS_BAND = "(no process)"


@dataclass
class ProcessBand:
    """A lane reserved for one process's nodes."""
    name: str
    start: float
    end: float
    node_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "start": self.start,
            "end": self.end,
            "node_ids": list(self.node_ids),
        }


def band_name(node: "GraphNode") -> str:
    """Band key for a node: its process display name or the placeholder."""
    return node.process_name or NO_PROCESS_BAND


def assign_process_bands(
    nodes: list["GraphNode"],
    config: Optional[LayoutConfig] = None
) -> list[ProcessBand]:
    """
    Offset each node's secondary coordinate into its process band.

    A band is at least `band_height` deep and always deep enough for its
    own nodes plus `node_sep`, so no two bands overlap. Nodes keep their
    relative positions within a band.

    Args:
        nodes: Nodes already positioned by layered_layout
        config: Layout options (grouping toggle, band height, orientation)

    Returns:
        The bands in stacking order (empty when grouping is disabled)
    """
    config = config or LayoutConfig()
    if not config.group_by_process or not nodes:
        return []

    horizontal = config.is_horizontal

    def extent(node: "GraphNode") -> tuple[float, float]:
        left, top, right, bottom = node.bounds()
        return (top, bottom) if horizontal else (left, right)

    groups: dict[str, list["GraphNode"]] = {}
    for node in nodes:
        groups.setdefault(band_name(node), []).append(node)

    bands: list[ProcessBand] = []
    cursor = 0.0
    for name, members in groups.items():
        low = min(extent(n)[0] for n in members)
        high = max(extent(n)[1] for n in members)
        offset = cursor - low
        for node in members:
            if horizontal:
                node.y += offset
            else:
                node.x += offset

        end = cursor + max(config.band_height, high - low + config.node_sep)
        bands.append(ProcessBand(
            name=name,
            start=cursor,
            end=end,
            node_ids=[n.id for n in members],
        ))
        cursor = end

    return bands
