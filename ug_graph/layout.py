"""
Layered layout for process graphs.

Positions nodes with a rank/order/position pipeline:
- Rank: longest path from sources, after ignoring DFS back edges
- Order: barycenter sweeps across adjacent ranks to reduce crossings
- Position: ranks along the primary axis, order along the secondary axis

The pipeline is a pure function of (nodes, edges, config). Every working
structure lives on a _LayeredGraph built for one call and then discarded,
so repeated runs on the same input give identical coordinates.

Layout functions modify nodes in-place and return the modified list.
"""

from collections import deque
from typing import Hashable, Optional, TYPE_CHECKING

from .config import LayoutConfig

if TYPE_CHECKING:
    from .models import GraphNode, GraphEdge


def _virtual_id(edge_no: int, step: int) -> tuple:
    """Ids of the placeholders that split long edges (never a str)."""
    return ("virtual", edge_no, step)


def _count_inversions(values: list[int], size: int) -> int:
    """Pairs i < j with values[i] > values[j]; every value lies in [0, size)."""
    tree = [0] * (size + 1)
    inversions = 0
    for seen, value in enumerate(values):
        # Earlier values <= value
        not_greater = 0
        i = value + 1
        while i > 0:
            not_greater += tree[i]
            i -= i & -i
        inversions += seen - not_greater
        i = value + 1
        while i <= size:
            tree[i] += 1
            i += i & -i
    return inversions


class _LayeredGraph:
    """Working state for a single layout invocation."""

    def __init__(self, node_ids: list[str], edges: list["GraphEdge"]):
        self.node_ids = node_ids
        known = set(node_ids)

        # Adjacency in edge order; dangling edges and repeats are ignored
        successors: dict[str, dict[str, None]] = {nid: {} for nid in node_ids}
        for edge in edges:
            if edge.source in known and edge.target in known and edge.source != edge.target:
                successors[edge.source][edge.target] = None
        self.successors: dict[str, list[str]] = {k: list(v) for k, v in successors.items()}

        self.back_edges = self._find_back_edges()
        self.ranks = self._assign_ranks()

        # Ordering graph: one-rank edges only, virtual nodes included
        self.layers: list[list[Hashable]] = []
        self.order_succ: dict[Hashable, list[Hashable]] = {}
        self.order_pred: dict[Hashable, list[Hashable]] = {}
        self._build_ordering_graph()

    def _find_back_edges(self) -> set[tuple[str, str]]:
        """
        Iterative DFS in discovery order; edges into the active path are back edges.

        Removing them leaves a DAG, so ranking always terminates.
        """
        ON_PATH, DONE = 1, 2
        state: dict[str, int] = {}
        back: set[tuple[str, str]] = set()

        for root in self.node_ids:
            if root in state:
                continue
            state[root] = ON_PATH
            stack = [(root, iter(self.successors[root]))]
            while stack:
                node, children = stack[-1]
                for child in children:
                    child_state = state.get(child)
                    if child_state is None:
                        state[child] = ON_PATH
                        stack.append((child, iter(self.successors[child])))
                        break
                    if child_state == ON_PATH:
                        back.add((node, child))
                else:
                    state[node] = DONE
                    stack.pop()

        return back

    def forward_edges(self) -> list[tuple[str, str]]:
        """Edges used for ranking, back edges excluded."""
        return [
            (source, target)
            for source in self.node_ids
            for target in self.successors[source]
            if (source, target) not in self.back_edges
        ]

    def _assign_ranks(self) -> dict[str, int]:
        """Longest-path leveling (Kahn's algorithm, discovery-order queue)."""
        indegree = {nid: 0 for nid in self.node_ids}
        forward: dict[str, list[str]] = {nid: [] for nid in self.node_ids}
        for source, target in self.forward_edges():
            forward[source].append(target)
            indegree[target] += 1

        ranks = {nid: 0 for nid in self.node_ids}
        ready = deque(nid for nid in self.node_ids if indegree[nid] == 0)
        while ready:
            node = ready.popleft()
            for child in forward[node]:
                ranks[child] = max(ranks[child], ranks[node] + 1)
                indegree[child] -= 1
                if indegree[child] == 0:
                    ready.append(child)
        return ranks

    def _link(self, source: Hashable, target: Hashable):
        self.order_succ.setdefault(source, []).append(target)
        self.order_pred.setdefault(target, []).append(source)

    def _build_ordering_graph(self):
        rank_count = max(self.ranks.values()) + 1 if self.ranks else 0
        self.layers = [[] for _ in range(rank_count)]
        for nid in self.node_ids:
            self.layers[self.ranks[nid]].append(nid)
            self.order_succ.setdefault(nid, [])
            self.order_pred.setdefault(nid, [])

        # Back edges take part in ordering reversed
        oriented: list[tuple[str, str]] = []
        for source in self.node_ids:
            for target in self.successors[source]:
                if (source, target) in self.back_edges:
                    oriented.append((target, source))
                else:
                    oriented.append((source, target))

        for edge_no, (source, target) in enumerate(oriented):
            start, end = self.ranks[source], self.ranks[target]
            if end <= start:
                continue
            previous: Hashable = source
            for step, rank in enumerate(range(start + 1, end)):
                placeholder = _virtual_id(edge_no, step)
                self.layers[rank].append(placeholder)
                self.order_succ.setdefault(placeholder, [])
                self.order_pred.setdefault(placeholder, [])
                self._link(previous, placeholder)
                previous = placeholder
            self._link(previous, target)

    def count_crossings(self, layers: list[list[Hashable]]) -> int:
        """
        Count pairwise crossings between every pair of adjacent ranks.

        With segments sorted by (upper, lower) position, two segments cross
        exactly when their lower positions are inverted. Inversions are
        counted with a Fenwick tree, O(E log V) per rank pair.
        """
        total = 0
        for upper, lower in zip(layers, layers[1:]):
            lower_pos = {nid: i for i, nid in enumerate(lower)}
            targets: list[int] = []
            for nid in upper:
                targets.extend(sorted(
                    lower_pos[child]
                    for child in self.order_succ.get(nid, [])
                    if child in lower_pos
                ))
            total += _count_inversions(targets, len(lower))
        return total

    @staticmethod
    def _reorder(layer: list[Hashable], fixed: list[Hashable], neighbors: dict) -> list[Hashable]:
        """Sort a rank by the mean position of its neighbors in `fixed`."""
        fixed_pos = {nid: i for i, nid in enumerate(fixed)}

        def key(item: tuple[int, Hashable]) -> tuple[float, int]:
            index, nid = item
            positions = [fixed_pos[n] for n in neighbors.get(nid, []) if n in fixed_pos]
            if not positions:
                return (float(index), index)
            return (sum(positions) / len(positions), index)

        return [nid for _, nid in sorted(enumerate(layer), key=key)]

    def order(self, iterations: int) -> list[list[Hashable]]:
        """Alternate down/up barycenter sweeps, keeping the best ordering seen."""
        layers = [list(layer) for layer in self.layers]
        best = [list(layer) for layer in layers]
        best_crossings = self.count_crossings(best)

        for sweep in range(iterations):
            if best_crossings == 0:
                break
            if sweep % 2 == 0:
                for r in range(1, len(layers)):
                    layers[r] = self._reorder(layers[r], layers[r - 1], self.order_pred)
            else:
                for r in range(len(layers) - 2, -1, -1):
                    layers[r] = self._reorder(layers[r], layers[r + 1], self.order_succ)

            crossings = self.count_crossings(layers)
            if crossings < best_crossings:
                best = [list(layer) for layer in layers]
                best_crossings = crossings

        return best


def compute_ranks(nodes: list["GraphNode"], edges: list["GraphEdge"]) -> dict[str, int]:
    """
    Assign every node an integer rank.

    Args:
        nodes: Nodes in discovery order
        edges: Edges (dangling and self-loop edges are ignored)

    Returns:
        Dictionary mapping node_id to rank (sources are rank 0)
    """
    return _LayeredGraph([n.id for n in nodes], edges).ranks


def compute_ordering(
    nodes: list["GraphNode"],
    edges: list["GraphEdge"],
    config: Optional[LayoutConfig] = None
) -> list[list[str]]:
    """Return node ids per rank, in their crossing-reduced order."""
    config = config or LayoutConfig()
    graph = _LayeredGraph([n.id for n in nodes], edges)
    return [
        [nid for nid in layer if isinstance(nid, str)]
        for layer in graph.order(config.order_iterations)
    ]


def layered_layout(
    nodes: list["GraphNode"],
    edges: list["GraphEdge"],
    config: Optional[LayoutConfig] = None
) -> list["GraphNode"]:
    """
    Arrange nodes in ranks so edges flow along the configured orientation.

    Each node gets the configured bounding box. Layout spacing is computed
    on the box inflated by `node_margin`; the stored x/y is the top-left
    corner of the un-inflated box.

    Args:
        nodes: Nodes to arrange (discovery order seeds the ordering)
        edges: Edges defining the flow
        config: Orientation, separations and node size

    Returns:
        The same list of nodes (modified in-place)
    """
    if not nodes:
        return nodes

    config = config or LayoutConfig()
    node_map = {n.id: n for n in nodes}
    graph = _LayeredGraph(list(node_map), edges)
    ordering = graph.order(config.order_iterations)

    horizontal = config.is_horizontal
    width = config.node_width
    height = config.node_height
    primary_size, secondary_size = (width, height) if horizontal else (height, width)
    rank_span = primary_size + config.node_margin
    slot_span = secondary_size + config.node_margin
    rank_step = rank_span + config.rank_sep
    slot_step = slot_span + config.node_sep

    real_layers = [[nid for nid in layer if isinstance(nid, str)] for layer in ordering]
    widest = max(len(layer) for layer in real_layers)

    for rank, layer in enumerate(real_layers):
        # Center each rank against the widest one
        shift = (widest - len(layer)) * slot_step / 2
        primary_center = rank * rank_step + rank_span / 2
        for slot, nid in enumerate(layer):
            node = node_map[nid]
            node.width = width
            node.height = height
            secondary_center = shift + slot * slot_step + slot_span / 2
            if horizontal:
                node.x = primary_center - width / 2
                node.y = secondary_center - height / 2
            else:
                node.x = secondary_center - width / 2
                node.y = primary_center - height / 2

    return nodes
