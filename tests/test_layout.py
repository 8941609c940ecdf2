"""Tests for the layered layout: ranking, ordering and coordinates."""

from ug_graph import (
    GraphEdge,
    GraphModel,
    GraphNode,
    LayoutConfig,
    Orientation,
    compute_ordering,
    compute_ranks,
    flatten_document,
    layered_layout,
)
from ug_graph.layout import _LayeredGraph


def _nodes(*ids):
    return [GraphNode(id=i, name=i) for i in ids]


def _edges(*pairs):
    return [GraphEdge(id=f"{s}->{t}", source=s, target=t) for s, t in pairs]


UNGROUPED = LayoutConfig(group_by_process=False)


class TestRanks:
    def test_end_to_end_ranks(self, flow_graph):
        ranks = compute_ranks(flow_graph.nodes, flow_graph.edges)
        assert ranks == {"A": 0, "G": 1, "B": 2, "C": 3}
        assert ranks["A"] < ranks["G"] < ranks["B"] < ranks["C"]

    def test_longest_path(self):
        # a -> b -> c and a shortcut a -> c: c sits after b
        ranks = compute_ranks(_nodes("a", "b", "c"), _edges(("a", "c"), ("a", "b"), ("b", "c")))
        assert ranks == {"a": 0, "b": 1, "c": 2}

    def test_cycle_terminates(self):
        ranks = compute_ranks(_nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c"), ("c", "a")))
        assert ranks == {"a": 0, "b": 1, "c": 2}

    def test_two_node_cycle_follows_discovery_order(self):
        ranks = compute_ranks(_nodes("b", "a"), _edges(("a", "b"), ("b", "a")))
        assert ranks == {"b": 0, "a": 1}

    def test_monotone_on_dag(self):
        ids = [f"n{i}" for i in range(10)]
        pairs = [
            (ids[i], ids[j])
            for i in range(10) for j in range(i + 1, 10)
            if (i * 7 + j * 3) % 4 == 0
        ]
        nodes = _nodes(*reversed(ids))
        ranks = compute_ranks(nodes, _edges(*pairs))
        assert pairs
        for source, target in pairs:
            assert ranks[source] < ranks[target]

    def test_monotone_on_sample(self, sample_graph):
        ranks = compute_ranks(sample_graph.nodes, sample_graph.edges)
        for edge in sample_graph.edges:
            assert ranks[edge.source] < ranks[edge.target]
        assert ranks["event_start"] == 0
        assert ranks["event_finish"] == 6

    def test_dangling_and_isolated_nodes(self):
        ranks = compute_ranks(_nodes("a", "b"), _edges(("a", "missing")))
        assert ranks == {"a": 0, "b": 0}


class TestOrdering:
    def test_barycenter_removes_crossing(self):
        nodes = _nodes("a", "b", "c", "d")
        edges = _edges(("a", "d"), ("b", "c"))
        assert compute_ordering(nodes, edges) == [["a", "b"], ["d", "c"]]

    def test_no_iterations_keeps_discovery_order(self):
        nodes = _nodes("a", "b", "c", "d")
        edges = _edges(("a", "d"), ("b", "c"))
        config = LayoutConfig(order_iterations=0)
        assert compute_ordering(nodes, edges, config) == [["a", "b"], ["c", "d"]]


class TestCrossingCount:
    @staticmethod
    def _pairwise(graph, layers):
        total = 0
        for upper, lower in zip(layers, layers[1:]):
            lower_pos = {nid: i for i, nid in enumerate(lower)}
            segments = [
                (i, lower_pos[child])
                for i, nid in enumerate(upper)
                for child in graph.order_succ.get(nid, [])
                if child in lower_pos
            ]
            for a in range(len(segments)):
                for b in range(a + 1, len(segments)):
                    (s1, t1), (s2, t2) = segments[a], segments[b]
                    if (s1 - s2) * (t1 - t2) < 0:
                        total += 1
        return total

    def test_complete_bipartite(self):
        tops = [f"t{i}" for i in range(3)]
        bottoms = [f"b{i}" for i in range(3)]
        graph = _LayeredGraph(tops + bottoms, _edges(*[(t, b) for t in tops for b in bottoms]))
        # every pair of tops crosses every pair of bottoms once
        assert graph.count_crossings(graph.layers) == 9

    def test_matches_pairwise_count(self):
        ids = [f"n{i}" for i in range(12)]
        pairs = [
            (ids[i], ids[j])
            for i in range(12) for j in range(i + 1, 12)
            if (i * 5 + j * 7) % 3 == 0
        ]
        graph = _LayeredGraph(ids, _edges(*pairs))
        layers = [list(reversed(layer)) for layer in graph.layers]
        for candidate in (graph.layers, layers):
            assert graph.count_crossings(candidate) == self._pairwise(graph, candidate)

    def test_dense_graph(self):
        tops = [f"t{i}" for i in range(40)]
        bottoms = [f"b{i}" for i in range(40)]
        nodes = _nodes(*(tops + bottoms))
        layered_layout(nodes, _edges(*[(t, b) for t in tops for b in bottoms]), UNGROUPED)
        assert {n.x for n in nodes[:40]} == {12}
        assert {n.x for n in nodes[40:]} == {436}


class TestCoordinates:
    def test_left_to_right(self, flow_graph):
        layered_layout(flow_graph.nodes, flow_graph.edges, UNGROUPED)
        pos = {n.id: (n.x, n.y) for n in flow_graph.nodes}
        # rank step = 260 + 24 + 140; x = rank * step + 142 - 130
        assert pos["A"] == (12, 12)
        assert pos["G"] == (436, 12)
        assert pos["B"] == (860, 12)
        assert pos["C"] == (1284, 12)

    def test_top_to_bottom(self, flow_graph):
        config = LayoutConfig(orientation=Orientation.TB, group_by_process=False)
        layered_layout(flow_graph.nodes, flow_graph.edges, config)
        by_id = {n.id: n for n in flow_graph.nodes}
        assert by_id["A"].y < by_id["G"].y < by_id["B"].y < by_id["C"].y
        assert len({n.x for n in flow_graph.nodes}) == 1
        assert by_id["G"].y - by_id["A"].y == 112 + 24 + 140

    def test_secondary_spacing(self):
        nodes = layered_layout(_nodes("a", "b"), [], UNGROUPED)
        assert nodes[0].x == nodes[1].x
        assert nodes[1].y - nodes[0].y == 112 + 24 + 80

    def test_custom_separation(self):
        config = LayoutConfig(rank_sep=10, node_sep=5, group_by_process=False)
        a, b, c = layered_layout(_nodes("a", "b", "c"), _edges(("a", "b")), config)
        assert b.x - a.x == 260 + 24 + 10
        assert c.y - a.y == 112 + 24 + 5

    def test_ranks_are_centered(self):
        # Two sources feed one sink: the sink sits midway between them
        a, b, c = layered_layout(_nodes("a", "b", "c"), _edges(("a", "c"), ("b", "c")), UNGROUPED)
        assert c.y == (a.y + b.y) / 2

    def test_configured_node_size(self):
        config = LayoutConfig(node_width=100, node_height=50, group_by_process=False)
        (node,) = layered_layout(_nodes("a"), [], config)
        assert (node.width, node.height) == (100, 50)
        assert (node.x, node.y) == (12, 12)

    def test_empty(self):
        assert layered_layout([], []) == []

    def test_cyclic_graph_gets_positions(self):
        nodes = layered_layout(_nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c"), ("c", "a")), UNGROUPED)
        assert len({n.x for n in nodes}) == 3

    def test_deterministic(self, two_process_document):
        def run():
            graph = GraphModel.from_flatten_result(flatten_document(two_process_document))
            layered_layout(graph.nodes, graph.edges)
            return [(n.id, n.x, n.y) for n in graph.nodes]

        assert run() == run()

    def test_layout_is_repeatable_in_place(self, sample_graph):
        layered_layout(sample_graph.nodes, sample_graph.edges)
        first = [(n.x, n.y) for n in sample_graph.nodes]
        layered_layout(sample_graph.nodes, sample_graph.edges)
        assert [(n.x, n.y) for n in sample_graph.nodes] == first


class TestLayoutConfig:
    def test_defaults(self):
        config = LayoutConfig()
        assert config.orientation == Orientation.LR
        assert (config.node_sep, config.rank_sep) == (80, 140)
        assert (config.node_width, config.node_height, config.node_margin) == (260, 112, 24)
        assert config.group_by_process is True
        assert config.band_height == 280

    def test_from_env(self):
        config = LayoutConfig.from_env({
            "UG_GRAPH_ORIENTATION": "TB",
            "UG_GRAPH_RANK_SEP": "200",
            "UG_GRAPH_GROUP_BY_PROCESS": "false",
            "UNRELATED": "1",
        })
        assert config.orientation == Orientation.TB
        assert config.rank_sep == 200
        assert config.group_by_process is False
        assert config.node_sep == 80
