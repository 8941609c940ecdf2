"""Unit tests for document flattening."""

from ug_graph import NodeKind, flatten_document, sample_document
from ug_graph.flatten import as_list, collect_processes, dedupe_edges, unwrap
from ug_graph.models import GraphEdge


class TestUnwrapHelpers:
    def test_unwrap_plain_and_wrapped(self):
        assert unwrap("x") == "x"
        assert unwrap({"value": "x"}) == "x"
        assert unwrap(None, "fallback") == "fallback"
        assert unwrap({"value": None}, "fallback") == "fallback"

    def test_unwrap_leaves_other_mappings(self):
        assert unwrap({"expression": "yes"}) == {"expression": "yes"}

    def test_as_list(self):
        assert as_list(None) == []
        assert as_list([]) == []
        assert as_list("a") == ["a"]
        assert as_list(["a", "b"]) == ["a", "b"]


class TestProcessRegistry:
    def test_id_and_name_fallbacks(self):
        registry = collect_processes({
            "processes": {
                "k1": {"id": "p1", "name": "First"},
                "k2": {"name": "Keyed"},
                "k3": {"id": {"value": "p3"}},
            }
        })
        assert list(registry) == ["p1", "k2", "p3"]
        assert registry["p1"].name == "First"
        assert registry["k2"].name == "Keyed"
        assert registry["p3"].name == "p3"


class TestFlattenDocument:
    def test_end_to_end_flow(self, flow_document):
        result = flatten_document(flow_document)

        assert [n.id for n in result.nodes] == ["A", "B", "C", "G"]
        pairs = [e.pair for e in result.edges]
        assert pairs == [("A", "B"), ("B", "C"), ("G", "B"), ("G", "A"), ("A", "G")]
        labels = {e.pair: e.label for e in result.edges}
        assert labels[("G", "B")] == "yes"
        assert labels[("G", "A")] == "no"

    def test_traversal_order_and_process_tags(self, flow_document):
        result = flatten_document(flow_document)
        kinds = [n.kind for n in result.nodes]
        assert kinds == [NodeKind.TASK, NodeKind.TASK, NodeKind.TASK, NodeKind.GATEWAY]
        assert all(n.process_id == "P" for n in result.nodes)
        assert all(n.process_name == "Process P" for n in result.nodes)

    def test_edge_ids(self, flow_document):
        result = flatten_document(flow_document)
        ids = {e.pair: e.id for e in result.edges}
        # Bare adjacency and structured edges without ids share the same scheme
        assert ids[("A", "B")] == "A->B"
        assert ids[("G", "B")] == "G->B"
        assert ids[("A", "G")] == "A->G"

    def test_nodes_without_id_are_skipped(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "tasks": {
                        "ok": {"id": "t1", "name": "Kept"},
                        "missing": {"name": "No id", "edges": ["t1"]},
                        "blank": {"id": "", "name": "Blank id"},
                    },
                },
            },
        })
        assert [n.id for n in result.nodes] == ["t1"]
        assert result.edges == []

    def test_wrapped_scalars(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": {"value": "proc"},
                    "name": {"value": "Wrapped"},
                    "tasks": {
                        "t": {
                            "id": {"value": "t1"},
                            "name": {"value": "Task one"},
                            "detail": {"value": "Details"},
                            "same_as": {"value": "bg:123"},
                            "edges": [{"to_id": {"value": "t2"}, "condition": {"expression": {"value": "ok"}}}],
                        },
                        "t2": {"id": "t2"},
                    },
                },
            },
        })
        node = result.nodes[0]
        assert node.id == "t1"
        assert node.name == "Task one"
        assert node.description == "Details"
        assert node.same_as == "bg:123"
        assert node.process_id == "proc"
        assert node.process_name == "Wrapped"
        assert result.edges[0].pair == ("t1", "t2")
        assert result.edges[0].label == "ok"

    def test_field_fallbacks(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "events": {"e": {"id": "e1", "summary": "From summary"}},
                    "tasks": {"t": {"id": "t1", "tags": "single"}},
                },
            },
        })
        by_id = {n.id: n for n in result.nodes}
        assert by_id["e1"].name == "EVENT"
        assert by_id["e1"].description == "From summary"
        assert by_id["e1"].same_as is None
        assert by_id["t1"].tags == ["single"]
        assert by_id["t1"].checklist == []

    def test_payloads_pass_through(self):
        roles = {"R": ["HR"], "A": ["Lead"]}
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "tasks": {
                        "t": {
                            "id": "t1",
                            "roles": roles,
                            "sla": {"duration": "3d"},
                            "checklist": {"text": "only one"},
                            "acceptance": ["done"],
                            "note": "check later",
                        },
                    },
                },
            },
        })
        node = result.nodes[0]
        assert node.roles == roles
        assert node.sla == {"duration": "3d"}
        assert node.checklist == [{"text": "only one"}]
        assert node.acceptance == ["done"]
        assert node.note == "check later"

    def test_mixed_local_edge_shapes(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "tasks": {
                        "a": {
                            "id": "a",
                            "edges": [
                                "b",
                                {"id": "a_c", "to_id": "c", "condition": {"expression": "x > 1"}},
                                {"from_id": "b", "to_id": "c"},
                            ],
                        },
                        "b": {"id": "b"},
                        "c": {"id": "c"},
                    },
                },
            },
        })
        assert [(e.id, e.source, e.target, e.label) for e in result.edges] == [
            ("a_c", "a", "c", "x > 1"),
            ("b->c", "b", "c", None),
            ("a->b", "a", "b", None),
        ]

    def test_entity_lists(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "P",
                    "tasks": [{"id": "A", "edges": ["B"]}, {"id": "B"}, "junk"],
                    "events": [{"id": "E"}],
                },
            },
            "gateways": [{"id": "G", "edges": [{"to_id": "A", "condition": {"expression": "retry"}}]}],
            "events": "not a collection",
        })
        assert [n.id for n in result.nodes] == ["A", "B", "E", "G"]
        assert [n.kind for n in result.nodes] == [
            NodeKind.TASK, NodeKind.TASK, NodeKind.EVENT, NodeKind.GATEWAY,
        ]
        assert result.nodes[2].process_id == "P"
        assert result.nodes[3].process_id is None
        assert [(e.pair, e.label) for e in result.edges] == [(("A", "B"), None), (("G", "A"), "retry")]

    def test_process_edges_need_explicit_source(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "tasks": {"a": {"id": "a"}, "b": {"id": "b"}},
                    "edges": [{"to_id": "b"}, "b", {"from_id": "a", "to_id": "b"}],
                },
            },
        })
        assert [e.pair for e in result.edges] == [("a", "b")]

    def test_top_level_entities_have_no_process(self, two_process_document):
        result = flatten_document(two_process_document)
        archived = next(n for n in result.nodes if n.id == "archived")
        assert archived.kind == NodeKind.EVENT
        assert archived.process_id is None
        assert archived.process_name is None
        assert result.nodes[-1].id == "archived"
        assert [e.pair for e in result.edges][-2:] == [("close", "gw_won"), ("collect", "archived")]

    def test_duplicate_pairs_keep_first(self):
        result = flatten_document({
            "processes": {
                "p": {
                    "id": "p",
                    "gateways": {
                        "g": {
                            "id": "g",
                            "edges": [
                                {"id": "first", "to_id": "t", "condition": {"expression": "yes"}},
                                {"id": "second", "to_id": "t", "condition": {"expression": "no"}},
                                "t",
                            ],
                        },
                    },
                    "tasks": {"t": {"id": "t"}},
                },
            },
        })
        assert len(result.edges) == 1
        assert result.edges[0].id == "first"
        assert result.edges[0].label == "yes"

    def test_self_loops_dropped(self):
        result = flatten_document({
            "processes": {"p": {"id": "p", "tasks": {"a": {"id": "a", "edges": ["a"]}}}},
            "edges": [{"from_id": "a", "to_id": "a"}],
        })
        assert result.edges == []

    def test_duplicate_node_ids_keep_first(self):
        result = flatten_document({
            "processes": {
                "p": {"id": "p", "tasks": {"a": {"id": "x", "name": "First"}}},
            },
            "gateways": {"g": {"id": "x", "name": "Second"}},
        })
        assert [n.name for n in result.nodes] == ["First"]

    def test_empty_documents(self):
        assert flatten_document(None).nodes == []
        assert flatten_document({}).edges == []
        assert flatten_document({"processes": {"p": None}}).nodes == []

    def test_edge_invariants_on_sample(self):
        result = flatten_document(sample_document())
        pairs = [e.pair for e in result.edges]
        assert len(pairs) == len(set(pairs))
        assert all(s != t for s, t in pairs)
        ids = [n.id for n in result.nodes]
        assert len(ids) == len(set(ids))
        assert len(ids) == 7
        assert len(pairs) == 8

    def test_idempotent(self, two_process_document):
        first = flatten_document(two_process_document)
        second = flatten_document(two_process_document)
        assert first.model_dump() == second.model_dump()


class TestDedupeEdges:
    def test_colliding_ids_are_suffixed(self):
        edges = [
            GraphEdge(id="e", source="a", target="b"),
            GraphEdge(id="e", source="b", target="c"),
            GraphEdge(id="e", source="c", target="d"),
        ]
        assert [e.id for e in dedupe_edges(edges)] == ["e", "e#2", "e#3"]
