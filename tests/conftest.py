"""Shared fixtures for the graph core and API tests."""

import pytest

from ug_graph import GraphModel, flatten_document, sample_document


@pytest.fixture
def flow_document():
    """
    One process P with tasks A -> B -> C, a gateway G with conditional
    edges G -> B ("yes") and G -> A ("no"), plus a top-level edge A -> G.
    """
    return {
        "processes": {
            "p": {
                "id": "P",
                "name": "Process P",
                "tasks": {
                    "a": {"id": "A", "name": "Task A", "edges": ["B"]},
                    "b": {"id": "B", "name": "Task B", "edges": ["C"]},
                    "c": {"id": "C", "name": "Task C"},
                },
                "gateways": {
                    "g": {
                        "id": "G",
                        "name": "Gate",
                        "edges": [
                            {"to_id": "B", "condition": {"expression": "yes"}},
                            {"to_id": "A", "condition": {"expression": "no"}},
                        ],
                    },
                },
            },
        },
        "edges": [{"from_id": "A", "to_id": "G"}],
    }


@pytest.fixture
def two_process_document():
    """Two processes plus a top-level event, linked across processes."""
    return {
        "processes": {
            "sales": {
                "id": "proc_sales",
                "name": "Sales",
                "tasks": {
                    "quote": {"id": "quote", "name": "Send quote", "edges": ["negotiate"]},
                    "negotiate": {"id": "negotiate", "name": "Negotiate", "edges": ["close"]},
                    "close": {"id": "close", "name": "Close deal"},
                },
                "gateways": {
                    "gw_won": {"id": "gw_won", "name": "Won?", "edges": ["invoice"]},
                },
            },
            "billing": {
                "id": "proc_billing",
                "name": "Billing",
                "tasks": {
                    "invoice": {"id": "invoice", "name": "Issue invoice", "edges": ["collect"]},
                    "collect": {"id": "collect", "name": "Collect payment"},
                    "remind": {"id": "remind", "name": "Send reminder", "edges": ["collect"]},
                },
            },
        },
        "events": {
            "archived": {"id": "archived", "name": "Archived"},
        },
        "edges": [
            {"from_id": "close", "to_id": "gw_won"},
            {"from_id": "collect", "to_id": "archived"},
        ],
    }


@pytest.fixture
def flow_graph(flow_document):
    return GraphModel.from_flatten_result(flatten_document(flow_document))


@pytest.fixture
def sample_graph():
    return GraphModel.from_flatten_result(flatten_document(sample_document()))
