"""Tests for the FastAPI endpoints."""
import pytest
from fastapi.testclient import TestClient

from rulescope.app.core.identity import type_name
from rulescope.app.services import get_session_registry
from rulescope.app.services.explanation import fact_id

from conftest import Approval, FakeSession, Order

API = "/api/v1"

ORDER = Order(id=1, total=2500.0)
APPROVAL = Approval(order_id=1)


@pytest.fixture
def client():
    """Create a test client."""
    from rulescope.main import app
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def session():
    registry = get_session_registry()
    fake = FakeSession(
        facts=[ORDER, APPROVAL],
        insertions=[(APPROVAL, [(ORDER, {"kind": "fact", "type": "Order"})])],
    )
    registry.register("test-session", fake)
    yield fake
    registry.unregister("test-session")


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert "name" in data
    assert "endpoints" in data


def test_health_endpoint(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_rule_sources(client):
    response = client.get(f"{API}/rule-sources")
    assert response.status_code == 200
    assert "orders.yaml" in response.json()["sources"]


def test_logic_graph_from_named_source(client):
    response = client.post(f"{API}/logic-graph", json={"sources": ["orders.yaml"]})
    assert response.status_code == 200
    data = response.json()
    assert "FT-orders.Order" in data["nodes"]
    assert data["nodes"]["FT-orders.Order"]["type"] == "fact"
    edge = data["edges"][0]
    assert {"from", "to", "type"} <= set(edge)


def test_logic_graph_inline_rules(client):
    response = client.post(f"{API}/logic-graph", json={
        "rules": [{"name": "r", "lhs": [{"kind": "fact", "type": "A"}], "rhs": "insert(B())"}],
    })
    assert response.status_code == 200
    nodes = response.json()["nodes"]
    assert {"FT-A", "FT-B"} <= set(nodes)


def test_logic_graph_unknown_source(client):
    response = client.post(f"{API}/logic-graph", json={"sources": ["missing.yaml"]})
    assert response.status_code == 404


def test_filter_logic_graph(client):
    response = client.post(f"{API}/logic-graph/filter", json={
        "sources": ["orders.yaml"], "pattern": "Escalation",
    })
    assert response.status_code == 200
    nodes = response.json()["nodes"]
    assert "FT-orders.Escalation" in nodes
    assert "FT-orders.Customer" not in nodes


def test_filter_logic_graph_bad_pattern(client):
    response = client.post(f"{API}/logic-graph/filter", json={
        "sources": ["orders.yaml"], "pattern": "(",
    })
    assert response.status_code == 400


def test_walk_exported_graph(client):
    graph = client.post(f"{API}/logic-graph", json={"sources": ["orders.yaml"]}).json()
    response = client.post(f"{API}/graph/walk", json={
        "graph": graph, "node_id": "FT-orders.Shipment", "direction": "to",
    })
    assert response.status_code == 200
    nodes = response.json()["nodes"]
    assert "FT-orders.Shipment" in nodes
    assert "FT-orders.Payment" in nodes


def test_sessions_listed(client, session):
    response = client.get(f"{API}/sessions")
    assert "test-session" in response.json()["sessions"]


def test_unknown_session_is_404(client):
    assert client.get(f"{API}/sessions/nope/fact-types").status_code == 404
    response = client.post(f"{API}/sessions/nope/explain", json={"fact_ids": []})
    assert response.status_code == 404


def test_session_fact_types_and_facts(client, session):
    response = client.get(f"{API}/sessions/test-session/fact-types")
    assert response.status_code == 200
    assert response.json() == sorted([type_name(Order), type_name(Approval)])

    response = client.get(f"{API}/sessions/test-session/facts/{type_name(Order)}")
    assert response.status_code == 200
    assert response.json() == {fact_id(ORDER): {"id": 1, "total": 2500.0}}


def test_explain_session_fact(client, session):
    response = client.post(
        f"{API}/sessions/test-session/explain",
        json={"fact_ids": [fact_id(APPROVAL)]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["nodes"][fact_id(APPROVAL)]["type"] == "rule-fact"
    assert {e["type"] for e in data["edges"]} == {"matches", "asserts"}
    assert session.snapshot_calls == 1


def test_explain_unknown_fact(client, session):
    response = client.post(
        f"{API}/sessions/test-session/explain",
        json={"fact_ids": ["Order-0000000000000000"]},
    )
    assert response.status_code == 404
