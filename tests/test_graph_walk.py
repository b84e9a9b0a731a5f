"""Tests for graph traversal and fact-pattern sub-graphs."""
import re

from rulescope.app.models.graph import EdgeType, Graph, NodeType
from rulescope.app.models.schemas import FactCondition, Production
from rulescope.app.services.graph_walk import connects_to, filter_facts, reachable_from, walk
from rulescope.app.services.rule_graph import LogicGraphBuilder, rule_content_id


def chain_graph():
    """FT-A -> c1 -> P1 -> FT-B -> c2 -> P2, plus an unrelated FT-Z -> c3."""
    graph = Graph()
    for node_id in ("FT-A", "FT-B", "FT-Z"):
        graph.add_node(node_id, NodeType.FACT, node_id[3:])
    for node_id in ("c1", "c2", "c3"):
        graph.add_node(node_id, NodeType.FACT_CONDITION, {"id": node_id})
    for node_id in ("P1", "P2"):
        graph.add_node(node_id, NodeType.RULE, {"name": node_id})
    graph.add_edge("FT-A", "c1", EdgeType.USED_IN)
    graph.add_edge("c1", "P1", EdgeType.THEN)
    graph.add_edge("P1", "FT-B", EdgeType.INSERTS)
    graph.add_edge("FT-B", "c2", EdgeType.USED_IN)
    graph.add_edge("c2", "P2", EdgeType.THEN)
    graph.add_edge("FT-Z", "c3", EdgeType.USED_IN)
    return graph


def test_reachable_from_follows_edges_forward():
    result = reachable_from(chain_graph(), "P1")
    assert set(result.nodes) == {"P1", "FT-B", "c2", "P2"}
    assert set(result.edges) == {("P1", "FT-B"), ("FT-B", "c2"), ("c2", "P2")}


def test_connects_to_follows_edges_backward():
    result = connects_to(chain_graph(), "FT-B")
    assert set(result.nodes) == {"FT-B", "P1", "c1", "FT-A"}
    assert set(result.edges) == {("P1", "FT-B"), ("c1", "P1"), ("FT-A", "c1")}


def test_isolated_start_node_is_returned_alone():
    graph = chain_graph()
    graph.add_node("lonely", NodeType.FACT, "lonely")
    result = reachable_from(graph, "lonely")
    assert set(result.nodes) == {"lonely"}
    assert result.edges == {}


def test_unknown_start_node_gives_empty_graph():
    assert reachable_from(chain_graph(), "missing").is_empty()


def test_cycle_terminates_with_each_edge_once():
    graph = Graph()
    graph.add_node("A", NodeType.FACT, "A")
    graph.add_node("B", NodeType.FACT, "B")
    graph.add_edge("A", "B", EdgeType.AND)
    graph.add_edge("B", "A", EdgeType.AND)

    result = reachable_from(graph, "A")
    assert list(sorted(result.nodes)) == ["A", "B"]
    assert set(result.edges) == {("A", "B"), ("B", "A")}
    assert connects_to(graph, "A") == result


def test_reachable_from_is_a_fixed_point():
    graph = chain_graph()
    once = reachable_from(graph, "FT-A")
    assert reachable_from(once, "FT-A") == once


def test_walk_visits_each_edge_once():
    graph = Graph()
    for node_id in "abcd":
        graph.add_node(node_id, NodeType.FACT, node_id)
    # Diamond: d is reached twice, d -> a closes a loop
    for key in [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"), ("d", "a")]:
        graph.add_edge(*key, EdgeType.AND)

    followed = []

    def outgoing(node_id):
        return [key for key in graph.edges if key[0] == node_id]

    def endpoint(key):
        followed.append(key)
        return key[1]

    result = walk(graph, "a", outgoing, endpoint)
    assert len(followed) == len(set(followed)) == 5
    assert set(result.edges) == set(graph.edges)


def test_filter_facts_unions_both_directions():
    result = filter_facts(chain_graph(), "^B$")
    assert set(result.nodes) == {"FT-A", "c1", "P1", "FT-B", "c2", "P2"}
    assert "FT-Z" not in result.nodes


def test_filter_facts_accepts_compiled_pattern():
    result = filter_facts(chain_graph(), re.compile("z", re.IGNORECASE))
    assert set(result.nodes) == {"FT-Z", "c3"}


def test_filter_facts_without_match_is_empty():
    result = filter_facts(chain_graph(), "NoSuchType")
    assert result.nodes == {}
    assert result.edges == {}


def test_filter_facts_ignores_non_fact_nodes():
    # Rule and condition values mention "P1"/"c1" but are not fact nodes
    assert filter_facts(chain_graph(), "P1").is_empty()


def test_filter_on_logic_graph():
    shipping = Production(name="ship", lhs=[FactCondition(type="Approval")], rhs="insert(Shipment())")
    unrelated = Production(name="audit", lhs=[FactCondition(type="Login")])
    graph = LogicGraphBuilder(max_workers=1).build([shipping, unrelated])

    result = filter_facts(graph, "Shipment")
    assert f"P-{rule_content_id(shipping)}" in result.nodes
    assert "FT-Approval" in result.nodes
    assert f"P-{rule_content_id(unrelated)}" not in result.nodes
