"""Graph traversal and sub-graph extraction.

Walks are gated on edges, not nodes: an edge is followed at most once, while
a node enters the result the first time any edge reaches it. This keeps
walks finite on cyclic graphs and still returns every edge of the closure.
"""

from __future__ import annotations

import re
from collections import defaultdict, deque
from typing import Callable, Dict, List, Pattern, Sequence, Set, Union

from ..models.graph import FACT_NODE_TYPES, EdgeKey, Graph, union_graphs


def walk(
    graph: Graph,
    start_id: str,
    edges_incident_to: Callable[[str], Sequence[EdgeKey]],
    endpoint_of: Callable[[EdgeKey], str],
) -> Graph:
    """Collect everything reachable from ``start_id`` along the given edge direction.

    Args:
        graph: Graph to walk
        start_id: Node to start from
        edges_incident_to: Ordered edge keys to follow from a node
        endpoint_of: The node an edge leads to in this direction

    Returns:
        Sub-graph holding the start node, every visited edge and its endpoints.
    """
    result = Graph()
    if start_id in graph.nodes:
        result.nodes[start_id] = graph.nodes[start_id]

    queue = deque(edges_incident_to(start_id))
    visited: Set[EdgeKey] = set()

    while queue:
        edge_key = queue.popleft()
        if edge_key in visited:
            continue
        visited.add(edge_key)

        for node_id in edge_key:
            if node_id in graph.nodes:
                result.nodes[node_id] = graph.nodes[node_id]
        result.edges[edge_key] = graph.edges[edge_key]

        queue.extend(edges_incident_to(endpoint_of(edge_key)))

    return result


def _index_edges(graph: Graph, side: int) -> Dict[str, List[EdgeKey]]:
    index: Dict[str, List[EdgeKey]] = defaultdict(list)
    for key in graph.edges:
        index[key[side]].append(key)
    return index


def connects_to(graph: Graph, node_id: str) -> Graph:
    """Sub-graph of everything that transitively leads into ``node_id``."""
    incoming = _index_edges(graph, 1)
    return walk(graph, node_id, lambda n: incoming.get(n, []), lambda key: key[0])


def reachable_from(graph: Graph, node_id: str) -> Graph:
    """Sub-graph of everything ``node_id`` transitively leads to."""
    outgoing = _index_edges(graph, 0)
    return walk(graph, node_id, lambda n: outgoing.get(n, []), lambda key: key[1])


def filter_facts(graph: Graph, pattern: Union[str, Pattern[str]]) -> Graph:
    """Union of the backward and forward closures of every fact node matching ``pattern``.

    The pattern is searched (not fully matched) in the text of each fact
    node's value. No match gives an empty graph.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern

    subgraphs = []
    for node_id, node in graph.nodes.items():
        if node.type in FACT_NODE_TYPES and regex.search(str(node.value)):
            subgraphs.append(connects_to(graph, node_id))
            subgraphs.append(reachable_from(graph, node_id))

    return union_graphs(subgraphs)
