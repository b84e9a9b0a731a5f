"""In-memory graph model shared by logic and explanation graphs."""
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Any, Dict, Iterable, Optional, Tuple

from ..core.identity import symbolize
from .schemas import EdgeExport, GraphExport, NodeExport


class NodeType(str, Enum):
    FACT = "fact"
    FACT_CONDITION = "fact-condition"
    ACCUMULATOR_CONDITION = "accumulator-condition"
    AND = "and"
    OR = "or"
    NOT = "not"
    RULE = "rule"
    RULE_FACT = "rule-fact"


FACT_NODE_TYPES = frozenset({NodeType.FACT, NodeType.RULE_FACT})


class EdgeType(str, Enum):
    # Logic graph
    USED_IN = "used-in"
    COMPONENT_OF = "component-of"
    THEN = "then"
    INSERTS = "inserts"
    # Explanation graph
    MATCHES = "matches"
    ACCUMULATED = "accumulated"
    AND = "and"
    ASSERTS = "asserts"


EdgeKey = Tuple[str, str]


class GraphCollisionError(ValueError):
    """Two fragments define the same node or edge with different values."""

    def __init__(self, kind: str, key: Any, existing: Any, incoming: Any):
        self.kind = kind
        self.key = key
        self.existing = existing
        self.incoming = incoming
        super().__init__(f"Conflicting {kind} for {key!r}: {existing!r} != {incoming!r}")


@dataclass(frozen=True)
class Node:
    type: NodeType
    value: Any = None


@dataclass(frozen=True)
class Edge:
    type: EdgeType
    value: Any = None


@dataclass
class Graph:
    """
    Directed graph with string node ids and edges keyed by (from_id, to_id).

    Graphs are combined with :meth:`union`, which is associative and
    commutative. A key present in both operands must carry an equal value;
    anything else raises :class:`GraphCollisionError`.
    """
    nodes: Dict[str, Node] = field(default_factory=dict)
    edges: Dict[EdgeKey, Edge] = field(default_factory=dict)

    def add_node(self, node_id: str, node_type: NodeType, value: Any = None) -> None:
        _put(self.nodes, node_id, Node(node_type, value), "node")

    def add_edge(self, from_id: str, to_id: str, edge_type: EdgeType, value: Any = None) -> None:
        _put(self.edges, (from_id, to_id), Edge(edge_type, value), "edge")

    def union(self, other: "Graph") -> "Graph":
        merged = Graph(dict(self.nodes), dict(self.edges))
        for node_id, node in other.nodes.items():
            _put(merged.nodes, node_id, node, "node")
        for key, edge in other.edges.items():
            _put(merged.edges, key, edge, "edge")
        return merged

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def to_export(self) -> GraphExport:
        """Serializable form; class objects inside values become qualified names."""
        return GraphExport(
            nodes={
                node_id: NodeExport(type=node.type.value, value=symbolize(node.value))
                for node_id, node in self.nodes.items()
            },
            edges=[
                EdgeExport(from_id=from_id, to_id=to_id, type=edge.type.value, value=symbolize(edge.value))
                for (from_id, to_id), edge in self.edges.items()
            ],
        )

    @classmethod
    def from_export(cls, export: GraphExport) -> "Graph":
        graph = cls()
        for node_id, node in export.nodes.items():
            graph.add_node(node_id, NodeType(node.type), node.value)
        for edge in export.edges:
            graph.add_edge(edge.from_id, edge.to_id, EdgeType(edge.type), edge.value)
        return graph


def _put(target: Dict, key: Any, item: Any, kind: str) -> None:
    existing = target.get(key)
    if existing is not None and existing != item:
        raise GraphCollisionError(kind, key, existing, item)
    target[key] = item


def union_graphs(graphs: Iterable[Graph], initial: Optional[Graph] = None) -> Graph:
    """Union any number of graphs; an empty iterable gives an empty graph."""
    return reduce(lambda acc, g: acc.union(g), graphs, initial if initial is not None else Graph())
