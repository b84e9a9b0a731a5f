"""Explanation Service - Why does a fact exist in a running rule session?

A live engine session is read once through ``snapshot()``; everything below
works on that snapshot only. For each derived fact the snapshot carries its
provenance trace: the ordered ``(matched item, condition)`` pairs of the
rule activation that inserted it. A trace is drawn as::

    matched item --matches/accumulated--> condition --and--> ... --asserts--> fact
"""
import dataclasses
import re
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from pydantic import BaseModel

from ..core.identity import canonical, content_hash, symbolize, type_name
from ..core.logging import get_logger
from ..models.graph import EdgeType, Graph, NodeType, union_graphs
from ..models.schemas import ConditionKind

logger = get_logger("rulescope.explanation")

# (matched item, condition) in activation order
Trace = Sequence[Tuple[Any, Any]]


class UnknownFactError(KeyError):
    """A requested fact id is not held by the session snapshot."""


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of a session: held facts and their provenance."""
    facts: Tuple[Any, ...] = ()
    insertions: Tuple[Tuple[Any, Trace], ...] = ()  # (fact, trace)


class EngineSession(Protocol):
    """A running rule engine session, owned and mutated elsewhere."""

    def snapshot(self) -> SessionSnapshot:
        """Facts and provenance read together, in one consistent step."""
        ...


def fact_type_name(fact: Any) -> str:
    return type_name(type(fact))


def fact_id(fact: Any) -> str:
    """Session identifier of a fact: ``<runtime type name>-<content hash>``."""
    return f"{fact_type_name(fact)}-{content_hash(fact)}"


@dataclass
class SessionInfo:
    """Identifier maps over one snapshot."""
    id_to_fact: Dict[str, Any] = field(default_factory=dict)
    facts_by_type: Dict[str, List[Any]] = field(default_factory=dict)
    id_to_trace: Dict[str, Trace] = field(default_factory=dict)

    def id_of(self, fact: Any) -> Optional[str]:
        """The fact's id if the session holds it, None for values without session identity."""
        candidate = fact_id(fact)
        return candidate if candidate in self.id_to_fact else None


def to_session_info(snapshot: SessionSnapshot) -> SessionInfo:
    info = SessionInfo()
    by_type: Dict[str, List[Any]] = defaultdict(list)

    for fact in snapshot.facts:
        if fact is None:
            continue
        info.id_to_fact[fact_id(fact)] = fact
        by_type[fact_type_name(fact)].append(fact)
    info.facts_by_type = dict(by_type)

    for fact, trace in snapshot.insertions:
        info.id_to_trace[fact_id(fact)] = list(trace)

    return info


def symbolic_condition(condition: Any) -> Any:
    """Serializable copy of a trace condition; a class-valued type becomes its name."""
    if isinstance(condition, BaseModel):
        condition = condition.model_dump(by_alias=True)
    if isinstance(condition, Mapping):
        return symbolize(dict(condition))
    if dataclasses.is_dataclass(condition):
        return canonical(condition)
    return repr(condition)


def condition_id(condition: Any) -> str:
    return f"COND-{content_hash(condition)}"


def _fact_node_type(info: SessionInfo, item_id: str) -> NodeType:
    return NodeType.RULE_FACT if item_id in info.id_to_trace else NodeType.FACT


def _condition_node_type(condition: Any) -> NodeType:
    """Node type from the condition's own kind, whatever it matched."""
    kind = condition.get("kind") if isinstance(condition, Mapping) else None
    if kind == ConditionKind.ACCUMULATOR.value:
        return NodeType.ACCUMULATOR_CONDITION
    return NodeType.FACT_CONDITION


def explanation_fragment(info: SessionInfo, target_id: str) -> Graph:
    """
    Explanation graph for a single fact.

    Args:
        info: Identifier maps of the snapshot
        target_id: Id of the fact to explain

    Returns:
        The fact's node, plus its trace if it has one

    Raises:
        UnknownFactError: the snapshot holds no fact with this id
    """
    if target_id not in info.id_to_fact:
        raise UnknownFactError(target_id)

    graph = Graph()
    graph.add_node(target_id, _fact_node_type(info, target_id), repr(info.id_to_fact[target_id]))

    trace = info.id_to_trace.get(target_id)
    if not trace:
        return graph

    pairs = [(item, symbolic_condition(condition)) for item, condition in trace]
    cond_ids = [condition_id(condition) for _, condition in pairs]

    for cond_id, next_cond_id in zip(cond_ids, cond_ids[1:]):
        graph.add_edge(cond_id, next_cond_id, EdgeType.AND)
    graph.add_edge(cond_ids[-1], target_id, EdgeType.ASSERTS)

    for (item, condition), cond_id in zip(pairs, cond_ids):
        graph.add_node(cond_id, _condition_node_type(condition), condition)
        item_id = info.id_of(item)
        if item_id is not None:
            graph.add_node(item_id, _fact_node_type(info, item_id), repr(item))
            graph.add_edge(item_id, cond_id, EdgeType.MATCHES, condition)
        else:
            # Accumulated results and retracted facts have no session identity
            value_id = content_hash(item)
            graph.add_node(value_id, NodeType.FACT, repr(item))
            graph.add_edge(value_id, cond_id, EdgeType.ACCUMULATED, condition)

    return graph


def explanation_graph(info: SessionInfo, fact_ids: Iterable[str]) -> Graph:
    """Union of the explanation fragments of every requested fact."""
    return union_graphs(explanation_fragment(info, target_id) for target_id in fact_ids)


class SessionExplainer:
    """
    Answers questions about a single session snapshot.

    Every method reads the session exactly once, so results are consistent
    within a call. Explaining several facts together should go through one
    ``explain_facts`` call rather than several.
    """

    def list_fact_types(self, session: EngineSession) -> List[str]:
        """Sorted, distinct runtime type names of the facts held by a session."""
        info = to_session_info(session.snapshot())
        return sorted(info.facts_by_type)

    def list_facts_by_type(self, session: EngineSession, fact_type: str,
                           filter: Optional[str] = None) -> Dict[str, Any]:
        """
        Facts of one type, keyed by fact id.

        Args:
            session: The engine session
            fact_type: Runtime type name, as returned by list_fact_types
            filter: Optional regex searched in each fact's repr
        """
        info = to_session_info(session.snapshot())
        facts = info.facts_by_type.get(fact_type, [])
        if filter:
            regex = re.compile(filter)
            facts = [f for f in facts if regex.search(repr(f))]
        return {fact_id(f): f for f in facts}

    def explain_facts(self, session: EngineSession, fact_ids: Sequence[str],
                      session_id: str = "") -> Graph:
        """Explanation graph for the given fact ids, from one snapshot."""
        start = time.perf_counter()
        graph = explanation_graph(to_session_info(session.snapshot()), fact_ids)
        logger.log_explanation(
            session_id=session_id,
            requested=len(fact_ids),
            node_count=len(graph.nodes),
            edge_count=len(graph.edges),
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return graph


# Global explainer instance
_explainer: Optional[SessionExplainer] = None


def get_session_explainer() -> SessionExplainer:
    """Get or create the global session explainer instance."""
    global _explainer
    if _explainer is None:
        _explainer = SessionExplainer()
    return _explainer
