"""Logic Graph Service - Structural graph over rules, conditions and fact types.

Every rule is turned into an independent fragment; fragments are then
unioned. Fact-type node ids depend on the type name only (``FT-<name>``),
so shared fact types are where fragments of unrelated rules connect.
Rule and condition node ids are scoped by the rule's content hash.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from ..core.config import settings
from ..core.identity import content_hash, symbolize, type_name
from ..core.logging import get_logger
from ..models.graph import EdgeType, Graph, NodeType, union_graphs
from ..models.schemas import ConditionKind, Production
from .condition_tree import ConditionSlot, UnsupportedConditionError, decompose
from .insertions import find_insertions

logger = logging.getLogger(__name__)
events = get_logger("rulescope.logic_graph")


def fact_type_value(fact_type: Any) -> str:
    if isinstance(fact_type, type):
        return type_name(fact_type)
    return str(fact_type)


def fact_type_id(fact_type: Any) -> str:
    """Node id of a fact type; identical in every rule that mentions it."""
    return f"FT-{fact_type_value(fact_type)}"


def rule_content_id(production: Production) -> str:
    return content_hash(production)


def condition_value(condition: Any) -> Any:
    if isinstance(condition, BaseModel):
        return symbolize(condition.model_dump(by_alias=True))
    if isinstance(condition, Mapping):
        return symbolize(dict(condition))
    return repr(condition)


def _condition_type(condition: Any) -> Any:
    if isinstance(condition, Mapping):
        return condition.get("type")
    return getattr(condition, "type", None)


# ============================================================================
# Per-kind fragment builders
# ============================================================================

def _fact_condition_graph(slot: ConditionSlot) -> Graph:
    fact_type = _condition_type(slot.condition)
    fact_id = fact_type_id(fact_type)

    graph = Graph()
    graph.add_node(slot.id, NodeType.FACT_CONDITION, condition_value(slot.condition))
    graph.add_node(fact_id, NodeType.FACT, fact_type_value(fact_type))
    graph.add_edge(fact_id, slot.id, EdgeType.USED_IN)
    return graph


def _accumulator_condition_graph(slot: ConditionSlot) -> Graph:
    # The accumulated inner condition is not decomposed further
    graph = Graph()
    graph.add_node(slot.id, NodeType.ACCUMULATOR_CONDITION, condition_value(slot.condition))
    return graph


def _boolean_condition_graph(slot: ConditionSlot) -> Graph:
    graph = Graph()
    graph.add_node(slot.id, NodeType(slot.kind.value), condition_value(slot.condition))
    for child_id in slot.child_ids:
        graph.add_edge(child_id, slot.id, EdgeType.COMPONENT_OF)
    return graph


CONDITION_BUILDERS: Dict[ConditionKind, Callable[[ConditionSlot], Graph]] = {
    ConditionKind.FACT: _fact_condition_graph,
    ConditionKind.ACCUMULATOR: _accumulator_condition_graph,
    ConditionKind.AND: _boolean_condition_graph,
    ConditionKind.OR: _boolean_condition_graph,
    ConditionKind.NOT: _boolean_condition_graph,
}


def condition_graph(slot: ConditionSlot) -> Graph:
    """Fragment for a single condition slot."""
    builder = CONDITION_BUILDERS.get(slot.kind)
    if builder is None:
        raise UnsupportedConditionError(f"Unsupported condition kind: {slot.kind!r}")
    return builder(slot)


class LogicGraphBuilder:
    """
    Builds logic graphs from rule definitions.

    A logic graph contains:
    - One rule node per production, valued with the production and its metadata
    - One node per condition of each production, in its condition tree
    - One fact-type node per fact type read by a condition or inserted by an action
    - used-in, component-of, then and inserts edges between them
    """

    def __init__(self, insert_functions: Optional[Iterable[str]] = None,
                 max_workers: Optional[int] = None):
        self.insert_functions = list(insert_functions if insert_functions is not None
                                     else settings.INSERT_FUNCTIONS)
        self.max_workers = max_workers if max_workers is not None else settings.LOGIC_GRAPH_WORKERS

    def production_graph(self, production: Production) -> Graph:
        """
        Build the self-contained fragment for one production.

        Args:
            production: The rule or query to describe

        Returns:
            Graph fragment for the production

        Raises:
            UnsupportedConditionError: a condition kind is outside the closed set
        """
        rule_id = rule_content_id(production)
        prod_node_id = f"P-{rule_id}"
        slots = decompose(production.lhs, rule_id)
        insertions = sorted(find_insertions(production.rhs, self.insert_functions))

        graph = Graph()
        graph.add_node(prod_node_id, NodeType.RULE, symbolize(production.model_dump(by_alias=True)))

        # The root slot is either the only condition or the implied and
        graph.add_edge(slots[0].id, prod_node_id, EdgeType.THEN)

        for insertion in insertions:
            graph.add_node(fact_type_id(insertion), NodeType.FACT, fact_type_value(insertion))
            graph.add_edge(prod_node_id, fact_type_id(insertion), EdgeType.INSERTS)

        return union_graphs((condition_graph(slot) for slot in slots), initial=graph)

    def build(self, productions: Iterable[Production]) -> Graph:
        """
        Build the logic graph of a rule set.

        Fragments are computed independently (on a thread pool when
        max_workers > 1) and unioned.
        """
        productions = list(productions)
        start = time.perf_counter()

        if self.max_workers > 1 and len(productions) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                fragments: List[Graph] = list(executor.map(self.production_graph, productions))
        else:
            fragments = [self.production_graph(p) for p in productions]

        graph = union_graphs(fragments)

        events.log_logic_graph(
            rule_count=len(productions),
            node_count=len(graph.nodes),
            edge_count=len(graph.edges),
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        logger.debug(f"Unioned {len(fragments)} rule fragments")
        return graph


# Global builder instance
_builder: Optional[LogicGraphBuilder] = None


def get_logic_graph_builder() -> LogicGraphBuilder:
    """Get or create the global logic graph builder instance."""
    global _builder
    if _builder is None:
        _builder = LogicGraphBuilder()
    return _builder
