"""rulescope services - graph building, explanation and traversal."""
from .rule_graph import LogicGraphBuilder, get_logic_graph_builder
from .explanation import SessionExplainer, get_session_explainer
from .session_registry import SessionRegistry, get_session_registry
from .graph_walk import connects_to, reachable_from, filter_facts
from .rule_sources import RuleFileSource, get_productions, resolve_rule_source

__all__ = [
    'LogicGraphBuilder', 'get_logic_graph_builder',
    'SessionExplainer', 'get_session_explainer',
    'SessionRegistry', 'get_session_registry',
    'connects_to', 'reachable_from', 'filter_facts',
    'RuleFileSource', 'get_productions', 'resolve_rule_source',
]
