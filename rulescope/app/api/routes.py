"""API Routes for rulescope."""
import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.config import settings
from ..core.identity import canonical
from ..models.graph import Graph, GraphCollisionError
from ..models.schemas import (
    ExplainRequest, FilterLogicGraphRequest, GraphExport,
    LogicGraphRequest, Production, WalkRequest
)
from ..services import (
    get_logic_graph_builder, get_session_explainer, get_session_registry,
    get_productions, resolve_rule_source,
    connects_to, reachable_from, filter_facts
)
from ..services.condition_tree import UnsupportedConditionError
from ..services.explanation import EngineSession, UnknownFactError
from ..services.rule_sources import list_rule_sources
from ..services.session_registry import SessionRegistry, UnknownSessionError

router = APIRouter()


def resolve_session(session_id: str,
                    registry: SessionRegistry = Depends(get_session_registry)) -> EngineSession:
    """Look the session up before any graph work starts."""
    try:
        return registry.get(session_id)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")


def _request_productions(request: LogicGraphRequest) -> List[Production]:
    try:
        sources = [resolve_rule_source(name) for name in request.sources]
        return get_productions([*sources, request.rules])
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _build_logic_graph(request: LogicGraphRequest) -> Graph:
    productions = _request_productions(request)
    try:
        return get_logic_graph_builder().build(productions)
    except UnsupportedConditionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except GraphCollisionError as e:
        raise HTTPException(status_code=500, detail=str(e))


# ============================================================================
# Health & Info Endpoints
# ============================================================================

@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "rulescope"}


@router.get("/info")
async def get_info():
    """Get system information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "insert_functions": settings.INSERT_FUNCTIONS,
        "logic_graph_workers": settings.LOGIC_GRAPH_WORKERS,
    }


# ============================================================================
# Logic Graph Endpoints
# ============================================================================

@router.get("/rule-sources")
def get_rule_sources():
    """List rule files available as named sources."""
    return {"sources": list_rule_sources()}


@router.post("/logic-graph", response_model=GraphExport)
def compute_logic_graph(request: LogicGraphRequest):
    """Logic graph for the given rule sources and inline rules."""
    return _build_logic_graph(request).to_export()


@router.post("/logic-graph/filter", response_model=GraphExport)
def filter_logic_graph(request: FilterLogicGraphRequest):
    """Logic graph restricted to what connects to fact types matching the pattern."""
    graph = _build_logic_graph(request)
    try:
        return filter_facts(graph, request.pattern).to_export()
    except re.error as e:
        raise HTTPException(status_code=400, detail=f"Invalid pattern: {e}")


@router.post("/graph/walk", response_model=GraphExport)
def walk_graph(request: WalkRequest):
    """Backward ("to") or forward ("from") closure around one node of a graph."""
    try:
        graph = Graph.from_export(request.graph)
    except (ValueError, GraphCollisionError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    if request.direction == "to":
        return connects_to(graph, request.node_id).to_export()
    return reachable_from(graph, request.node_id).to_export()


# ============================================================================
# Session Endpoints
# ============================================================================

@router.get("/sessions")
async def list_sessions(registry: SessionRegistry = Depends(get_session_registry)):
    """Ids of the registered engine sessions."""
    return {"sessions": registry.session_ids()}


@router.get("/sessions/{session_id}/fact-types", response_model=List[str])
def list_fact_types(session: EngineSession = Depends(resolve_session)):
    """Runtime type names of the facts a session holds."""
    return get_session_explainer().list_fact_types(session)


@router.get("/sessions/{session_id}/facts/{fact_type}")
def list_facts_by_type(
    fact_type: str,
    filter: Optional[str] = Query(None, description="Regex searched in each fact"),
    session: EngineSession = Depends(resolve_session),
) -> Dict[str, Any]:
    """Facts of one type, keyed by fact id."""
    try:
        facts = get_session_explainer().list_facts_by_type(session, fact_type, filter)
    except re.error as e:
        raise HTTPException(status_code=400, detail=f"Invalid filter: {e}")
    return {fid: canonical(fact) for fid, fact in facts.items()}


@router.post("/sessions/{session_id}/explain", response_model=GraphExport)
def explain_facts(
    session_id: str,
    request: ExplainRequest,
    session: EngineSession = Depends(resolve_session),
):
    """Explanation graph for the requested facts, from one session snapshot."""
    try:
        graph = get_session_explainer().explain_facts(session, request.fact_ids, session_id=session_id)
    except UnknownFactError as e:
        raise HTTPException(status_code=404, detail=f"Unknown fact: {e.args[0]}")
    except GraphCollisionError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return graph.to_export()
