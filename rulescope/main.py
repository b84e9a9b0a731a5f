"""rulescope - Rule Logic and Explanation Graphs

Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .app.api.routes import router
from .app.core.config import settings
from .app.core.logging import logger, setup_logging
from .app.core.middleware import RequestIdMiddleware
from .app.services import get_session_registry
from .app.services.explanation import EngineSession
from .app.services.rule_sources import list_rule_sources


def _log_session_change(session_id: str, session: Optional[EngineSession]) -> None:
    if session is None:
        logger.info("Session removed", event="session_change", session_id=session_id)
    else:
        logger.info("Session available", event="session_change", session_id=session_id)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - runs on startup and shutdown."""
    setup_logging(json_format=settings.LOG_JSON)
    logger.info(
        "Starting rulescope",
        rules_dir=str(settings.RULES_DIR),
        rule_sources=len(list_rule_sources()),
    )
    unsubscribe = get_session_registry().subscribe(_log_session_change)

    yield

    unsubscribe()
    logger.info("Shutting down rulescope")


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    ## rulescope

    Debugging and explainability graphs for forward-chaining rule sets:
    - **Logic graphs**: how rules, their conditions and fact types relate
    - **Explanation graphs**: why a fact exists in a running session
    - **Traversal**: backward/forward closures and fact-pattern sub-graphs
    """,
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "api": settings.API_V1_STR,
        "endpoints": {
            "health": f"{settings.API_V1_STR}/health",
            "logic_graph": f"{settings.API_V1_STR}/logic-graph",
            "filter": f"{settings.API_V1_STR}/logic-graph/filter",
            "walk": f"{settings.API_V1_STR}/graph/walk",
            "sessions": f"{settings.API_V1_STR}/sessions",
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rulescope.main:app", host="0.0.0.0", port=8000, reload=True)
