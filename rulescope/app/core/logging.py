"""Structured logging for rulescope."""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO
from contextvars import ContextVar

from .config import settings

# Context variable for request ID
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""
    
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        
        request_id = request_id_ctx.get()
        if request_id:
            log_data["request_id"] = request_id
        
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)
        
        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Logger with structured data support."""
    
    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
    
    def _log(self, level: int, message: str, **kwargs):
        """Log with extra structured data."""
        extra = {"extra_data": kwargs} if kwargs else {}
        self.logger.log(level, message, extra=extra)
    
    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)
    
    # Graph-specific logging methods
    def log_logic_graph(
        self,
        rule_count: int,
        node_count: int,
        edge_count: int,
        duration_ms: float
    ):
        """Log a logic graph build."""
        self.info(
            "Logic graph built",
            event="logic_graph",
            rule_count=rule_count,
            node_count=node_count,
            edge_count=edge_count,
            duration_ms=round(duration_ms, 2)
        )
    
    def log_explanation(
        self,
        session_id: str,
        requested: int,
        node_count: int,
        edge_count: int,
        duration_ms: float
    ):
        """Log an explanation graph extraction."""
        self.info(
            "Explanation graph built",
            event="explanation",
            session_id=session_id,
            requested=requested,
            node_count=node_count,
            edge_count=edge_count,
            duration_ms=round(duration_ms, 2)
        )
    
    def log_api_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client_ip: str
    ):
        """Log an API request."""
        self.info(
            f"{method} {path} - {status_code}",
            event="api_request",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
            client_ip=client_ip
        )


def setup_logging(json_format: bool = True, stream: Optional[TextIO] = None):
    """
    Configure logging for the application.
    
    Args:
        json_format: If True, use JSON logging (for production).
                    If False, use human-readable format (for development).
        stream: Where log records go (default: stdout)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))
    
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    handler = logging.StreamHandler(stream or sys.stdout)
    
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))
    
    root_logger.addHandler(handler)
    
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name)


# Application logger
logger = get_logger("rulescope")
