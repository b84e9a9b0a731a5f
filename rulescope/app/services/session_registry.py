"""Registry of running engine sessions with change notification."""
import logging
import threading
from typing import Callable, Dict, List, Optional

from .explanation import EngineSession

logger = logging.getLogger(__name__)

# Called with (session_id, session); session is None after unregister
SessionListener = Callable[[str, Optional[EngineSession]], None]


class UnknownSessionError(KeyError):
    """No session is registered under the requested id."""


class SessionRegistry:
    """
    Maps session ids to live engine sessions.

    Lookups happen before any graph is built; graph code only ever sees an
    already-resolved session. Listeners are told about every registration
    change, outside the registry lock.
    """

    def __init__(self):
        self._sessions: Dict[str, EngineSession] = {}
        self._listeners: List[SessionListener] = []
        self._lock = threading.Lock()

    def register(self, session_id: str, session: EngineSession) -> None:
        with self._lock:
            self._sessions[session_id] = session
            listeners = list(self._listeners)
        logger.info(f"Registered session {session_id}")
        self._notify(listeners, session_id, session)

    def unregister(self, session_id: str) -> None:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
            listeners = list(self._listeners)
        if removed is not None:
            logger.info(f"Unregistered session {session_id}")
            self._notify(listeners, session_id, None)

    def get(self, session_id: str) -> EngineSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        return session

    def session_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Add a change listener; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @staticmethod
    def _notify(listeners: List[SessionListener], session_id: str,
                session: Optional[EngineSession]) -> None:
        for listener in listeners:
            try:
                listener(session_id, session)
            except Exception:
                logger.exception(f"Session listener failed for {session_id}")


# Global registry instance
_registry: Optional[SessionRegistry] = None


def get_session_registry() -> SessionRegistry:
    """Get or create the global session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry
