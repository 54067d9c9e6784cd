from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..execution.engine import FlowController


class SessionRepository(ABC):
    """
    Defines how the application keeps live sessions.
    Each session is owned by exactly one FlowController, so the repository
    stores controllers rather than bare Session objects.
    """

    @abstractmethod
    def add(self, controller: FlowController):
        """Registers a freshly created controller under its session id."""
        pass

    @abstractmethod
    def get(self, session_id: str) -> Optional[FlowController]:
        """Retrieves a controller by session ID."""
        pass

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Closes and removes a session. Returns True if found and deleted."""
        pass


class InMemorySessionRepository(SessionRepository):
    """
    Uses in-memory dictionary for session storage. Sessions do not survive
    a process restart.
    """

    def __init__(self):
        self._store: Dict[str, FlowController] = {}

    def add(self, controller: FlowController):
        self._store[controller.session.session_id] = controller

    def get(self, session_id: str) -> Optional[FlowController]:
        return self._store.get(session_id)

    def delete(self, session_id: str) -> bool:
        controller = self._store.pop(session_id, None)
        if controller is None:
            return False
        controller.close()
        return True
