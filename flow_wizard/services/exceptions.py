"""
Service Layer Exceptions

Custom exceptions for the ChatService and related orchestration logic.
"""

from ..exceptions import FlowWizardError


class SessionNotFoundError(FlowWizardError):
    """Raised when a session id is unknown (never created, or deleted)."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id
