"""
Chat Service - Application Orchestration Layer

This service is the entry point for all conversation operations. It creates
one FlowController per session, keeps it in the SessionRepository, and
forwards the command surface to it. Hosts (the HTTP adapter, a CLI) talk to
this service only, never to controllers directly.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..execution.clock import SessionClock
from ..execution.derivation import DerivationEngine
from ..execution.engine import FlowController
from ..repositories.flow import FlowRepository
from ..repositories.session import SessionRepository
from ..schemas.commands import CommandResult
from .exceptions import SessionNotFoundError
from .intent_resolver import IntentResolver
from .provisioning import ClientProvisioner
from .renderer import ModuleRenderer, PassthroughRenderer

logger = logging.getLogger(__name__)


class ChatService:
    def __init__(
        self,
        session_repository: SessionRepository,
        flow_repository: FlowRepository,
        intent_resolver: IntentResolver,
        provisioner: ClientProvisioner,
        renderer: Optional[ModuleRenderer] = None,
        clock_factory: Callable[[], SessionClock] = SessionClock,
        controller_options: Optional[Dict[str, Any]] = None,
    ):
        self.session_repo = session_repository
        self.flow_repo = flow_repository
        self.intent_resolver = intent_resolver
        self.provisioner = provisioner
        self.renderer = renderer or PassthroughRenderer()
        self.clock_factory = clock_factory
        self.controller_options = controller_options or {}

    # ==========================================================================
    # Session Lifecycle
    # ==========================================================================

    def create_session(self) -> FlowController:
        """Creates a new session showing only the welcome turn."""
        controller = FlowController(
            flow_repository=self.flow_repo,
            intent_resolver=self.intent_resolver,
            provisioner=self.provisioner,
            derivation_engine=DerivationEngine(),
            clock=self.clock_factory(),
            **self.controller_options,
        )
        self.session_repo.add(controller)
        logger.info(f"Session {controller.session.session_id} created")
        return controller

    def get_session(self, session_id: str) -> Optional[FlowController]:
        return self.session_repo.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        deleted = self.session_repo.delete(session_id)
        if deleted:
            logger.info(f"Session {session_id} deleted")
        return deleted

    # ==========================================================================
    # Commands
    # ==========================================================================

    def select_flow(self, session_id: str, flow_id: str) -> CommandResult:
        return self._require(session_id).select_flow(flow_id)

    def submit_step_data(
        self, session_id: str, step_id: str, field_values: Mapping[str, Any]
    ) -> CommandResult:
        return self._require(session_id).submit_step_data(step_id, field_values)

    def request_derivation(
        self, session_id: str, step_id: str, field_values: Mapping[str, Any]
    ) -> CommandResult:
        return self._require(session_id).request_derivation(step_id, field_values)

    def choose(self, session_id: str, step_id: str, option_id: str) -> CommandResult:
        return self._require(session_id).choose(step_id, option_id)

    def send_free_text(self, session_id: str, text: str) -> CommandResult:
        return self._require(session_id).send_free_text(text)

    def jump_back_to(self, session_id: str, step_id: str) -> CommandResult:
        return self._require(session_id).jump_back_to(step_id)

    def trigger_action(self, session_id: str, action_id: str) -> CommandResult:
        return self._require(session_id).trigger_action(action_id)

    def reset(self, session_id: str) -> CommandResult:
        return self._require(session_id).reset()

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_messages(self, session_id: str) -> List[Dict[str, Any]]:
        """The Message Log with every module passed through the renderer."""
        return self.renderer.render_turns(self._require(session_id).get_messages())

    def describe(self, session_id: str) -> Dict[str, Any]:
        """
        Helper summarising where the session stands (state, flow, progress).
        """
        controller = self._require(session_id)
        session = controller.session
        active_flow = None

        if session.active_flow_id:
            flow = self.flow_repo.get_flow(session.active_flow_id)
            active_flow = {
                "id": flow.id,
                "title": flow.name,
                "step_id": session.current_step_id,
                "completed_steps": sorted(controller.ledger.completed(flow.id)),
                "total_steps": len(flow.steps),
            }

        return {
            "session_id": session.session_id,
            "state": controller.get_state().value,
            "epoch": session.session_epoch,
            "active_flow": active_flow,
            "session_values": controller.get_session_values(),
            "derived_values": controller.get_derived_values(),
        }

    def _require(self, session_id: str) -> FlowController:
        controller = self.session_repo.get(session_id)
        if controller is None:
            raise SessionNotFoundError(session_id)
        return controller
