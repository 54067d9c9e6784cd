"""
Dependency Injection Wiring (Composition Root).

This module acts as the central "container" for the application's services.
It is responsible for:
1. Instantiating the core Singleton services (Repositories, Resolver, Provisioner).
2. Wiring them together into the ChatService, which builds one
   FlowController per session.
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per application process.

Tests replace any of these through app.dependency_overrides.
"""


from functools import lru_cache
from fastapi import Depends

from ..repositories.flow import FlowRepository, StaticFlowRepository
from ..repositories.session import SessionRepository, InMemorySessionRepository
from ..services.chat import ChatService
from ..services.intent_resolver import IntentResolver, KeywordIntentResolver
from ..services.provisioning import ClientProvisioner, SimulatedClientProvisioner
from ..services.renderer import ModuleRenderer, PassthroughRenderer


# The Intent Resolver (Singleton)
@lru_cache()
def get_intent_resolver() -> IntentResolver:
    return KeywordIntentResolver()


# Flow Repository (Singleton)
# Flows are validated once, when the repository is built
@lru_cache()
def get_flow_repository() -> FlowRepository:
    return StaticFlowRepository()


# Session Repository (Singleton)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_session_repository() -> SessionRepository:
    return InMemorySessionRepository()


# Provisioner (Singleton so client ids keep counting across sessions)
@lru_cache()
def get_provisioner() -> ClientProvisioner:
    return SimulatedClientProvisioner()


@lru_cache()
def get_renderer() -> ModuleRenderer:
    return PassthroughRenderer()


# The Chat Service (Singleton Service)
@lru_cache()
def get_chat_service(
    session_repo: SessionRepository = Depends(get_session_repository),
    flow_repo: FlowRepository = Depends(get_flow_repository),
    resolver: IntentResolver = Depends(get_intent_resolver),
    provisioner: ClientProvisioner = Depends(get_provisioner),
    renderer: ModuleRenderer = Depends(get_renderer),
) -> ChatService:
    """
    Injects all necessary components into the ChatService.
    """
    return ChatService(
        session_repository=session_repo,
        flow_repository=flow_repo,
        intent_resolver=resolver,
        provisioner=provisioner,
        renderer=renderer,
    )
