"""
State Layer - Runtime Data Models

This module defines the runtime state of one conversation: the Session
aggregate owned by the FlowController, and the Turns of the Message Log.
Unlike the static domain definitions these are pydantic models, so a
snapshot can be handed to the rendering layer and serialised as-is.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, Field


class ModuleDescriptor(BaseModel):
    """
    Renderable description of a module: a kind plus plain-data props.
    Produced by Module Projection, consumed by a ModuleRenderer.
    """
    kind: str
    props: Dict[str, Any] = Field(default_factory=dict)


class SuggestedAction(BaseModel):
    id: str
    label: str
    kind: str = "branch"
    target: Optional[str] = None
    is_selected: bool = False
    is_locked: bool = False


class SourceReference(BaseModel):
    id: str
    title: str
    url: str
    description: Optional[str] = None
    kind: Literal["howto", "article", "api"] = "article"


class Turn(BaseModel):
    """
    One entry in the Message Log.

    Immutable once appended except for two rewrites performed by the
    FlowController: replacing 'module' with a fresh projection, and
    updating the lock flags ('locked', 'superseded', action locks).
    """
    id: str
    author: Literal["user", "assistant"]
    text: str = ""
    module: Optional[ModuleDescriptor] = None
    suggested_actions: List[SuggestedAction] = Field(default_factory=list)
    sources: List[SourceReference] = Field(default_factory=list)

    # Step binding (used for locking)
    step_id: Optional[str] = None
    flow_id: Optional[str] = None
    step_kind: Optional[str] = None

    locked: bool = False
    superseded: bool = False
    is_welcome: bool = False
    transient: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Session(BaseModel):
    """
    The root aggregate for a single conversation.
    Mutated exclusively by the FlowController.
    """
    session_id: str
    session_epoch: int = 0

    active_flow_id: Optional[str] = None
    current_step_id: Optional[str] = None
    terminal: bool = False

    # Independent completion trails per flow
    completed_steps: Dict[str, Set[str]] = Field(default_factory=dict)

    session_values: Dict[str, Any] = Field(default_factory=dict)
    derived_values: Dict[str, Any] = Field(default_factory=dict)
    # Source values each derived field was last computed from
    derivation_sources: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    selected_quick_action_ids: Set[str] = Field(default_factory=set)
    field_errors: Dict[str, str] = Field(default_factory=dict)

    def effective_values(self) -> Dict[str, Any]:
        """Derived values overlaid with everything the user actually provided."""
        values = dict(self.derived_values)
        for key, value in self.session_values.items():
            if value not in (None, ""):
                values[key] = value
        return values

    def clear_flow_data(self):
        self.session_values = {}
        self.derived_values = {}
        self.derivation_sources = {}
        self.field_errors = {}
