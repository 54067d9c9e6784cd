"""
API Layer - Request/Response Schemas

Pydantic models for API request and response validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..schemas.commands import CommandResult


class CreateSessionResponse(BaseModel):
    session_id: str
    messages: List[Dict[str, Any]] = Field(default_factory=list)


class SelectFlowRequest(BaseModel):
    flow_id: str


class StepDataRequest(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)


class ChooseRequest(BaseModel):
    option_id: str


class UserMessage(BaseModel):
    text: str


class CommandResponse(CommandResult):
    """CommandResult plus where the session stands afterwards."""
    state: str
    current_step_id: Optional[str] = None


class ActiveFlow(BaseModel):
    id: str
    title: str
    step_id: Optional[str] = None
    completed_steps: List[str] = Field(default_factory=list)
    total_steps: int


class SessionRead(BaseModel):
    session_id: str
    state: str
    epoch: int
    active_flow: Optional[ActiveFlow] = None
    session_values: Dict[str, Any] = Field(default_factory=dict)
    derived_values: Dict[str, Any] = Field(default_factory=dict)


class MessagesResponse(BaseModel):
    session_id: str
    messages: List[Dict[str, Any]]
