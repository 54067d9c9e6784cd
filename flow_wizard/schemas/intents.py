"""
Schemas - Intent Resolution Output

This module defines the coarse result an IntentResolver returns for a piece
of free text. The FlowController only branches on 'intent'; the remaining
fields carry the argument of that intent.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

class Intent(str, Enum):
    """
    The resolver's reading of ambient chat input.

    START_FLOW: The user asks for a specific guided flow.
    CONTINUE_BRANCH: The text answers the current step with one of its options.
    GENERAL_HELP: The user asks for guidance rather than an action.
    UNRECOGNIZED: Nothing matched; the caller re-prompts.
    """
    START_FLOW = "START_FLOW"
    CONTINUE_BRANCH = "CONTINUE_BRANCH"
    GENERAL_HELP = "GENERAL_HELP"
    UNRECOGNIZED = "UNRECOGNIZED"

class IntentResult(BaseModel):
    intent: Intent = Field(
        ...,
        description="The coarse intent detected in the text."
    )
    flow_id: Optional[str] = Field(
        None,
        description="Flow to start (START_FLOW only)."
    )
    branch_key: Optional[str] = Field(
        None,
        description="Option id answering the current step (CONTINUE_BRANCH only)."
    )
    topic: Optional[str] = Field(
        None,
        description="Help topic used to pick reference sources (GENERAL_HELP only)."
    )
    confidence: float = Field(
        1.0,
        description="Resolver confidence between 0.0 and 1.0."
    )
