"""
Schemas - Command Results

Every FlowController command returns a CommandResult instead of raising for
recoverable errors. 'error' names the recognised error kind so callers can
branch without catching exceptions.
"""
from typing import Dict, Optional
from pydantic import BaseModel, Field

class CommandResult(BaseModel):
    accepted: bool
    transition: Optional[str] = Field(
        None,
        description="StateMachineTransition name (HOLD, ADVANCE, EXIT, JUMP_BACK, RESET)."
    )
    error: Optional[str] = Field(
        None,
        description="Error kind, e.g. 'UnknownBranch', 'InvalidFieldValue', 'StepNotCurrent'."
    )
    field_errors: Dict[str, str] = Field(default_factory=dict)
    message: Optional[str] = None
    next_step_id: Optional[str] = None
