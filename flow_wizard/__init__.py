"""
Flow Wizard

A conversational form-wizard engine: guided, multi-step flows rendered as a
chat, where each assistant turn carries a structured module (form, choice,
upload, progress, summary) and completed steps lock as the flow moves on.
"""

from flow_wizard.domain import (
    ChoiceOption,
    FieldSpec,
    FlowDefinition,
    ModuleSpec,
    StepDefinition,
    ValidationRule,
)
from flow_wizard.state import (
    ModuleDescriptor,
    Session,
    Turn,
)
from flow_wizard.schemas import CommandResult, Intent, IntentResult
from flow_wizard.execution import FlowController, SessionClock

__all__ = [
    # Domain Layer
    "ChoiceOption",
    "FieldSpec",
    "FlowDefinition",
    "ModuleSpec",
    "StepDefinition",
    "ValidationRule",
    # State Layer
    "ModuleDescriptor",
    "Session",
    "Turn",
    # Schemas
    "CommandResult",
    "Intent",
    "IntentResult",
    # Execution Layer
    "FlowController",
    "SessionClock",
]
