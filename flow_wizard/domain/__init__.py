"""
Domain Layer - Static Flow Definitions

Defines the declarative structure of guided flows: Flows, Steps, module
templates, validation and derivation rules, and transitions.
"""

from flow_wizard.domain.models import (
    BUILTIN_STRATEGIES,
    EXEMPT_KINDS,
    TERMINAL_KINDS,
    BranchTransition,
    ChoiceOption,
    Condition,
    ConditionalTransition,
    DerivationRule,
    FieldSpec,
    FlowDefinition,
    FormSection,
    ModuleSpec,
    StaticTransition,
    StepDefinition,
    StepKind,
    SuggestedActionSpec,
    Transition,
    ValidationRule,
)

__all__ = [
    "BUILTIN_STRATEGIES",
    "EXEMPT_KINDS",
    "TERMINAL_KINDS",
    "BranchTransition",
    "ChoiceOption",
    "Condition",
    "ConditionalTransition",
    "DerivationRule",
    "FieldSpec",
    "FlowDefinition",
    "FormSection",
    "ModuleSpec",
    "StaticTransition",
    "StepDefinition",
    "StepKind",
    "SuggestedActionSpec",
    "Transition",
    "ValidationRule",
]
