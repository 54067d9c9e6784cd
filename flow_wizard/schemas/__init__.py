"""
Schemas - Structured Results

Pydantic models returned across the engine boundary: intent resolution
output and command results.
"""

from flow_wizard.schemas.commands import CommandResult
from flow_wizard.schemas.intents import Intent, IntentResult

__all__ = [
    "CommandResult",
    "Intent",
    "IntentResult",
]
