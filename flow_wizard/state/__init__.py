"""
State Layer - Runtime Data Models

Defines the runtime state of a conversation: the Session aggregate and the
Turns of the Message Log.
"""

from flow_wizard.state.models import (
    ModuleDescriptor,
    Session,
    SourceReference,
    SuggestedAction,
    Turn,
)

__all__ = [
    "ModuleDescriptor",
    "Session",
    "SourceReference",
    "SuggestedAction",
    "Turn",
]
