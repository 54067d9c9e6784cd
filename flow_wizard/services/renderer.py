"""
Module Renderer Interface.

The engine never renders anything itself: it hands ModuleDescriptors to a
ModuleRenderer supplied by the host (a web UI, a terminal, the HTTP adapter).
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..state.models import ModuleDescriptor, Turn


class ModuleRenderer(ABC):
    @abstractmethod
    def render(self, module: ModuleDescriptor) -> Any:
        """Turns a descriptor into whatever the host displays."""
        pass

    def render_turn(self, turn: Turn) -> Dict[str, Any]:
        """Plain-data view of a turn with its module rendered."""
        return {
            "id": turn.id,
            "author": turn.author,
            "text": turn.text,
            "module": self.render(turn.module) if turn.module is not None else None,
            "suggested_actions": [action.model_dump() for action in turn.suggested_actions],
            "sources": [source.model_dump() for source in turn.sources],
            "step_id": turn.step_id,
            "flow_id": turn.flow_id,
            "locked": turn.locked,
            "created_at": turn.created_at.isoformat(),
        }

    def render_turns(self, turns) -> List[Dict[str, Any]]:
        return [self.render_turn(turn) for turn in turns]


class PassthroughRenderer(ModuleRenderer):
    """
    Default renderer: descriptors are already plain data, so this only
    checks the kind against an optional allow-list.
    """

    def __init__(self, known_kinds: Optional[List[str]] = None):
        self.known_kinds = set(known_kinds) if known_kinds else None

    def render(self, module: ModuleDescriptor) -> Dict[str, Any]:
        if self.known_kinds is not None and module.kind not in self.known_kinds:
            return {"kind": "unsupported", "props": {"original_kind": module.kind}}
        return module.model_dump()
