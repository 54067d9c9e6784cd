"""
Message Log - Ordered Conversation Turns

Append-only sequence of Turns owned by the FlowController. Besides append,
it supports the two rewrites the engine needs: a bulk transform applied to
every turn (lock refresh) and a filtered rewrite (drop transient turns,
collapse to the welcome turn on reset). Readers only ever get deep copies.
"""

import logging
from itertools import count
from typing import Callable, List, Optional, Tuple

from ..state.models import ModuleDescriptor, Turn

logger = logging.getLogger(__name__)


class MessageLog:
    def __init__(self):
        self._turns: List[Turn] = []
        self._ids = count(1)

    def __len__(self) -> int:
        return len(self._turns)

    def append(self, author: str, text: str = "", **attributes) -> Turn:
        """Creates a turn with the next monotonic id and appends it."""
        turn = Turn(id=f"msg_{next(self._ids)}", author=author, text=text, **attributes)
        self._turns.append(turn)
        return turn

    def get(self, turn_id: str) -> Optional[Turn]:
        return next((turn for turn in self._turns if turn.id == turn_id), None)

    def snapshot(self) -> Tuple[Turn, ...]:
        """Read-only view for the rendering layer."""
        return tuple(turn.model_copy(deep=True) for turn in self._turns)

    def transform(self, fn: Callable[[Turn], None]):
        """Applies an in-place rewrite to every turn."""
        for turn in self._turns:
            fn(turn)

    def retain(self, predicate: Callable[[Turn], bool]) -> int:
        """Keeps only the turns matching 'predicate'. Returns how many were dropped."""
        before = len(self._turns)
        self._turns = [turn for turn in self._turns if predicate(turn)]
        return before - len(self._turns)

    def replace_module(self, turn_id: str, module: Optional[ModuleDescriptor]) -> bool:
        turn = self.get(turn_id)
        if turn is None:
            return False
        turn.module = module
        return True

    # ==========================================================================
    # Queries
    # ==========================================================================

    def active_step_turn(self, flow_id: str, step_id: str) -> Optional[Turn]:
        """The latest non-superseded assistant turn rendered for a step."""
        for turn in reversed(self._turns):
            if (
                turn.author == "assistant"
                and turn.flow_id == flow_id
                and turn.step_id == step_id
                and not turn.superseded
            ):
                return turn
        return None

    def last_offering(self, action_id: str) -> Optional[Turn]:
        """The latest turn carrying a suggested action with this id."""
        for turn in reversed(self._turns):
            if any(action.id == action_id for action in turn.suggested_actions):
                return turn
        return None
