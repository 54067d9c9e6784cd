"""
Step Completion Ledger

Tracks which steps of each flow are completed and answers the single
question the renderer cares about: should this step's turn be read-only?
The ledger stores its sets inside the Session so a reset of the session
clears it as well.
"""

from typing import Dict, Iterable, Optional, Set

from ..domain.models import EXEMPT_KINDS


class StepCompletionLedger:
    def __init__(self, completed: Optional[Dict[str, Set[str]]] = None):
        # Shared with Session.completed_steps
        self._completed: Dict[str, Set[str]] = completed if completed is not None else {}

    def mark_completed(self, flow_id: str, step_id: str):
        self._completed.setdefault(flow_id, set()).add(step_id)

    def is_completed(self, flow_id: str, step_id: str) -> bool:
        return step_id in self._completed.get(flow_id, set())

    def is_locked(
        self,
        flow_id: str,
        step_id: str,
        current_step_id: Optional[str],
        step_kind: Optional[str] = None,
    ) -> bool:
        """
        Completed and no longer current. Summary and help-reference turns
        never lock, so terminal and informational content stays interactive.
        """
        if step_kind in EXEMPT_KINDS:
            return False
        return self.is_completed(flow_id, step_id) and step_id != current_step_id

    def completed(self, flow_id: str) -> Set[str]:
        return set(self._completed.get(flow_id, set()))

    def uncomplete(self, flow_id: str, step_ids: Iterable[str]):
        trail = self._completed.get(flow_id)
        if trail is None:
            return
        trail.difference_update(step_ids)

    def clear(self, flow_id: Optional[str] = None):
        """Clears one flow's trail, or every trail when flow_id is None."""
        if flow_id is None:
            self._completed.clear()
        else:
            self._completed.pop(flow_id, None)
