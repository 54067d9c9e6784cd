"""
Engine Exceptions

Error kinds raised inside the engine. The FlowController catches the
recoverable ones at the command boundary and turns them into a re-prompt;
FlowDefinitionError is a programming error and is never caught.
"""

from typing import Dict, Optional


class FlowWizardError(Exception):
    """Base class for every engine error."""
    pass


class UnknownFlow(FlowWizardError):
    """Raised when a flow id was never registered."""

    def __init__(self, flow_id: str):
        super().__init__(f"Flow '{flow_id}' not found.")
        self.flow_id = flow_id


class UnknownBranch(FlowWizardError):
    """Raised when a choice or typed answer matches no transition of the step."""

    def __init__(self, step_id: str, branch_key: Optional[str]):
        super().__init__(f"Step '{step_id}' has no branch '{branch_key}'.")
        self.step_id = step_id
        self.branch_key = branch_key


class InvalidFieldValue(FlowWizardError):
    """Raised when submitted data fails the step's validation rules."""

    def __init__(self, step_id: str, errors: Dict[str, str]):
        super().__init__(f"Step '{step_id}' rejected {len(errors)} field(s).")
        self.step_id = step_id
        self.errors = errors


class DerivationUnavailable(FlowWizardError):
    """Raised when a derivation strategy cannot produce a value from its sources."""
    pass


class StaleSessionAction(FlowWizardError):
    """Raised when a scheduled action fires against an epoch that was reset."""

    def __init__(self, scheduled_epoch: int, current_epoch: int):
        super().__init__(
            f"Action scheduled in epoch {scheduled_epoch} fired in epoch {current_epoch}."
        )
        self.scheduled_epoch = scheduled_epoch
        self.current_epoch = current_epoch


class StepNotCurrent(FlowWizardError):
    """Raised when a command targets a step other than the current one."""

    def __init__(self, step_id: str, current_step_id: Optional[str]):
        super().__init__(
            f"Step '{step_id}' is not the current step (current: '{current_step_id}')."
        )
        self.step_id = step_id
        self.current_step_id = current_step_id


class FlowDefinitionError(FlowWizardError):
    """Raised at registration time when a flow graph is misconfigured."""
    pass


class ProvisioningError(FlowWizardError):
    """Raised by a ClientProvisioner when the (simulated) backend call fails."""
    pass
