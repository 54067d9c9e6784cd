"""
Execution Layer - Flow Orchestration

Defines the FlowController (deterministic state machine) together with the
pieces it owns per session: the Session Clock, the Message Log, the Step
Completion Ledger, the Derivation Engine and Module Projection.
"""

from flow_wizard.execution.clock import SessionClock
from flow_wizard.execution.derivation import DerivationEngine
from flow_wizard.execution.engine import FlowController
from flow_wizard.execution.ledger import StepCompletionLedger
from flow_wizard.execution.message_log import MessageLog
from flow_wizard.execution.projection import project


__all__ = [
    "DerivationEngine",
    "FlowController",
    "MessageLog",
    "SessionClock",
    "StepCompletionLedger",
    "project",
]
