"""
Transition Types - FSM State Transition Definitions

Type definitions for the flow state machine. Used by the FlowController to
classify what a command did to the graph pointers, and returned to callers
inside CommandResult.
"""

from enum import Enum, auto


class ControllerState(str, Enum):
    """Coarse lifecycle of a session."""

    IDLE = "Idle"  # No active flow; welcome turn shown
    RUNNING = "Running"  # A flow is active and has a current step
    TERMINAL = "Terminal"  # The active flow reached a terminal step


class StateMachineTransition(Enum):
    """
    Strict State Machine terminology describing what happened to the graph pointers.
    This decouples the Controller logic from the kind of user input that caused it.
    """

    HOLD = auto()  # The pointer remains on the current node.
    ADVANCE = auto()  # The pointer moved to the next linear, branched or conditional node.
    EXIT = auto()  # The pointer reached a terminal node.
    JUMP_BACK = auto()  # The pointer moved back to an earlier node (edit recovery).
    RESET = auto()  # The session returned to Idle.
