"""Review workflow state machine."""

from .states import WorkflowStatus, WorkflowTransition, VALID_TRANSITIONS
from .machine import WorkflowStateMachine

__all__ = [
    "WorkflowStatus",
    "WorkflowTransition",
    "VALID_TRANSITIONS",
    "WorkflowStateMachine",
]
