"""Review workflow states and transitions.

State Machine Diagram:

    ┌──────────┐
    │  DRAFT   │ (placeholder, not created by any operation)
    └────┬─────┘
         │ submit
    ┌────▼──────────────────┐
    │PENDING_INTERNAL_REVIEW│ ← Initial state for new workflows
    └────┬──────────────────┘
         │ approve_internal (skips INTERNAL_APPROVED)
         │                    ┌─────────────────┐
         │                    │INTERNAL_APPROVED│ (placeholder)
         │                    └────────┬────────┘
         │                             │ release_to_external
    ┌────▼─────────────────────────────▼┐
    │      PENDING_EXTERNAL_REVIEW      │
    └────┬──────────────────────────────┘
         │ approve_external
    ┌────▼─────┐
    │COMPLETED │ (read-only from here on)
    └──────────┘

    REJECTED is reachable from every non-terminal state.

Status values are persisted and serialized as their integer ordinals.
"""

from enum import Enum, IntEnum
from typing import Set, Dict, Optional, NamedTuple


class WorkflowStatus(IntEnum):
    """States in the document review workflow."""

    DRAFT = 0
    PENDING_INTERNAL_REVIEW = 1
    INTERNAL_APPROVED = 2
    PENDING_EXTERNAL_REVIEW = 3
    COMPLETED = 4
    REJECTED = 5


class WorkflowTransition(str, Enum):
    """Actions that trigger state transitions."""

    SUBMIT = "submit"                           # DRAFT → PENDING_INTERNAL_REVIEW
    APPROVE_INTERNAL = "approve_internal"       # PENDING_INTERNAL_REVIEW → PENDING_EXTERNAL_REVIEW
    RELEASE_TO_EXTERNAL = "release_to_external" # INTERNAL_APPROVED → PENDING_EXTERNAL_REVIEW
    APPROVE_EXTERNAL = "approve_external"       # PENDING_EXTERNAL_REVIEW → COMPLETED
    REJECT = "reject"                           # any non-terminal → REJECTED


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: WorkflowStatus
    to_state: WorkflowStatus
    transition: WorkflowTransition


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(WorkflowStatus.DRAFT, WorkflowStatus.PENDING_INTERNAL_REVIEW, WorkflowTransition.SUBMIT),
    TransitionRule(WorkflowStatus.PENDING_INTERNAL_REVIEW, WorkflowStatus.PENDING_EXTERNAL_REVIEW,
                   WorkflowTransition.APPROVE_INTERNAL),
    TransitionRule(WorkflowStatus.INTERNAL_APPROVED, WorkflowStatus.PENDING_EXTERNAL_REVIEW,
                   WorkflowTransition.RELEASE_TO_EXTERNAL),
    TransitionRule(WorkflowStatus.PENDING_EXTERNAL_REVIEW, WorkflowStatus.COMPLETED,
                   WorkflowTransition.APPROVE_EXTERNAL),
]

# Terminal states (no outgoing transitions)
TERMINAL_STATES: Set[WorkflowStatus] = {
    WorkflowStatus.COMPLETED,
    WorkflowStatus.REJECTED,
}

for _status in WorkflowStatus:
    if _status not in TERMINAL_STATES:
        TRANSITION_RULES.append(
            TransitionRule(_status, WorkflowStatus.REJECTED, WorkflowTransition.REJECT)
        )

VALID_TRANSITIONS: Dict[WorkflowStatus, Set[WorkflowTransition]] = {}
TRANSITION_TARGETS: Dict[tuple[WorkflowStatus, WorkflowTransition], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.transition)
    TRANSITION_TARGETS[(rule.from_state, rule.transition)] = rule


# Documents owned by these workflows may no longer be edited
READ_ONLY_STATES: Set[WorkflowStatus] = {
    WorkflowStatus.COMPLETED,
}

# Shown in an internal reviewer's queue
INTERNAL_QUEUE_STATES: Set[WorkflowStatus] = {
    WorkflowStatus.PENDING_INTERNAL_REVIEW,
    WorkflowStatus.INTERNAL_APPROVED,
}

# Visible to an external reviewer
EXTERNAL_VISIBLE_STATES: Set[WorkflowStatus] = {
    WorkflowStatus.PENDING_EXTERNAL_REVIEW,
    WorkflowStatus.COMPLETED,
}

# Display names used in messages and summaries
STATUS_LABELS: Dict[WorkflowStatus, str] = {
    WorkflowStatus.DRAFT: "Draft",
    WorkflowStatus.PENDING_INTERNAL_REVIEW: "PendingInternalReview",
    WorkflowStatus.INTERNAL_APPROVED: "InternalApproved",
    WorkflowStatus.PENDING_EXTERNAL_REVIEW: "PendingExternalReview",
    WorkflowStatus.COMPLETED: "Completed",
    WorkflowStatus.REJECTED: "Rejected",
}

# Human-readable precondition failures, one per transition
PRECONDITION_MESSAGES: Dict[WorkflowTransition, str] = {
    WorkflowTransition.SUBMIT: "Workflow is not a draft.",
    WorkflowTransition.APPROVE_INTERNAL: "Workflow is not in pending internal review state.",
    WorkflowTransition.RELEASE_TO_EXTERNAL: "Workflow is not internally approved.",
    WorkflowTransition.APPROVE_EXTERNAL: "Workflow is not pending external review.",
    WorkflowTransition.REJECT: "Workflow is already in a terminal state.",
}


def can_transition(from_state: WorkflowStatus, transition: WorkflowTransition) -> bool:
    """Check if a transition is valid from the given state."""
    return transition in VALID_TRANSITIONS.get(from_state, set())


def get_transition_rule(from_state: WorkflowStatus, transition: WorkflowTransition) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, transition))


def get_target_state(from_state: WorkflowStatus, transition: WorkflowTransition) -> Optional[WorkflowStatus]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, transition)
    return rule.to_state if rule else None
