"""Workflow state machine implementation.

Validates transitions against the rule table and keeps an in-memory record
of every transition performed through it.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID
import uuid

from docreview.core.exceptions import StateConflictError
from .states import (
    WorkflowStatus,
    WorkflowTransition,
    TransitionRule,
    PRECONDITION_MESSAGES,
    STATUS_LABELS,
    can_transition,
    get_transition_rule,
    TERMINAL_STATES,
)


class WorkflowStateMachine:
    """
    State machine for a single review workflow.

    The machine only decides; persisting the new state is the caller's job.
    """

    def __init__(self, workflow_id: UUID, current_state: WorkflowStatus):
        self.workflow_id = workflow_id
        self._state = WorkflowStatus(current_state)
        self._transition_history: list[Dict[str, Any]] = []

    @property
    def state(self) -> WorkflowStatus:
        """Current state of the workflow."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def can_perform(self, transition: WorkflowTransition) -> bool:
        return can_transition(self._state, transition)

    def get_available_transitions(self) -> list[WorkflowTransition]:
        """Get list of transitions available from current state."""
        return [t for t in WorkflowTransition if self.can_perform(t)]

    def require(self, transition: WorkflowTransition) -> TransitionRule:
        """
        Return the rule for ``transition`` from the current state.

        Raises:
            StateConflictError: If the transition is not allowed from here
        """
        rule = get_transition_rule(self._state, transition)
        if rule is None:
            raise StateConflictError(
                f"{PRECONDITION_MESSAGES[transition]} Current status: {STATUS_LABELS[self._state]}",
                self._state,
            )
        return rule

    def transition(
        self,
        transition: WorkflowTransition,
        *,
        user_id: Optional[UUID] = None,
        timestamp: Optional[datetime] = None,
    ) -> WorkflowStatus:
        """
        Perform a state transition.

        Args:
            transition: The transition to perform
            user_id: ID of the actor, None for anonymous external reviewers
            timestamp: When the transition happened (defaults to now, UTC)

        Returns:
            The new state after transition

        Raises:
            StateConflictError: If the transition is invalid
        """
        rule = self.require(transition)

        self._transition_history.append({
            "id": uuid.uuid4(),
            "workflow_id": self.workflow_id,
            "from_state": STATUS_LABELS[rule.from_state],
            "to_state": STATUS_LABELS[rule.to_state],
            "transition": transition.value,
            "user_id": user_id,
            "timestamp": timestamp or datetime.utcnow(),
        })
        self._state = rule.to_state
        return self._state

    def get_history(self) -> list[Dict[str, Any]]:
        """Get the transitions performed through this machine."""
        return self._transition_history.copy()
