"""Tests for the review workflow state machine."""

import pytest
from uuid import uuid4

from docreview.core.exceptions import StateConflictError
from docreview.core.workflow.states import (
    WorkflowStatus, WorkflowTransition,
    TERMINAL_STATES, READ_ONLY_STATES, INTERNAL_QUEUE_STATES, EXTERNAL_VISIBLE_STATES,
    STATUS_LABELS, PRECONDITION_MESSAGES,
    can_transition, get_target_state, get_transition_rule,
)
from docreview.core.workflow.machine import WorkflowStateMachine


class TestWorkflowStates:
    """Test workflow state definitions."""

    def test_status_ordinals(self):
        """Statuses are persisted as these integers."""
        assert WorkflowStatus.DRAFT == 0
        assert WorkflowStatus.PENDING_INTERNAL_REVIEW == 1
        assert WorkflowStatus.INTERNAL_APPROVED == 2
        assert WorkflowStatus.PENDING_EXTERNAL_REVIEW == 3
        assert WorkflowStatus.COMPLETED == 4
        assert WorkflowStatus.REJECTED == 5

    def test_every_status_has_a_label(self):
        assert set(STATUS_LABELS) == set(WorkflowStatus)

    def test_every_transition_has_a_precondition_message(self):
        assert set(PRECONDITION_MESSAGES) == set(WorkflowTransition)

    def test_terminal_states(self):
        assert TERMINAL_STATES == {WorkflowStatus.COMPLETED, WorkflowStatus.REJECTED}

    def test_only_completed_is_read_only(self):
        assert READ_ONLY_STATES == {WorkflowStatus.COMPLETED}

    def test_queue_and_visibility_sets(self):
        assert INTERNAL_QUEUE_STATES == {
            WorkflowStatus.PENDING_INTERNAL_REVIEW,
            WorkflowStatus.INTERNAL_APPROVED,
        }
        assert EXTERNAL_VISIBLE_STATES == {
            WorkflowStatus.PENDING_EXTERNAL_REVIEW,
            WorkflowStatus.COMPLETED,
        }


class TestWorkflowTransitions:
    """Test valid state transitions."""

    def test_internal_approval_skips_internal_approved(self):
        assert get_target_state(
            WorkflowStatus.PENDING_INTERNAL_REVIEW, WorkflowTransition.APPROVE_INTERNAL
        ) == WorkflowStatus.PENDING_EXTERNAL_REVIEW

    def test_external_approval_completes(self):
        assert get_target_state(
            WorkflowStatus.PENDING_EXTERNAL_REVIEW, WorkflowTransition.APPROVE_EXTERNAL
        ) == WorkflowStatus.COMPLETED

    def test_submit_and_release(self):
        assert get_target_state(
            WorkflowStatus.DRAFT, WorkflowTransition.SUBMIT
        ) == WorkflowStatus.PENDING_INTERNAL_REVIEW
        assert get_target_state(
            WorkflowStatus.INTERNAL_APPROVED, WorkflowTransition.RELEASE_TO_EXTERNAL
        ) == WorkflowStatus.PENDING_EXTERNAL_REVIEW

    def test_reject_from_every_non_terminal_state(self):
        for status in WorkflowStatus:
            if status in TERMINAL_STATES:
                assert not can_transition(status, WorkflowTransition.REJECT)
            else:
                assert get_target_state(status, WorkflowTransition.REJECT) == WorkflowStatus.REJECTED

    def test_no_transitions_out_of_completed(self):
        for transition in WorkflowTransition:
            assert not can_transition(WorkflowStatus.COMPLETED, transition)

    def test_approvals_require_their_stage(self):
        assert not can_transition(WorkflowStatus.PENDING_EXTERNAL_REVIEW, WorkflowTransition.APPROVE_INTERNAL)
        assert not can_transition(WorkflowStatus.PENDING_INTERNAL_REVIEW, WorkflowTransition.APPROVE_EXTERNAL)
        assert get_transition_rule(WorkflowStatus.DRAFT, WorkflowTransition.APPROVE_EXTERNAL) is None


class TestWorkflowStateMachine:
    """Test the state machine wrapper."""

    def test_transition_updates_state_and_history(self):
        machine = WorkflowStateMachine(uuid4(), WorkflowStatus.PENDING_INTERNAL_REVIEW)
        user_id = uuid4()

        new_state = machine.transition(WorkflowTransition.APPROVE_INTERNAL, user_id=user_id)

        assert new_state == WorkflowStatus.PENDING_EXTERNAL_REVIEW
        assert machine.state == WorkflowStatus.PENDING_EXTERNAL_REVIEW
        history = machine.get_history()
        assert len(history) == 1
        assert history[0]["from_state"] == "PendingInternalReview"
        assert history[0]["to_state"] == "PendingExternalReview"
        assert history[0]["user_id"] == user_id

    def test_invalid_transition_names_current_status(self):
        machine = WorkflowStateMachine(uuid4(), WorkflowStatus.PENDING_EXTERNAL_REVIEW)

        with pytest.raises(StateConflictError) as exc:
            machine.transition(WorkflowTransition.APPROVE_INTERNAL)

        assert "Current status: PendingExternalReview" in exc.value.message
        assert exc.value.current_status == WorkflowStatus.PENDING_EXTERNAL_REVIEW
        assert exc.value.to_dict()["current_status"] == 3
        assert machine.state == WorkflowStatus.PENDING_EXTERNAL_REVIEW
        assert machine.get_history() == []

    def test_available_transitions(self):
        machine = WorkflowStateMachine(uuid4(), WorkflowStatus.PENDING_EXTERNAL_REVIEW)
        assert set(machine.get_available_transitions()) == {
            WorkflowTransition.APPROVE_EXTERNAL,
            WorkflowTransition.REJECT,
        }

    def test_accepts_stored_integer(self):
        machine = WorkflowStateMachine(uuid4(), 4)
        assert machine.state is WorkflowStatus.COMPLETED
        assert machine.is_terminal
