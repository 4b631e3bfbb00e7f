"""Shared persistence helpers for the review orchestrators."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from docreview.core.config import Settings, get_settings
from docreview.core.exceptions import NotFoundError, StateConflictError
from docreview.core.workflow.machine import WorkflowStateMachine
from docreview.core.workflow.states import WorkflowStatus, WorkflowTransition, STATUS_LABELS
from docreview.db.models import Workflow, WorkflowStamp
from .results import StampSpec, EffectFailure

logger = logging.getLogger(__name__)


class StampRenderer(Protocol):
    """Draws an approval stamp onto a stored document."""

    def apply_stamp(self, document_ref: str, label: str, page_number: int, x: float, y: float) -> None:
        ...


class ReviewOrchestrator:
    """Base for services that advance a workflow through one transition."""

    def __init__(
        self,
        db: Session,
        *,
        renderer: Optional[StampRenderer] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.renderer = renderer
        self.settings = settings or get_settings()

    def _lock_workflow(self, workflow_id: UUID) -> Workflow:
        workflow = self.db.query(Workflow).filter(
            Workflow.id == workflow_id
        ).with_for_update().first()
        if not workflow:
            raise NotFoundError("Workflow not found.")
        return workflow

    @staticmethod
    def _machine_for(workflow: Workflow) -> WorkflowStateMachine:
        return WorkflowStateMachine(workflow.id, workflow.workflow_status)

    def _record_stamp(
        self,
        workflow: Workflow,
        stamp: Optional[StampSpec],
        user_id: Optional[UUID],
        now: datetime,
    ) -> Optional[WorkflowStamp]:
        if stamp is None:
            return None
        record = WorkflowStamp(
            workflow_id=workflow.id,
            user_id=user_id,
            label=stamp.label,
            page_number=stamp.page_number,
            x=stamp.x,
            y=stamp.y,
            applied_at=now,
        )
        self.db.add(record)
        return record

    def _apply_transition(
        self,
        workflow: Workflow,
        transition: WorkflowTransition,
        values: Dict[str, Any],
        *,
        user_id: Optional[UUID] = None,
        now: datetime,
    ) -> WorkflowStatus:
        """
        Write the transition's target status with a compare-and-set update.

        Raises:
            StateConflictError: If another transaction moved the workflow first
        """
        machine = self._machine_for(workflow)
        expected = machine.state
        new_state = machine.transition(transition, user_id=user_id, timestamp=now)

        # Pending stamps and credentials must reach the database before the update
        self.db.flush()
        result = self.db.execute(
            update(Workflow)
            .where(Workflow.id == workflow.id, Workflow.status == int(expected))
            .values(status=int(new_state), updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(workflow)
        if result.rowcount != 1:
            raise StateConflictError(
                f"Workflow changed concurrently. Current status: "
                f"{STATUS_LABELS[WorkflowStatus(workflow.status)]}",
                WorkflowStatus(workflow.status),
            )

        logger.info(
            f"Workflow {workflow.id} {STATUS_LABELS[expected]} -> "
            f"{STATUS_LABELS[new_state]} ({transition.value})"
        )
        return new_state

    def _stamp_document(
        self,
        document_path: str,
        stamp: Optional[StampSpec],
        failures: List[EffectFailure],
    ) -> None:
        if stamp is None or self.renderer is None or not self.settings.apply_visual_stamps:
            return
        self._run_effect(
            "visual_stamp",
            failures,
            lambda: self.renderer.apply_stamp(
                document_path, stamp.label, stamp.page_number, stamp.x, stamp.y
            ),
        )

    @staticmethod
    def _run_effect(name: str, failures: List[EffectFailure], func: Callable[[], Any]) -> None:
        """Run a non-critical effect; record instead of raising on failure."""
        try:
            func()
        except Exception as e:
            logger.exception(f"Side effect '{name}' failed")
            failures.append(EffectFailure(effect=name, error=str(e)))
