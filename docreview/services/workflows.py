"""Workflow creation and queries.

New workflows start in pending internal review with the uploaded PDF stored
and the assigned reviewer notified.
"""

import logging
from typing import Optional, List, Dict, Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from docreview.core.exceptions import NotFoundError
from docreview.core.read_only import document_file_name
from docreview.core.workflow.states import (
    WorkflowStatus,
    INTERNAL_QUEUE_STATES,
    EXTERNAL_VISIBLE_STATES,
)
from docreview.db.models import User, Workflow
from docreview.services.documents import FilesystemDocumentStore
from docreview.services.notifications import (
    INTERNAL_ASSIGNMENT_SUBJECT,
    Notifier,
    render_internal_assignment_email,
)

logger = logging.getLogger(__name__)


def workflow_to_summary(workflow: Workflow) -> Dict[str, Any]:
    """Wire representation shared by the internal and external views."""
    reviewer = workflow.internal_reviewer
    return {
        "id": workflow.id,
        "title": workflow.title,
        "status": int(workflow.status),
        "internal_reviewer_name": reviewer.full_name if reviewer else "Unknown",
        "external_reviewer_email": workflow.external_reviewer_email,
        "pdf_file_path": workflow.document_path,
        "pdf_file_name": document_file_name(workflow.document_path),
    }


class WorkflowService:
    def __init__(
        self,
        db: Session,
        store: FilesystemDocumentStore,
        notifier: Optional[Notifier] = None,
    ):
        self.db = db
        self.store = store
        self.notifier = notifier

    def create_workflow(
        self,
        creator_id: UUID,
        title: str,
        internal_reviewer_id: UUID,
        external_reviewer_email: str,
        file_name: str,
        pdf_bytes: bytes,
    ) -> Workflow:
        """
        Create a workflow pending internal review.

        Raises:
            NotFoundError: Unknown creator or reviewer
        """
        creator = self.db.query(User).filter(User.id == creator_id).first()
        if not creator:
            raise NotFoundError("Creator user not found.")
        reviewer = self.db.query(User).filter(User.id == internal_reviewer_id).first()
        if not reviewer:
            raise NotFoundError("Internal reviewer not found.")

        document_path = self.store.store_upload(file_name, pdf_bytes)

        workflow = Workflow(
            title=title,
            document_path=document_path,
            created_by_user_id=creator.id,
            internal_reviewer_id=reviewer.id,
            external_reviewer_email=external_reviewer_email.strip(),
            status=int(WorkflowStatus.PENDING_INTERNAL_REVIEW),
        )
        try:
            self.db.add(workflow)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(workflow)
        logger.info(f"Created workflow {workflow.id} for reviewer {reviewer.id}")

        if self.notifier is not None:
            try:
                self.notifier.send(
                    reviewer.email,
                    INTERNAL_ASSIGNMENT_SUBJECT,
                    render_internal_assignment_email(workflow.id, workflow.title, reviewer.full_name),
                )
            except Exception:
                logger.exception(f"Failed to notify reviewer {reviewer.id} of workflow {workflow.id}")

        return workflow

    def get_workflow(self, workflow_id: UUID) -> Workflow:
        workflow = self.db.query(Workflow).options(
            joinedload(Workflow.internal_reviewer)
        ).filter(Workflow.id == workflow_id).first()
        if not workflow:
            raise NotFoundError("Workflow not found.")
        return workflow

    def list_for_internal_reviewer(self, reviewer_id: UUID) -> List[Workflow]:
        """Workflows awaiting this reviewer, newest first."""
        return self.db.query(Workflow).options(
            joinedload(Workflow.internal_reviewer)
        ).filter(
            Workflow.internal_reviewer_id == reviewer_id,
            Workflow.status.in_([int(s) for s in INTERNAL_QUEUE_STATES]),
        ).order_by(Workflow.created_at.desc()).all()

    def list_for_external_email(self, email: str) -> List[Workflow]:
        """Workflows an external reviewer can see, matched case-insensitively."""
        return self.db.query(Workflow).options(
            joinedload(Workflow.internal_reviewer)
        ).filter(
            func.lower(Workflow.external_reviewer_email) == email.lower(),
            Workflow.status.in_([int(s) for s in EXTERNAL_VISIBLE_STATES]),
        ).order_by(Workflow.created_at.desc()).all()
