"""External approval: the final review stage.

The external reviewer reaches it either through the emailed token or,
when they hold an ExternalUser account, through their login session.
Either way the workflow must belong to their reviewer email.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from docreview.core.config import Settings
from docreview.core.credentials import AccessValidator
from docreview.core.exceptions import AuthorizationError
from docreview.core.workflow.states import WorkflowTransition
from docreview.db.models import Workflow
from .base import ReviewOrchestrator, StampRenderer
from .results import StampSpec, ApprovalResult

logger = logging.getLogger(__name__)


class ExternalReviewService(ReviewOrchestrator):
    """Completes workflows on behalf of external reviewers."""

    def __init__(
        self,
        db: Session,
        *,
        renderer: Optional[StampRenderer] = None,
        validator: Optional[AccessValidator] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db, renderer=renderer, settings=settings)
        self.validator = validator or AccessValidator(db)

    def approve_external(
        self,
        token: str,
        workflow_id: Optional[UUID] = None,
        stamp: Optional[StampSpec] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalResult:
        """
        Approve a workflow using an emailed access token.

        Without ``workflow_id`` the token's own workflow is approved. Any
        other workflow must share its external reviewer email.

        Raises:
            InvalidTokenError: Token is blank
            NotFoundError: Unknown token or workflow
            CredentialExpiredError: Token past expiry
            AuthorizationError: Workflow belongs to another reviewer, or a
                required passcode has not been redeemed
            StateConflictError: Workflow is not pending external review
        """
        now = now or datetime.utcnow()

        try:
            credential = self.validator.validate_token(token, now)
            target_id = workflow_id or credential.workflow_id
            workflow = self._lock_workflow(target_id)

            if workflow.id == credential.workflow_id:
                bound = workflow
            else:
                bound = self.db.query(Workflow).filter(
                    Workflow.id == credential.workflow_id
                ).first()
            if (
                bound is None
                or not bound.external_reviewer_email
                or workflow.external_reviewer_email != bound.external_reviewer_email
            ):
                raise AuthorizationError("Workflow does not belong to this external reviewer.")

            if self.settings.require_passcode_for_external_approval and not credential.used:
                raise AuthorizationError("Passcode must be verified before approval.")

            return self._complete(workflow, stamp, actor_id=None, now=now)
        except Exception:
            self.db.rollback()
            raise

    def approve_for_session(
        self,
        session_email: str,
        workflow_id: UUID,
        stamp: Optional[StampSpec] = None,
        actor_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalResult:
        """
        Approve a workflow for a logged-in external user.

        Raises:
            NotFoundError: Unknown workflow
            AuthorizationError: Workflow is addressed to a different email
            StateConflictError: Workflow is not pending external review
        """
        now = now or datetime.utcnow()

        try:
            workflow = self._lock_workflow(workflow_id)
            if (workflow.external_reviewer_email or "").lower() != (session_email or "").lower():
                raise AuthorizationError(
                    "This workflow does not belong to the current external user."
                )
            return self._complete(workflow, stamp, actor_id=actor_id, now=now)
        except Exception:
            self.db.rollback()
            raise

    def _complete(
        self,
        workflow: Workflow,
        stamp: Optional[StampSpec],
        *,
        actor_id: Optional[UUID],
        now: datetime,
    ) -> ApprovalResult:
        self._machine_for(workflow).require(WorkflowTransition.APPROVE_EXTERNAL)

        stamp_record = self._record_stamp(workflow, stamp, actor_id, now)
        new_state = self._apply_transition(
            workflow,
            WorkflowTransition.APPROVE_EXTERNAL,
            {"external_approved_at": now},
            user_id=actor_id,
            now=now,
        )
        workflow_id = workflow.id
        stamp_id = stamp_record.id if stamp_record else None
        document_path = workflow.document_path
        self.db.commit()

        result = ApprovalResult(workflow_id=workflow_id, status=new_state, stamp_id=stamp_id)
        self._stamp_document(document_path, stamp, result.failed_effects)
        return result
