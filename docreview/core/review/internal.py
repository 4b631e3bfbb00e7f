"""Internal approval: the first of the two review stages.

Approving moves the workflow to pending external review and mints the
credential the external reviewer will use. Stamp, credential, reassignment
and status commit together; the email and visual stamp follow the commit
and may fail without undoing it.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from docreview.core.config import Settings
from docreview.core.credentials import CredentialIssuer
from docreview.core.exceptions import NotFoundError, AuthorizationError
from docreview.core.rbac.roles import authorize_internal_approval, role_name
from docreview.core.workflow.states import WorkflowTransition
from docreview.db.models import User
from docreview.services.notifications import (
    EXTERNAL_REVIEW_SUBJECT,
    Notifier,
    get_notifier,
    render_external_review_email,
)
from .base import ReviewOrchestrator, StampRenderer
from .results import StampSpec, ApprovalResult

logger = logging.getLogger(__name__)


class InternalReviewService(ReviewOrchestrator):
    """Performs internal approvals on behalf of authenticated staff."""

    def __init__(
        self,
        db: Session,
        *,
        notifier: Optional[Notifier] = None,
        renderer: Optional[StampRenderer] = None,
        issuer: Optional[CredentialIssuer] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db, renderer=renderer, settings=settings)
        self.notifier = notifier or get_notifier(self.settings)
        self.issuer = issuer or CredentialIssuer(db)

    def approve_internal(
        self,
        actor_id: UUID,
        workflow_id: UUID,
        stamp: Optional[StampSpec] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalResult:
        """
        Approve a workflow pending internal review.

        Args:
            actor_id: The authenticated user approving
            workflow_id: Workflow to approve
            stamp: Optional stamp to record with the actor as author
            now: Override for the current time (UTC)

        Returns:
            ApprovalResult carrying the issued credential

        Raises:
            NotFoundError: Unknown workflow or actor
            AuthorizationError: Actor may not approve internal reviews
            StateConflictError: Workflow is not pending internal review
        """
        now = now or datetime.utcnow()

        try:
            workflow = self._lock_workflow(workflow_id)
            actor = self.db.query(User).filter(User.id == actor_id).first()
            if not actor:
                raise NotFoundError(f"User with ID {actor_id} not found.")

            assigned_id = workflow.internal_reviewer_id
            decision = authorize_internal_approval(actor.id, actor.role, assigned_id)
            if not decision.allowed:
                raise AuthorizationError(
                    f"You are not authorized to approve this workflow. "
                    f"Workflow is assigned to Internal Reviewer ID: {assigned_id}, "
                    f"but you are User ID: {actor.id} ({actor.full_name}, Role: {role_name(actor.role)}). "
                    f"Only internal reviewers or an Admin can approve this workflow.",
                    assigned_reviewer_id=assigned_id,
                )

            self._machine_for(workflow).require(WorkflowTransition.APPROVE_INTERNAL)

            stamp_record = self._record_stamp(workflow, stamp, actor.id, now)
            issued = self.issuer.issue(workflow.id, now=now)

            values = {"internal_approved_at": now}
            if decision.reassigns:
                values["internal_reviewer_id"] = actor.id
                logger.info(
                    f"Workflow {workflow.id} reassigned from {assigned_id} to {actor.id} "
                    f"({decision.value})"
                )

            new_state = self._apply_transition(
                workflow,
                WorkflowTransition.APPROVE_INTERNAL,
                values,
                user_id=actor.id,
                now=now,
            )
            stamp_id = stamp_record.id if stamp_record else None
            document_path = workflow.document_path
            external_email = workflow.external_reviewer_email
            title = workflow.title
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        result = ApprovalResult(
            workflow_id=workflow_id,
            status=new_state,
            stamp_id=stamp_id,
            credential=issued,
            reassigned_to=actor_id if decision.reassigns else None,
        )

        self._stamp_document(document_path, stamp, result.failed_effects)
        self._run_effect(
            "notify_external_reviewer",
            result.failed_effects,
            lambda: self.notifier.send(
                external_email,
                EXTERNAL_REVIEW_SUBJECT,
                render_external_review_email(
                    issued.token, issued.passcode, title=title, settings=self.settings
                ),
            ),
        )
        return result
