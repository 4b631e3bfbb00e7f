from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from docreview.api.deps import (
    get_db,
    get_current_user,
    get_document_store,
    get_notifier,
    get_renderer,
    http_error,
)
from docreview.api.schemas.reviews import InternalApprovalRequest, ApprovalResponse
from docreview.api.schemas.workflows import WorkflowSummary
from docreview.core.exceptions import ReviewError
from docreview.core.rbac import UserRole, require_role
from docreview.core.review import InternalReviewService
from docreview.db.models import User
from docreview.services.documents import FilesystemDocumentStore
from docreview.services.notifications import Notifier
from docreview.services.stamping import PdfStampRenderer
from docreview.services.workflows import WorkflowService, workflow_to_summary

router = APIRouter(prefix="/internal-review", tags=["internal-review"])


@router.get("/assigned", response_model=List[WorkflowSummary])
@require_role(UserRole.INTERNAL_USER, UserRole.ADMIN)
async def list_assigned(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    """Workflows waiting on the current reviewer."""
    workflows = WorkflowService(db, store).list_for_internal_reviewer(current_user.id)
    return [workflow_to_summary(w) for w in workflows]


@router.post("/approve", response_model=ApprovalResponse)
@require_role(UserRole.INTERNAL_USER, UserRole.ADMIN)
async def approve(
    body: InternalApprovalRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
    renderer: PdfStampRenderer = Depends(get_renderer),
):
    """Approve a workflow and send it to the external reviewer."""
    service = InternalReviewService(db, notifier=notifier, renderer=renderer)
    try:
        result = service.approve_internal(
            current_user.id,
            body.workflow_id,
            stamp=body.stamp.to_spec() if body.stamp else None,
        )
    except ReviewError as e:
        raise http_error(e)

    return ApprovalResponse.from_result(result)
