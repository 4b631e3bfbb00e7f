"""External reviewer endpoints.

Two access paths exist: the emailed token (no login) and an ExternalUser
login session. Both only reach workflows addressed to the reviewer's email.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from docreview.api.deps import (
    get_db,
    get_document_store,
    get_external_user,
    get_renderer,
    http_error,
)
from docreview.api.schemas.reviews import (
    ApprovalResponse,
    ExternalApprovalRequest,
    ExternalUserInfo,
    OtpValidationRequest,
)
from docreview.api.schemas.workflows import WorkflowSummary
from docreview.core.credentials import AccessValidator
from docreview.core.exceptions import ReviewError
from docreview.core.review import ExternalReviewService
from docreview.db.models import User
from docreview.services.documents import FilesystemDocumentStore
from docreview.services.stamping import PdfStampRenderer
from docreview.services.workflows import WorkflowService, workflow_to_summary

router = APIRouter(prefix="/external-review", tags=["external-review"])


def _require_token(token: Optional[str]) -> str:
    if not token or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Token is required.", "code": "INVALID_TOKEN"},
        )
    return token


@router.post("/validate-otp", response_model=bool)
def validate_otp(body: OtpValidationRequest, db: Session = Depends(get_db)):
    """Check the emailed passcode. A passcode is accepted once."""
    valid = AccessValidator(db).validate_passcode(body.token, body.otp)
    db.commit()
    return valid


@router.post("/approve", response_model=ApprovalResponse)
def approve(
    body: ExternalApprovalRequest,
    db: Session = Depends(get_db),
    renderer: PdfStampRenderer = Depends(get_renderer),
):
    """Approve through the emailed link."""
    if not body.token or not body.token.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Token is required for the email-link approval flow."},
        )

    service = ExternalReviewService(db, renderer=renderer)
    try:
        result = service.approve_external(
            body.token,
            workflow_id=body.workflow_id,
            stamp=body.stamp.to_spec() if body.stamp else None,
        )
    except ReviewError as e:
        raise http_error(e)

    return ApprovalResponse.from_result(result)


@router.get("/user-info", response_model=ExternalUserInfo)
def user_info(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Who the token was issued to."""
    info = AccessValidator(db).get_reviewer_info(_require_token(token))
    if info is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Invalid or expired token."},
        )
    return info


@router.get("/workflow", response_model=WorkflowSummary)
def get_workflow(
    token: Optional[str] = Query(None),
    workflow_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
):
    """The token's workflow, or another workflow for the same reviewer."""
    try:
        workflow = AccessValidator(db).resolve_workflow_for_token(
            _require_token(token), workflow_id
        )
    except ReviewError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "Invalid or expired token, or workflow not found."},
        )
    return workflow_to_summary(workflow)


@router.get("/workflows", response_model=List[WorkflowSummary])
def list_workflows(token: Optional[str] = Query(None), db: Session = Depends(get_db)):
    """Every workflow the token's reviewer can review or has reviewed."""
    try:
        workflows = AccessValidator(db).list_workflows_for_token(_require_token(token))
    except ReviewError as e:
        raise http_error(e)

    if not workflows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "No workflows found for this token."},
        )
    return [workflow_to_summary(w) for w in workflows]


@router.get("/user-info/current", response_model=ExternalUserInfo)
def current_user_info(current_user: User = Depends(get_external_user)):
    return {"email": current_user.email, "is_valid": True}


@router.get("/workflows/current", response_model=List[WorkflowSummary])
def current_user_workflows(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_external_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    workflows = WorkflowService(db, store).list_for_external_email(current_user.email)
    return [workflow_to_summary(w) for w in workflows]


@router.post("/approve-current", response_model=ApprovalResponse)
def approve_current(
    body: ExternalApprovalRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_external_user),
    renderer: PdfStampRenderer = Depends(get_renderer),
):
    """Approve as the logged-in external user."""
    if body.workflow_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "WorkflowId is required."},
        )

    service = ExternalReviewService(db, renderer=renderer)
    try:
        result = service.approve_for_session(
            current_user.email,
            body.workflow_id,
            stamp=body.stamp.to_spec() if body.stamp else None,
            actor_id=current_user.id,
        )
    except ReviewError as e:
        raise http_error(e)

    return ApprovalResponse.from_result(result)
