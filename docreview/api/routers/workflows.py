from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import EmailStr
from sqlalchemy.orm import Session

from docreview.api.deps import (
    get_db,
    get_current_user,
    get_document_store,
    get_notifier,
    http_error,
)
from docreview.api.schemas.workflows import WorkflowSummary
from docreview.core.exceptions import NotFoundError
from docreview.db.models import User
from docreview.services.documents import FilesystemDocumentStore
from docreview.services.notifications import Notifier
from docreview.services.workflows import WorkflowService, workflow_to_summary

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.post("", response_model=WorkflowSummary, status_code=status.HTTP_201_CREATED)
def create_workflow(
    title: str = Form(...),
    internal_reviewer_id: UUID = Form(...),
    external_reviewer_email: EmailStr = Form(...),
    pdf_file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
    notifier: Notifier = Depends(get_notifier),
):
    """Upload a PDF and start its review."""
    if not pdf_file.filename or not pdf_file.filename.lower().endswith(".pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "A PDF file is required."},
        )
    data = pdf_file.file.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "PDF file is empty."},
        )

    service = WorkflowService(db, store, notifier)
    try:
        workflow = service.create_workflow(
            creator_id=current_user.id,
            title=title,
            internal_reviewer_id=internal_reviewer_id,
            external_reviewer_email=str(external_reviewer_email),
            file_name=pdf_file.filename,
            pdf_bytes=data,
        )
    except NotFoundError as e:
        raise http_error(e)

    return workflow_to_summary(workflow)


@router.get("/{workflow_id}", response_model=WorkflowSummary)
def get_workflow(
    workflow_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    """Get workflow details."""
    try:
        workflow = WorkflowService(db, store).get_workflow(workflow_id)
    except NotFoundError as e:
        raise http_error(e)
    return workflow_to_summary(workflow)
