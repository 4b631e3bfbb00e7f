from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from docreview.api.deps import get_db, get_current_user, get_document_store, http_error
from docreview.api.schemas.common import MessageResponse
from docreview.api.schemas.documents import (
    DocumentStatus,
    ImportAnnotationsRequest,
    ImportFormFieldsRequest,
    SaveDocumentRequest,
)
from docreview.core.exceptions import ReviewError
from docreview.db.models import User
from docreview.services.documents import DocumentService, FilesystemDocumentStore

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("/status", response_model=DocumentStatus)
def document_status(
    document: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    """Whether a document is locked by a completed workflow."""
    try:
        read_only = DocumentService(db, store).is_read_only(document)
    except ReviewError as e:
        raise http_error(e)
    return DocumentStatus(document=document, read_only=read_only)


@router.post("/save", response_model=MessageResponse)
def save_document(
    body: SaveDocumentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    try:
        DocumentService(db, store).save_document(body.file_name, body.decoded())
    except ReviewError as e:
        raise http_error(e)
    return MessageResponse(message="Document saved.")


@router.post("/import-annotations", response_model=MessageResponse)
def import_annotations(
    body: ImportAnnotationsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    try:
        DocumentService(db, store).import_annotations(body.document, body.annotations)
    except ReviewError as e:
        raise http_error(e)
    return MessageResponse(message="Annotations imported.")


@router.post("/import-form-fields", response_model=MessageResponse)
def import_form_fields(
    body: ImportFormFieldsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    store: FilesystemDocumentStore = Depends(get_document_store),
):
    try:
        DocumentService(db, store).import_form_fields(body.document, body.fields)
    except ReviewError as e:
        raise http_error(e)
    return MessageResponse(message="Form fields imported.")
