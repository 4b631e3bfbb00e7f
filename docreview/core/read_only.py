"""Read-only gate for documents owned by completed workflows.

Document-editing operations call ``ensure_writable`` before touching bytes.
Lookup failures do not block edits.
"""

import logging
import re
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docreview.core.exceptions import DocumentReadOnlyError
from docreview.core.workflow.states import READ_ONLY_STATES
from docreview.db.models import Workflow

logger = logging.getLogger(__name__)

READ_ONLY_MESSAGE = "This PDF has been approved and is read-only."


def document_file_name(document_ref: str) -> str:
    """Final path component, accepting both separator styles."""
    return re.split(r"[\\/]", document_ref.rstrip("\\/"))[-1]


def find_workflow_by_document(db: Session, document_ref: str) -> Optional[Workflow]:
    """
    Find the workflow owning a document.

    Tries an exact path match first, then the most recent workflow whose
    stored path has the same final component.
    """
    if not document_ref or not document_ref.strip():
        return None

    workflow = db.query(Workflow).filter(Workflow.document_path == document_ref).first()
    if workflow:
        return workflow

    file_name = document_file_name(document_ref)
    if not file_name:
        return None

    return db.query(Workflow).filter(
        or_(
            Workflow.document_path == file_name,
            Workflow.document_path.endswith("/" + file_name, autoescape=True),
            Workflow.document_path.endswith("\\" + file_name, autoescape=True),
        )
    ).order_by(Workflow.created_at.desc()).first()


class ReadOnlyGate:
    """Decides whether a document may still be edited."""

    def __init__(self, db: Session):
        self.db = db

    def resolve_owning_workflow(self, document_ref: str) -> Optional[Workflow]:
        return find_workflow_by_document(self.db, document_ref)

    def is_read_only(self, document_ref: str) -> bool:
        try:
            workflow = self.resolve_owning_workflow(document_ref)
        except SQLAlchemyError as e:
            logger.warning(f"Read-only lookup failed for {document_ref}, allowing edit: {e}")
            return False

        if workflow is None:
            return False
        return workflow.workflow_status in READ_ONLY_STATES

    def ensure_writable(self, document_ref: str) -> None:
        """
        Raises:
            DocumentReadOnlyError: If the document's workflow is completed
        """
        if self.is_read_only(document_ref):
            logger.info(f"Blocked edit of read-only document {document_ref}")
            raise DocumentReadOnlyError(READ_ONLY_MESSAGE)
