"""Error taxonomy for the review workflow.

Every error carries the HTTP status the API surfaces it with, so routers can
translate without inspecting messages.
"""

from typing import Any, Dict, Optional
from uuid import UUID


class ReviewError(Exception):
    """Base class for review workflow errors."""

    status_code: int = 400

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.code:
            body["code"] = self.code
        return body


class NotFoundError(ReviewError):
    """Workflow, credential or identity does not exist."""

    status_code = 404


class InvalidTokenError(ReviewError):
    """Access token is missing or malformed."""

    status_code = 400


class StateConflictError(ReviewError):
    """The workflow is not in the state the operation requires."""

    status_code = 400

    def __init__(self, message: str, current_status, *, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.current_status = current_status

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["current_status"] = int(self.current_status)
        return body


class AuthorizationError(ReviewError):
    """The actor may not perform the operation."""

    status_code = 403

    def __init__(
        self,
        message: str,
        *,
        assigned_reviewer_id: Optional[UUID] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, code=code)
        self.assigned_reviewer_id = assigned_reviewer_id

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.assigned_reviewer_id is not None:
            body["assigned_reviewer_id"] = str(self.assigned_reviewer_id)
        return body


class AuthenticationError(ReviewError):
    """Login credentials were rejected."""

    status_code = 401


class CredentialExpiredError(ReviewError):
    """The external access credential is past its expiry."""

    status_code = 401


class DocumentReadOnlyError(ReviewError):
    """The document belongs to a completed workflow and cannot change."""

    status_code = 403


class ConflictError(ReviewError):
    """A unique resource already exists."""

    status_code = 409


class InvalidDocumentError(ReviewError):
    """The document reference does not name a file inside the document store."""

    status_code = 400
