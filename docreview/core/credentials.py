"""External reviewer access credentials.

An external reviewer has no account. Internal approval mints a token and a
six-digit passcode for them; the token travels in a link, the passcode in
the same email. Only a hash of the passcode is stored.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any
from uuid import UUID

from sqlalchemy.orm import Session

from docreview.core.config import get_settings
from docreview.core.exceptions import (
    NotFoundError,
    InvalidTokenError,
    CredentialExpiredError,
)
from docreview.core.workflow.states import EXTERNAL_VISIBLE_STATES
from docreview.db.models import ExternalAccessCredential, Workflow

logger = logging.getLogger(__name__)

PASSCODE_DIGITS = 6


def generate_token() -> str:
    """Generate an access token: 128 random bits as 32 lowercase hex chars."""
    return secrets.token_hex(16)


def generate_passcode() -> str:
    """Generate a six-digit numeric passcode."""
    return str(secrets.randbelow(900000) + 100000)


def hash_passcode(passcode: str) -> str:
    """Hash a passcode for storage: base64 of the SHA-256 digest."""
    digest = hashlib.sha256(passcode.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class IssuedCredential:
    """A freshly minted credential. ``passcode`` exists only here."""

    token: str
    passcode: str
    credential: ExternalAccessCredential

    @property
    def expires_at(self) -> datetime:
        return self.credential.expires_at


class CredentialIssuer:
    """Mints external access credentials within the caller's transaction."""

    def __init__(self, db: Session, ttl: Optional[timedelta] = None):
        self.db = db
        if ttl is None:
            ttl = timedelta(hours=get_settings().credential_ttl_hours)
        self.ttl = ttl

    def issue(self, workflow_id: UUID, now: Optional[datetime] = None) -> IssuedCredential:
        """
        Create a credential bound to ``workflow_id``.

        The row is added to the session but not committed.
        """
        now = now or datetime.utcnow()
        token = generate_token()
        passcode = generate_passcode()

        credential = ExternalAccessCredential(
            workflow_id=workflow_id,
            token=token,
            otp_hash=hash_passcode(passcode),
            expires_at=now + self.ttl,
            used=False,
            created_at=now,
        )
        self.db.add(credential)
        self.db.flush()

        logger.info(f"Issued external access credential for workflow {workflow_id}")
        return IssuedCredential(token=token, passcode=passcode, credential=credential)


class AccessValidator:
    """Validates tokens and enforces reviewer-email scoping."""

    def __init__(self, db: Session):
        self.db = db

    def get_credential(self, token: str) -> ExternalAccessCredential:
        if not token or not token.strip():
            raise InvalidTokenError("Token is required.", code="INVALID_TOKEN")

        credential = self.db.query(ExternalAccessCredential).filter(
            ExternalAccessCredential.token == token
        ).first()
        if not credential:
            raise NotFoundError("Token not found.", code="TOKEN_NOT_FOUND")
        return credential

    @staticmethod
    def check_expiry(
        credential: ExternalAccessCredential,
        now: Optional[datetime] = None,
    ) -> ExternalAccessCredential:
        now = now or datetime.utcnow()
        if credential.expires_at < now:
            raise CredentialExpiredError("Token has expired.", code="TOKEN_EXPIRED")
        return credential

    def validate_token(self, token: str, now: Optional[datetime] = None) -> ExternalAccessCredential:
        """Return the credential for ``token`` if it exists and has not expired."""
        return self.check_expiry(self.get_credential(token), now)

    def _bound_workflow(self, credential: ExternalAccessCredential) -> Optional[Workflow]:
        return self.db.query(Workflow).filter(Workflow.id == credential.workflow_id).first()

    def resolve_workflow_for_token(
        self,
        token: str,
        workflow_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
    ) -> Workflow:
        """
        Resolve the workflow a token grants access to.

        Without ``workflow_id`` this is the workflow the token was issued
        for. With it, the requested workflow is returned only when it shares
        the bound workflow's external reviewer email.

        Raises:
            NotFoundError: Unknown token, unknown workflow, or out of scope
            CredentialExpiredError: Token past expiry
        """
        credential = self.validate_token(token, now)
        bound = self._bound_workflow(credential)
        if bound is None or not bound.external_reviewer_email:
            raise NotFoundError(
                "Workflow associated with token not found.", code="WORKFLOW_NOT_FOUND"
            )

        if workflow_id is None or workflow_id == bound.id:
            return bound

        target = self.db.query(Workflow).filter(Workflow.id == workflow_id).first()
        if target is None or target.external_reviewer_email != bound.external_reviewer_email:
            raise NotFoundError("Invalid or expired token, or workflow not found.")
        return target

    def validate_passcode(self, token: str, passcode: str, now: Optional[datetime] = None) -> bool:
        """
        Check ``passcode`` against the credential and redeem it on success.

        Returns False for unknown, used or expired credentials and for wrong
        passcodes. A passcode can be redeemed once.
        """
        now = now or datetime.utcnow()
        if not token or not passcode:
            return False

        credential = self.db.query(ExternalAccessCredential).filter(
            ExternalAccessCredential.token == token
        ).first()
        if not credential or credential.used or credential.expires_at < now:
            return False

        if not hmac.compare_digest(hash_passcode(passcode), credential.otp_hash):
            return False

        # Compare-and-set so two concurrent redemptions cannot both succeed
        updated = self.db.query(ExternalAccessCredential).filter(
            ExternalAccessCredential.id == credential.id,
            ExternalAccessCredential.used == False,  # noqa: E712
        ).update({"used": True, "used_at": now}, synchronize_session=False)
        self.db.refresh(credential)

        if updated != 1:
            return False

        logger.info(f"Passcode redeemed for workflow {credential.workflow_id}")
        return True

    def list_workflows_for_token(self, token: str, now: Optional[datetime] = None) -> List[Workflow]:
        """All workflows visible to the token's reviewer, newest first."""
        credential = self.validate_token(token, now)
        bound = self._bound_workflow(credential)
        if bound is None or not bound.external_reviewer_email:
            raise NotFoundError(
                "Workflow associated with token not found.", code="WORKFLOW_NOT_FOUND"
            )

        return self.db.query(Workflow).filter(
            Workflow.external_reviewer_email == bound.external_reviewer_email,
            Workflow.status.in_([int(s) for s in EXTERNAL_VISIBLE_STATES]),
        ).order_by(Workflow.created_at.desc()).all()

    def get_reviewer_info(self, token: str, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        """Reviewer email for a valid token, or None."""
        try:
            credential = self.validate_token(token, now)
        except (NotFoundError, InvalidTokenError, CredentialExpiredError):
            return None

        bound = self._bound_workflow(credential)
        if bound is None or not bound.external_reviewer_email:
            return None
        return {"email": bound.external_reviewer_email, "is_valid": True}
