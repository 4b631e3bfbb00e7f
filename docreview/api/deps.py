from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from docreview.core.config import get_settings
from docreview.core.exceptions import ReviewError
from docreview.core.rbac.roles import UserRole
from docreview.core.security import decode_token
from docreview.db.models import User
from docreview.db.session import SessionLocal
from docreview.services.documents import FilesystemDocumentStore
from docreview.services.notifications import Notifier, get_notifier as build_notifier
from docreview.services.stamping import PdfStampRenderer

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    db: Session = Depends(get_db),
    token: str = Depends(oauth2_scheme),
) -> User:
    """Get current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not token:
        raise credentials_exception

    payload = decode_token(token)
    if not payload:
        raise credentials_exception

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise credentials_exception
    return user


def get_external_user(current_user: User = Depends(get_current_user)) -> User:
    """Authenticated user holding the ExternalUser role."""
    if current_user.role != int(UserRole.EXTERNAL_USER):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient role. Required: ExternalUser",
        )
    return current_user


def get_notifier() -> Notifier:
    return build_notifier(get_settings())


def get_document_store() -> FilesystemDocumentStore:
    return FilesystemDocumentStore(get_settings().uploads_dir)


def get_renderer(store: FilesystemDocumentStore = Depends(get_document_store)) -> PdfStampRenderer:
    return PdfStampRenderer(store)


def http_error(e: ReviewError) -> HTTPException:
    """Translate a domain error into the HTTP response it maps to."""
    return HTTPException(status_code=e.status_code, detail=e.to_dict())
