"""User accounts: creation, lookup and password login."""

import logging
from typing import Optional, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from docreview.core.exceptions import ConflictError, AuthenticationError
from docreview.core.rbac.roles import UserRole
from docreview.core.security import get_password_hash, verify_password
from docreview.db.models import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def create_user(
        self,
        email: str,
        full_name: str,
        password: str,
        role: UserRole,
    ) -> User:
        """
        Create a user account.

        Raises:
            ConflictError: If the email is already registered
        """
        email = email.strip().lower()
        if self.get_by_email(email):
            raise ConflictError("User with this email already exists.")

        user = User(
            email=email,
            full_name=full_name,
            password_hash=get_password_hash(password),
            role=int(role),
            is_active=True,
        )
        self.db.add(user)
        self.db.flush()
        logger.info(f"Created user {user.id} ({email}) with role {UserRole(role).name}")
        return user

    def get_by_id(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(
            func.lower(User.email) == email.strip().lower()
        ).first()

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.full_name).all()

    def list_internal_users(self) -> List[User]:
        """Active users that may be assigned an internal review."""
        return self.db.query(User).filter(
            User.role == int(UserRole.INTERNAL_USER),
            User.is_active == True,  # noqa: E712
        ).order_by(User.full_name).all()

    def authenticate(self, email: str, password: str) -> User:
        """
        Raises:
            AuthenticationError: Unknown email, wrong password or inactive account
        """
        user = self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password.")
        if not user.is_active:
            raise AuthenticationError("User account is inactive.")
        return user
