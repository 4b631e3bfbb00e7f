import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Uuid
from sqlalchemy.orm import relationship

from docreview.db.base import Base
from docreview.core.rbac.roles import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Integer, nullable=False, default=int(UserRole.INTERNAL_USER))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    assigned_workflows = relationship(
        "Workflow",
        back_populates="internal_reviewer",
        foreign_keys="Workflow.internal_reviewer_id",
    )
    created_workflows = relationship(
        "Workflow",
        back_populates="created_by",
        foreign_keys="Workflow.created_by_user_id",
    )

    @property
    def user_role(self) -> UserRole:
        return UserRole(self.role)
