"""Review workflow model."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship, validates

from docreview.db.base import Base
from docreview.core.workflow.states import WorkflowStatus


class Workflow(Base):
    """A document moving through internal then external review."""
    __tablename__ = "workflows"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    document_path = Column(String(1024), nullable=False, index=True)
    created_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    internal_reviewer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    external_reviewer_email = Column(String(255), nullable=False, index=True)
    status = Column(
        Integer,
        nullable=False,
        default=int(WorkflowStatus.PENDING_INTERNAL_REVIEW),
        index=True,
    )
    internal_approved_at = Column(DateTime, nullable=True)
    external_approved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    created_by = relationship(
        "User", back_populates="created_workflows", foreign_keys=[created_by_user_id]
    )
    internal_reviewer = relationship(
        "User", back_populates="assigned_workflows", foreign_keys=[internal_reviewer_id]
    )
    stamps = relationship(
        "WorkflowStamp",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="WorkflowStamp.applied_at",
    )
    external_accesses = relationship(
        "ExternalAccessCredential",
        back_populates="workflow",
        cascade="all, delete-orphan",
    )

    @validates("external_reviewer_email")
    def _freeze_external_email(self, key, value):
        # Bound at creation; credentials are scoped to it
        current = self.__dict__.get(key)
        if current is not None and current != value:
            raise ValueError("external_reviewer_email cannot be changed once set")
        return value

    @property
    def workflow_status(self) -> WorkflowStatus:
        return WorkflowStatus(self.status)

    def __repr__(self) -> str:
        return f"<Workflow {self.id} status={self.status}>"
