import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, ForeignKey, Uuid
from sqlalchemy.orm import relationship

from docreview.db.base import Base


class WorkflowStamp(Base):
    """Approval stamp recorded against a workflow.

    ``user_id`` is empty for stamps placed by anonymous external reviewers.
    """
    __tablename__ = "workflow_stamps"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workflow_id = Column(Uuid(as_uuid=True), ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    label = Column(String(255), nullable=False)
    page_number = Column(Integer, nullable=False, default=1)
    x = Column(Float, nullable=False, default=0.0)
    y = Column(Float, nullable=False, default=0.0)
    applied_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    workflow = relationship("Workflow", back_populates="stamps")
    user = relationship("User")
