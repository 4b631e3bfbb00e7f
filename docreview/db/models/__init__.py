"""Database models for DocReview."""

from docreview.db.models.user import User
from docreview.db.models.workflow import Workflow
from docreview.db.models.credential import ExternalAccessCredential
from docreview.db.models.stamp import WorkflowStamp

__all__ = [
    "User",
    "Workflow",
    "ExternalAccessCredential",
    "WorkflowStamp",
]
