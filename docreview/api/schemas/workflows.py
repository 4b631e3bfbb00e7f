from pydantic import BaseModel
from uuid import UUID


class WorkflowSummary(BaseModel):
    id: UUID
    title: str
    status: int
    internal_reviewer_name: str
    external_reviewer_email: str
    pdf_file_path: str
    pdf_file_name: str
