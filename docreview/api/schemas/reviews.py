from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List

from docreview.core.review.results import StampSpec, ApprovalResult


class StampRequest(BaseModel):
    label: str = Field(..., min_length=1, max_length=255)
    page_number: int = Field(1, ge=1)
    x: float = 0.0
    y: float = 0.0

    def to_spec(self) -> StampSpec:
        return StampSpec(label=self.label, page_number=self.page_number, x=self.x, y=self.y)


class InternalApprovalRequest(BaseModel):
    workflow_id: UUID
    stamp: Optional[StampRequest] = None


class ExternalApprovalRequest(BaseModel):
    token: Optional[str] = None
    workflow_id: Optional[UUID] = None
    stamp: Optional[StampRequest] = None


class OtpValidationRequest(BaseModel):
    token: str
    otp: str


class ExternalUserInfo(BaseModel):
    email: str
    is_valid: bool


class ApprovalResponse(BaseModel):
    message: str
    workflow_id: UUID
    status: int
    failed_effects: List[str] = []

    @classmethod
    def from_result(cls, result: ApprovalResult) -> "ApprovalResponse":
        return cls(
            message="Workflow approved successfully.",
            workflow_id=result.workflow_id,
            status=int(result.status),
            failed_effects=[f.effect for f in result.failed_effects],
        )
