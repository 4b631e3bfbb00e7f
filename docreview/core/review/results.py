"""Value objects passed into and out of the review orchestrators."""

from dataclasses import dataclass, field
from typing import Optional, List
from uuid import UUID

from docreview.core.credentials import IssuedCredential
from docreview.core.workflow.states import WorkflowStatus


@dataclass(frozen=True)
class StampSpec:
    """Where and what to stamp. Coordinates are top-left-origin points."""

    label: str
    page_number: int = 1
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class EffectFailure:
    """A best-effort side effect that failed after the transition committed."""

    effect: str
    error: str


@dataclass
class ApprovalResult:
    workflow_id: UUID
    status: WorkflowStatus
    stamp_id: Optional[UUID] = None
    credential: Optional[IssuedCredential] = None
    reassigned_to: Optional[UUID] = None
    failed_effects: List[EffectFailure] = field(default_factory=list)
