"""Internal and external approval orchestration."""

from .results import StampSpec, EffectFailure, ApprovalResult
from .internal import InternalReviewService
from .external import ExternalReviewService

__all__ = [
    "StampSpec",
    "EffectFailure",
    "ApprovalResult",
    "InternalReviewService",
    "ExternalReviewService",
]
