"""Role-based access control for DocReview."""

from .roles import (
    UserRole,
    ROLE_NAMES,
    ReviewerAuthorization,
    authorize_internal_approval,
    role_name,
)
from .checker import has_role, require_role

__all__ = [
    "UserRole",
    "ROLE_NAMES",
    "ReviewerAuthorization",
    "authorize_internal_approval",
    "role_name",
    "has_role",
    "require_role",
]
