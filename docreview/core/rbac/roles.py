"""User roles and reviewer authorization rules.

Three roles exist:
1. Admin - may act on any workflow
2. InternalUser - staff reviewer, may pick up a colleague's review
3. ExternalUser - client-side account, never performs internal review
"""

from enum import Enum, IntEnum
from typing import Dict, Optional
from uuid import UUID


class UserRole(IntEnum):
    """Roles persisted on the user record as integers."""

    ADMIN = 1
    INTERNAL_USER = 2
    EXTERNAL_USER = 3


ROLE_NAMES: Dict[UserRole, str] = {
    UserRole.ADMIN: "Admin",
    UserRole.INTERNAL_USER: "InternalUser",
    UserRole.EXTERNAL_USER: "ExternalUser",
}


def role_name(value: int) -> str:
    """Display name for a stored role value."""
    try:
        return ROLE_NAMES[UserRole(value)]
    except ValueError:
        return str(value)


class ReviewerAuthorization(str, Enum):
    """Outcome of checking whether a user may approve an internal review."""

    ASSIGNED_REVIEWER = "assigned_reviewer"
    ADMIN_OVERRIDE = "admin_override"
    SAME_ROLE_REASSIGNMENT = "same_role_reassignment"
    DENIED = "denied"

    @property
    def allowed(self) -> bool:
        return self is not ReviewerAuthorization.DENIED

    @property
    def reassigns(self) -> bool:
        """Whether approving moves the assignment to the acting user."""
        return self in (
            ReviewerAuthorization.ADMIN_OVERRIDE,
            ReviewerAuthorization.SAME_ROLE_REASSIGNMENT,
        )


# Decision for actors who are not the assigned reviewer
UNASSIGNED_DECISIONS: Dict[UserRole, ReviewerAuthorization] = {
    UserRole.ADMIN: ReviewerAuthorization.ADMIN_OVERRIDE,
    UserRole.INTERNAL_USER: ReviewerAuthorization.SAME_ROLE_REASSIGNMENT,
    UserRole.EXTERNAL_USER: ReviewerAuthorization.DENIED,
}


def authorize_internal_approval(
    actor_id: UUID,
    actor_role: int,
    assigned_reviewer_id: Optional[UUID],
) -> ReviewerAuthorization:
    """
    Decide whether ``actor_id`` may approve a workflow assigned to
    ``assigned_reviewer_id``.

    The assigned reviewer is always allowed regardless of role. Unknown
    role values are denied.
    """
    if assigned_reviewer_id is not None and actor_id == assigned_reviewer_id:
        return ReviewerAuthorization.ASSIGNED_REVIEWER

    try:
        role = UserRole(actor_role)
    except ValueError:
        return ReviewerAuthorization.DENIED

    return UNASSIGNED_DECISIONS.get(role, ReviewerAuthorization.DENIED)
