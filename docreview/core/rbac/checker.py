"""Role checking utilities for DocReview.

Provides a decorator for restricting endpoints to a set of roles.
"""

from functools import wraps
from typing import Callable

from fastapi import HTTPException, status

from .roles import UserRole, ROLE_NAMES


def has_role(user, *roles: UserRole) -> bool:
    """Check if a user holds one of the given roles."""
    if not user or user.role is None:
        return False
    return user.role in {int(r) for r in roles}


def require_role(*roles: UserRole):
    """
    Decorator factory for FastAPI endpoints restricted to specific roles.

    Usage:
        @router.get("/admin/users")
        @require_role(UserRole.ADMIN)
        async def list_users(current_user: User = Depends(get_current_user)):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            # Find the current_user in kwargs (injected by FastAPI Depends)
            current_user = kwargs.get("current_user")
            if not current_user:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required"
                )

            if not has_role(current_user, *roles):
                required = ", ".join(ROLE_NAMES[UserRole(r)] for r in roles)
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Insufficient role. Required: {required}"
                )

            return await func(*args, **kwargs)

        return wrapper
    return decorator
