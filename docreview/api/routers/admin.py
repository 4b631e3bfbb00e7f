from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from docreview.api.deps import get_db, get_current_user, http_error
from docreview.api.schemas.auth import UserCreate, UserResponse
from docreview.core.exceptions import ConflictError
from docreview.core.rbac import UserRole, require_role
from docreview.db.models import User
from docreview.services.users import UserService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@require_role(UserRole.ADMIN)
async def create_user(
    user_in: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create a user account (admin only)."""
    try:
        user = UserService(db).create_user(
            email=user_in.email,
            full_name=user_in.full_name,
            password=user_in.password,
            role=user_in.role,
        )
        db.commit()
    except ConflictError as e:
        db.rollback()
        raise http_error(e)

    db.refresh(user)
    return user


@router.get("/users", response_model=List[UserResponse])
@require_role(UserRole.ADMIN)
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List all user accounts (admin only)."""
    return UserService(db).list_users()


@router.get("/users/internal", response_model=List[UserResponse])
def list_internal_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Users that can be picked as internal reviewer."""
    return UserService(db).list_internal_users()
