"""Database seeding for DocReview.

Creates the default accounts used in development.
"""

from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from docreview.core.rbac.roles import UserRole
from docreview.core.security import get_password_hash
from docreview.db.models import User

# (email, full name, role, initial password)
DEFAULT_USERS: List[Tuple[str, str, UserRole, str]] = [
    ("admin@company.com", "Administrator", UserRole.ADMIN, "Admin123!"),
    ("internal1@company.com", "Internal Reviewer 1", UserRole.INTERNAL_USER, "Internal123!"),
    ("internal2@company.com", "Internal Reviewer 2", UserRole.INTERNAL_USER, "Internal123!"),
    ("external@client.com", "External Reviewer", UserRole.EXTERNAL_USER, "External123!"),
]


def seed_default_users(db: Session) -> Dict[str, User]:
    """
    Create the default accounts.

    Idempotent - existing accounts are returned unchanged.

    Returns:
        Dict mapping email to User
    """
    users = {}

    for email, full_name, role, password in DEFAULT_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            users[email] = existing
            continue

        user = User(
            email=email,
            full_name=full_name,
            role=int(role),
            password_hash=get_password_hash(password),
            is_active=True,
        )
        db.add(user)
        users[email] = user

    db.flush()
    return users


# CLI script for seeding
if __name__ == "__main__":
    import sys
    from docreview.db.session import SessionLocal

    db = SessionLocal()
    try:
        users = seed_default_users(db)
        db.commit()
        print(f"Seeded {len(users)} users:")
        for user in users.values():
            print(f"  - {user.email} ({UserRole(user.role).name})")
        print("\nSeeding complete!")

    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
