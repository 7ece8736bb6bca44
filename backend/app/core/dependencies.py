"""FastAPI dependencies for caller identification and authorization."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

# Error handling is done via HTTPException which uses the global error handler
from app.core.app_exceptions import AuthError
from app.db.session import get_db
from app.models.user import User, UserRole


def _lookup_user(db: Session, user_id: str) -> User | None:
    try:
        parsed = UUID(user_id.strip())
    except ValueError:
        return None
    return db.query(User).filter(User.id == parsed).first()


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    db: Session = Depends(get_db),
) -> User:
    """Dependency to get the calling user from the X-User-Id header."""
    if not x_user_id:
        raise AuthError("User ID required in X-User-Id header")

    user = _lookup_user(db, x_user_id)
    if not user:
        raise AuthError("User not found")

    return user


def require_roles(*allowed_roles: UserRole):
    """Dependency factory to require specific roles."""

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        try:
            user_role = UserRole(current_user.role)
        except ValueError:
            user_role = None
        if user_role not in allowed_roles:
            if allowed_roles == (UserRole.ADMIN,):
                detail = "Admin access required"
            else:
                detail = f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return current_user

    return role_checker


# Shorthand used by write endpoints
require_admin = require_roles(UserRole.ADMIN)
