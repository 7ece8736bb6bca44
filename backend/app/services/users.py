"""User accounts: CRUD and password login."""

from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.app_exceptions import AuthError, DuplicateConflict, NotFoundError
from app.core.logging import get_logger
from app.core.security import hash_password, verify_password
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate
from app.services.questions.resolver import parse_uuid

logger = get_logger(__name__)

DUPLICATE_USER = "User with this email or username already exists"


def _ensure_unique(
    db: Session, username: str | None, email: str | None, exclude_id: Any = None
) -> None:
    clauses = []
    if username:
        clauses.append(User.username == username)
    if email:
        clauses.append(User.email == email)
    if not clauses:
        return

    query = db.query(User).filter(or_(*clauses))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise DuplicateConflict(DUPLICATE_USER)


def get_user(db: Session, user_id: Any) -> User:
    parsed = parse_uuid(user_id)
    user = None
    if parsed is not None:
        user = db.query(User).filter(User.id == parsed).first()
    if not user:
        raise NotFoundError("User not found", {"id": str(user_id)})
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def create_user(db: Session, user_data: UserCreate) -> User:
    username = user_data.username.strip().lower()
    email = user_data.email.strip().lower()
    _ensure_unique(db, username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(user_data.password),
        role=user_data.role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_created", extra={"user_id": str(user.id), "role": user.role})
    return user


def update_user(db: Session, user_id: Any, user_data: UserUpdate) -> User:
    user = get_user(db, user_id)
    update_dict = user_data.model_dump(exclude_unset=True, exclude_none=True)

    username = update_dict.get("username")
    email = update_dict.get("email")
    if username is not None:
        username = username.strip().lower()
    if email is not None:
        email = email.strip().lower()
    _ensure_unique(db, username, email, exclude_id=user.id)

    if username is not None:
        user.username = username
    if email is not None:
        user.email = email
    if "password" in update_dict:
        user.password_hash = hash_password(update_dict["password"])
    if "role" in update_dict:
        user.role = update_dict["role"].value

    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: Any) -> User:
    """Delete a user. Questions keep their (now dangling) created_by/approved_by ids."""
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("user_deleted", extra={"user_id": str(user.id)})
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == email.strip().lower()).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthError("Invalid email or password")
    return user
