"""Resolve client-supplied user and category references to stored ids."""

import uuid
from typing import Any, Iterable, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.app_exceptions import InvalidApprover, InvalidCategoryReference
from app.models.category import Category
from app.models.user import User


def parse_uuid(value: Any) -> uuid.UUID | None:
    """Parse a UUID, returning None for anything malformed."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, AttributeError):
        return None


def _find_user(db: Session, value: Any) -> User | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    user_id = parse_uuid(text)
    if user_id is not None:
        user = db.query(User).filter(User.id == user_id).first()
        if user:
            return user

    # Usernames are stored lowercase
    return db.query(User).filter(User.username == text.lower()).first()


def resolve_user_reference(db: Session, value: Any) -> uuid.UUID | None:
    """Soft resolution: id first, then username; None when unresolved."""
    user = _find_user(db, value)
    return user.id if user else None


def resolve_approver_reference(db: Session, value: Any) -> uuid.UUID:
    """Hard resolution for approvals: an unresolved approver is an error."""
    user = _find_user(db, value)
    if user is None:
        raise InvalidApprover(value)
    return user.id


def resolve_category_references(db: Session, values: Sequence[Any]) -> list[uuid.UUID]:
    """Verify every value is the id of an existing category.

    Atomic: one bad value fails the whole list. Malformed ids and empty
    strings are treated as nonexistent. Duplicates collapse, order kept.
    """
    ordered: list[uuid.UUID] = []
    missing: list[str] = []
    for value in values:
        parsed = parse_uuid(value)
        if parsed is None:
            missing.append("" if value is None else str(value))
        elif parsed not in ordered:
            ordered.append(parsed)

    if ordered:
        found = {
            row.id for row in db.query(Category.id).filter(Category.id.in_(ordered)).all()
        }
        missing.extend(str(category_id) for category_id in ordered if category_id not in found)

    if missing:
        raise InvalidCategoryReference(missing)
    return ordered


def resolve_category_names(db: Session, names: Iterable[Any]) -> tuple[list[uuid.UUID], list[str]]:
    """Bulk-import lookup: case-insensitive name first, then id.

    Returns (resolved ids, unresolved inputs) instead of raising so the
    caller can report the row.
    """
    resolved: list[uuid.UUID] = []
    unresolved: list[str] = []
    for raw in names:
        name = str(raw).strip() if raw is not None else ""
        if not name:
            continue

        category = db.query(Category).filter(func.lower(Category.name) == name.lower()).first()
        if category is None:
            category_id = parse_uuid(name)
            if category_id is not None:
                category = db.query(Category).filter(Category.id == category_id).first()

        if category is None:
            unresolved.append(name)
        elif category.id not in resolved:
            resolved.append(category.id)

    return resolved, unresolved


def load_categories(db: Session, ids: Sequence[uuid.UUID]) -> list[Category]:
    if not ids:
        return []
    return db.query(Category).filter(Category.id.in_(list(ids))).all()
