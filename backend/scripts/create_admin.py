#!/usr/bin/env python3
"""Script to create the first admin user.

Every user-management endpoint is admin-only, so a fresh database needs one
admin created out of band. Run after `pip install -e .`.
"""

import argparse
import sys

from app.core.logging import get_logger, setup_logging
from app.core.security import hash_password
from app.db.base import Base
from app.db.engine import engine
from app.db.session import SessionLocal
from app.models import User, UserRole

logger = get_logger(__name__)


def create_admin_user(
    username: str = "admin",
    email: str = "admin@example.com",
    password: str = "Admin123!",
) -> User:
    """Create an admin user, or promote an existing account with the same email/username."""
    Base.metadata.create_all(bind=engine)

    username = username.strip().lower()
    email = email.strip().lower()

    db = SessionLocal()
    try:
        existing_user = (
            db.query(User).filter((User.email == email) | (User.username == username)).first()
        )
        if existing_user:
            if existing_user.role != UserRole.ADMIN.value:
                existing_user.role = UserRole.ADMIN.value
                existing_user.password_hash = hash_password(password)
                db.commit()
                logger.info("admin_promoted", extra={"user_id": str(existing_user.id)})
            else:
                logger.info("admin_exists", extra={"user_id": str(existing_user.id)})
            return existing_user

        admin = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN.value,
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)
        logger.info("admin_created", extra={"user_id": str(admin.id)})
        return admin
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an admin user")
    parser.add_argument("--username", default="admin", help="Admin username (default: admin)")
    parser.add_argument(
        "--email", default="admin@example.com", help="Admin email (default: admin@example.com)"
    )
    parser.add_argument("--password", default="Admin123!", help="Admin password")
    args = parser.parse_args()

    setup_logging()
    try:
        admin = create_admin_user(args.username, args.email, args.password)
    except Exception as e:
        logger.error("admin_create_failed", extra={"error": str(e)}, exc_info=True)
        sys.exit(1)

    # Callers need the id for the X-User-Id header
    print(f"Admin user ready: {admin.username} <{admin.email}> id={admin.id}")


if __name__ == "__main__":
    main()
