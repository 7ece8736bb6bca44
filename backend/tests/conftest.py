"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; pin a harmless environment first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.core.app_exceptions import MediaUploadError  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.media import get_media_store  # noqa: E402
from tests.helpers.seed import create_test_admin, create_test_user  # noqa: E402


class FakeMediaStore:
    """Records uploads and hands back predictable URLs."""

    def __init__(self) -> None:
        self.uploads: list[tuple[str, bytes]] = []
        self.fail_on_call: int | None = None

    def upload(self, data: bytes, folder: str) -> str:
        call_number = len(self.uploads) + 1
        if self.fail_on_call is not None and call_number == self.fail_on_call:
            raise MediaUploadError("Image upload failed", {"folder": folder})
        self.uploads.append((folder, data))
        return f"https://media.test/{folder}/{call_number}.png"

    @property
    def folders(self) -> list[str]:
        return [folder for folder, _ in self.uploads]


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    """A private in-memory database per test, schema created up front."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine: Engine) -> Generator[Session, None, None]:
    """Session with the same settings as SessionLocal; commits are safe to call."""
    session = Session(bind=engine, autoflush=False, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_media_store() -> FakeMediaStore:
    return FakeMediaStore()


@pytest.fixture
def client(db: Session, fake_media_store: FakeMediaStore) -> Generator[TestClient, None, None]:
    """TestClient wired to the test session and the fake media store."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_store] = lambda: fake_media_store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db: Session) -> User:
    admin = create_test_admin(db, username="admin")
    db.commit()
    return admin


@pytest.fixture
def regular_user(db: Session) -> User:
    user = create_test_user(db, username="alice")
    db.commit()
    return user


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return {"X-User-Id": str(admin_user.id)}
