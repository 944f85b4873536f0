"""
Shared test fixtures.

The app runs against an in-memory SQLite database and an in-memory object
store that tracks which keys are live.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["ADMIN_EMAILS"] = "admin@labhub.dev,second-admin@labhub.dev"
os.environ["AUTH_CALLBACK_SECRET"] = "callback-secret"
os.environ["ENVIRONMENT"] = "test"

import itertools
from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from labhub.application.services.auth_service import create_access_token
from labhub.core.exceptions import StorageError
from labhub.domain.models.user import User, UserRole
from labhub.domain.storage import UploadedFile
from labhub.infrastructure.database import Base, get_db
from labhub.infrastructure.storage import get_storage_gateway
from labhub.main import create_app

BUCKET_URL = "https://test-bucket.s3.amazonaws.com/"


class FakeStorage:
    """In-memory stand-in for the S3 gateway."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.fail_uploads_after: Optional[int] = None
        self.fail_deletes = False
        self._counter = itertools.count(1)
        self.upload_calls = 0

    @property
    def live_keys(self) -> set[str]:
        return set(self.objects)

    def upload(self, file: UploadedFile, key_prefix: str) -> str:
        self.upload_calls += 1
        if self.fail_uploads or (
            self.fail_uploads_after is not None and self.upload_calls > self.fail_uploads_after
        ):
            raise StorageError("Failed to upload file")
        key = f"{key_prefix}-{next(self._counter)}-{file.name}"
        self.objects[key] = file.data
        return BUCKET_URL + key

    def key_from_url(self, url):
        if not url:
            return None
        return url[len(BUCKET_URL):] if url.startswith(BUCKET_URL) else url

    def delete(self, url) -> None:
        key = self.key_from_url(url)
        if not key:
            return
        if self.fail_deletes:
            raise StorageError("Failed to delete file")
        self.objects.pop(key, None)
        self.deleted.append(key)

    def signed_read_url(self, key, ttl_seconds: int = 3600):
        if not key:
            return None
        return f"https://signed.test/{key}?expires={ttl_seconds}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def app(session_factory, storage):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage_gateway] = lambda: storage
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: UserRole = UserRole.USER, name: str = "Test User") -> User:
        user = User(email=email, name=name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin@labhub.dev", UserRole.ADMIN, name="Ada Admin")


@pytest.fixture
def other_admin(make_user) -> User:
    return make_user("second-admin@labhub.dev", UserRole.ADMIN, name="Grace Admin")


@pytest.fixture
def member(make_user) -> User:
    return make_user("member@labhub.dev", UserRole.USER, name="Max Member")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def lab_form() -> dict[str, str]:
    return {
        "title": "Intro to SQL",
        "duration": "45",
        "description": "Query relational data with SELECT and JOIN.",
        "audience": "Analysts new to databases",
        "prerequisites": "Basic spreadsheet skills",
        "difficulty": "BEGINNER",
        "objectives": '["a", "b"]',
        "coveredTopics": '["SELECT", "JOIN"]',
        "steps": '{"setup": ["Open the notebook", "Connect to the database"]}',
    }


def image(name: str = "before.png", data: bytes = b"\x89PNG-fake") -> tuple:
    return (name, data, "image/png")


@pytest.fixture
def png():
    return image
