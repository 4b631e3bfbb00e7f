"""Pytest configuration and shared fixtures.

Every test gets a fresh in-memory SQLite schema. The FastAPI client shares
the test's session so API calls and assertions see the same data.
"""

import os

# Must be set before docreview modules read settings at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["SECRET_KEY"] = "test-secret-key"

from typing import List, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from docreview.core.security import create_access_token
from docreview.db.base import Base
import docreview.db.models  # noqa: F401
from docreview.services.documents import FilesystemDocumentStore
from tests.factories import create_user, create_workflow, create_credential


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    """A session on a clean schema."""
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_factory(db_session):
    def _create(**kwargs):
        return create_user(db_session, **kwargs)
    return _create


@pytest.fixture()
def workflow_factory(db_session):
    def _create(**kwargs):
        return create_workflow(db_session, **kwargs)
    return _create


@pytest.fixture()
def credential_factory(db_session):
    def _create(**kwargs):
        return create_credential(db_session, **kwargs)
    return _create


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class RecordingNotifier:
    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        self.sent.append((to_email, subject, html_body))


class FailingNotifier:
    def send(self, to_email: str, subject: str, html_body: str) -> None:
        raise ConnectionError("SMTP server unreachable")


class RecordingRenderer:
    def __init__(self):
        self.calls = []

    def apply_stamp(self, document_ref, label, page_number, x, y) -> None:
        self.calls.append((document_ref, label, page_number, x, y))


class FailingRenderer:
    def apply_stamp(self, document_ref, label, page_number, x, y) -> None:
        raise FileNotFoundError(document_ref)


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def renderer():
    return RecordingRenderer()


@pytest.fixture()
def document_store(tmp_path):
    return FilesystemDocumentStore(str(tmp_path / "uploads"))


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest.fixture()
def client(db_session, notifier, renderer, document_store):
    from docreview.api import deps
    from docreview.api.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_notifier] = lambda: notifier
    app.dependency_overrides[deps.get_renderer] = lambda: renderer
    app.dependency_overrides[deps.get_document_store] = lambda: document_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
