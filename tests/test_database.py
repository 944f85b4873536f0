"""Tests for database timeouts: engine options and the 504 mapping."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError, TimeoutError as DatabaseTimeoutError

from labhub.infrastructure import database
from labhub.infrastructure.database import build_engine, get_db, postgres_timeouts


class DriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


class FailingSession:
    """Session stand-in whose every query raises the given error."""

    def __init__(self, error):
        self.error = error

    def query(self, *args, **kwargs):
        raise self.error

    def get(self, *args, **kwargs):
        raise self.error

    def close(self):
        pass


def client_with_failing_db(app, error) -> TestClient:
    def override_get_db():
        yield FailingSession(error)

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app, raise_server_exceptions=False)


class TestEngineOptions:
    def test_postgres_gets_connect_and_statement_timeouts(self, monkeypatch):
        captured = {}
        monkeypatch.setattr(database, "create_engine", lambda url, **kw: captured.update(kw))

        build_engine("postgresql+psycopg2://labhub:secret@db:5432/labhub_db")

        assert captured["pool_timeout"] == database.settings.DB_TIMEOUT_SECONDS
        assert captured["connect_args"] == postgres_timeouts(database.settings.DB_TIMEOUT_SECONDS)

    def test_timeouts_in_seconds_and_milliseconds(self):
        assert postgres_timeouts(10) == {
            "connect_timeout": 10,
            "options": "-c statement_timeout=10000",
        }

    def test_sqlite_skips_postgres_options(self, monkeypatch):
        captured = {}
        monkeypatch.setattr(database, "create_engine", lambda url, **kw: captured.update(kw))

        build_engine("sqlite://")

        assert captured == {"connect_args": {"check_same_thread": False}}


class TestTimeoutResponses:
    def test_pool_timeout_is_504(self, app):
        client = client_with_failing_db(app, DatabaseTimeoutError("QueuePool limit reached"))

        response = client.get("/api/labs")

        assert response.status_code == 504
        error = response.json()["error"]
        assert error["code"] == "DependencyTimeoutError"
        assert error["details"] == {"dependency": "database"}

    def test_cancelled_statement_is_504(self, app):
        cancelled = DriverError("canceling statement due to statement timeout", pgcode="57014")
        client = client_with_failing_db(app, OperationalError("SELECT 1", {}, cancelled))

        response = client.get("/api/labs/some-id")

        assert response.status_code == 504
        assert response.json()["error"]["code"] == "DependencyTimeoutError"

    def test_connect_timeout_is_504(self, app):
        client = client_with_failing_db(app, OperationalError(None, None, DriverError("timeout expired")))

        response = client.get("/api/labs")

        assert response.status_code == 504

    @pytest.mark.parametrize("pgcode", [None, "08006"])
    def test_other_operational_errors_are_generic_500(self, app, pgcode):
        lost = DriverError("server closed the connection unexpectedly", pgcode=pgcode)
        client = client_with_failing_db(app, OperationalError("SELECT 1", {}, lost))

        response = client.get("/api/labs")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "InternalServerError"
        assert "server closed" not in response.text
