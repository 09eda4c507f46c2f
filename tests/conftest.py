"""Shared test fixtures.

The Cassandra session double hands out one distinct prepared statement per
``prepare()`` call and answers ``aexecute()`` through per-statement
handlers, so tests can script LWT outcomes (``was_applied``) per query.
"""

import os
import tempfile
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="edustore-logs-"))


class FakeResult:
    """Minimal ResultSet: rows plus the LWT ``was_applied`` flag."""

    def __init__(self, rows=None, applied: bool = True):
        self._rows = list(rows or [])
        self.was_applied = applied

    def one(self):
        return self._rows[0] if self._rows else None

    def all(self):
        return list(self._rows)

    def __iter__(self):
        return iter(self._rows)


class FakeSession:
    """Cassandra session double."""

    def __init__(self):
        self.handlers = {}
        self.prepare = Mock(side_effect=self._prepare)
        self.aexecute = AsyncMock(side_effect=self._execute)

    @staticmethod
    def _prepare(cql: str):
        statement = Mock(name="prepared_statement")
        statement.cql = " ".join(cql.split())
        return statement

    @staticmethod
    def result(rows=None, applied: bool = True) -> FakeResult:
        """Build a result set."""
        return FakeResult(rows, applied)

    def on(self, statement, response) -> None:
        """Answer ``statement`` with a FakeResult or ``callable(params)``."""
        self.handlers[statement] = response

    async def _execute(self, statement, params=None):
        response = self.handlers.get(statement)
        if response is None:
            return FakeResult()
        if isinstance(response, FakeResult):
            return response
        return response(params)

    def calls_to(self, statement) -> list:
        """Parameters of every execution of ``statement``."""
        return [
            c.args[1] if len(c.args) > 1 else None
            for c in self.aexecute.call_args_list
            if c.args and c.args[0] is statement
        ]


@pytest.fixture
def fake_session() -> FakeSession:
    """Scriptable Cassandra session."""
    return FakeSession()


@pytest.fixture
def mock_redis():
    """Mock Redis client (no cached values)."""
    redis_mock = AsyncMock()
    redis_mock.get = AsyncMock(return_value=None)
    return redis_mock


# ==============================================================================
# Row factories
# ==============================================================================


@pytest.fixture
def make_item_row():
    """Build a catalog_items row."""

    def _make(item_id=None, item_type="course", price="499", **overrides):
        row = {
            "item_type": item_type,
            "item_id": item_id or uuid4(),
            "title": "Quantitative Aptitude",
            "price": Decimal(price),
            "is_active": True,
            "content_tree": None,
            "created_at": datetime(2024, 1, 1),
            "updated_at": datetime(2024, 1, 1),
        }
        row.update(overrides)
        return SimpleNamespace(**row)

    return _make


@pytest.fixture
def make_leaf_row():
    """Build a catalog_leaves row."""

    def _make(item_id=None, leaf_id=None, kind="video", **overrides):
        row = {
            "item_id": item_id or uuid4(),
            "leaf_id": leaf_id or uuid4(),
            "kind": kind,
            "title": "Lesson",
            "position": 0,
            "is_free": False,
            "is_preview": False,
            "is_active": True,
            "payload": "playback-full",
            "preview_payload": None,
        }
        row.update(overrides)
        return SimpleNamespace(**row)

    return _make


@pytest.fixture
def make_order_row():
    """Build an orders row."""

    def _make(order_id=None, user_id=None, items=None, **overrides):
        row = {
            "order_id": order_id or uuid4(),
            "user_id": user_id or uuid4(),
            "items": items if items is not None else [("course", uuid4(), Decimal(499))],
            "amount": Decimal(499),
            "payment_method": "manual_transfer",
            "status": "pending",
            "payment_evidence": None,
            "evidence_submitted_at": None,
            "gateway_order_id": None,
            "gateway_payment_id": None,
            "approved_by": None,
            "approved_at": None,
            "rejected_by": None,
            "rejected_at": None,
            "rejection_reason": None,
            "created_at": datetime(2024, 1, 1, tzinfo=UTC),
            "updated_at": datetime(2024, 1, 1, tzinfo=UTC),
        }
        row.update(overrides)
        return SimpleNamespace(**row)

    return _make


@pytest.fixture
def make_slot_row():
    """Build an order_slots row."""

    def _make(user_id=None, item_id=None, item_type="course", status="approved", **overrides):
        row = {
            "user_id": user_id or uuid4(),
            "item_type": item_type,
            "item_id": item_id or uuid4(),
            "order_id": uuid4(),
            "status": status,
            "approved_at": datetime(2024, 1, 2) if status == "approved" else None,
            "created_at": datetime(2024, 1, 1),
        }
        row.update(overrides)
        return SimpleNamespace(**row)

    return _make


@pytest.fixture
def make_progress_row():
    """Build a progress_records row."""

    def _make(user_id=None, course_id=None, completed=(), version=0, progress=0, **overrides):
        row = {
            "user_id": user_id or uuid4(),
            "course_id": course_id or uuid4(),
            "order_id": uuid4(),
            "progress": progress,
            "completed_leaves": set(completed) or None,
            "purchase_date": datetime(2024, 1, 2),
            "last_accessed": None,
            "version": version,
        }
        row.update(overrides)
        return SimpleNamespace(**row)

    return _make


# ==============================================================================
# HTTP
# ==============================================================================


@pytest.fixture
def app():
    """Application without lifespan (services are set per test)."""
    from edustore.main import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Test client; not used as a context manager so no database is opened."""
    from fastapi.testclient import TestClient

    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a role."""
    from edustore.auth.security import create_access_token

    def _make(role: str = "student", user_id=None):
        token = create_access_token(
            {"sub": str(user_id or uuid4()), "email": f"{role}@example.com", "role": role}
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
