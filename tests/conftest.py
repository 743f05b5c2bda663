"""
Shared pytest fixtures for all test modules.

Uses an in-memory SQLite database (StaticPool) so every test
function gets a clean, isolated database — no disk I/O, no state leakage.
External collaborators (identity provider, payment gateway) are replaced
with mocks through FastAPI dependency overrides.
"""
import pytest
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from payment_relay import models
from payment_relay.database import Base, get_db
from payment_relay.dependencies import get_gateway, get_identity_client
from payment_relay.main import create_app
from tests.helpers import make_settings, mock_gateway, mock_identity_client


# ---------------------------------------------------------------------------
# In-memory database engine shared across all fixtures in a test session.
# StaticPool forces all SQLAlchemy connections to reuse the same underlying
# sqlite3 connection, which is required for in-memory SQLite.
# ---------------------------------------------------------------------------
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)


@pytest.fixture(autouse=True)
def reset_db():
    """Drop and recreate all tables before each test for full isolation."""
    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db(reset_db):
    """Yield a SQLAlchemy session backed by the in-memory test database."""
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


class AppHarness:
    """A test application plus handles to the mocks wired into it."""

    def __init__(self, app, client, identity, gateway):
        self.app = app
        self.client = client
        self.identity = identity
        self.gateway = gateway


def _build_harness(db, settings, gateway=None) -> AppHarness:
    app = create_app(settings)
    identity = mock_identity_client(error="identity provider unavailable")

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_client] = lambda: identity
    app.dependency_overrides[get_gateway] = lambda: gateway
    # The TestClient is NOT used as a context manager so the lifespan hook
    # (which creates tables on the on-disk DB) is skipped.
    return AppHarness(app, TestClient(app), identity, gateway)


@pytest.fixture
def custom_app(db):
    """UPI-intent variant: no gateway, gateway-only routes not mounted."""
    harness = _build_harness(db, make_settings("custom"))
    yield harness
    harness.app.dependency_overrides.clear()


@pytest.fixture
def gateway_app(db):
    """Hosted-checkout variant backed by a mocked gateway."""
    harness = _build_harness(db, make_settings("gateway"), gateway=mock_gateway())
    yield harness
    harness.app.dependency_overrides.clear()


@pytest.fixture
def client(custom_app):
    return custom_app.client


@pytest.fixture
def make_txn(db):
    """Factory fixture that inserts a transaction row directly."""

    def _make(
        order_id: str,
        user_id: str = "user_001",
        amount: float = 5000.0,
        metal_type: str = "gold",
        status: str = models.STATUS_PENDING,
        payment_method: str = models.DEFAULT_PAYMENT_METHOD,
        payment_id: Optional[str] = None,
        created_at: Optional[datetime] = None,   # defaults to 1 hour ago
    ) -> models.Transaction:
        if created_at is None:
            created_at = datetime.now(timezone.utc) - timedelta(hours=1)
        txn = models.Transaction(
            order_id=order_id,
            user_id=user_id,
            amount=amount,
            metal_type=metal_type,
            status=status,
            payment_method=payment_method,
            payment_id=payment_id,
            created_at=created_at,
        )
        db.add(txn)
        db.commit()
        db.refresh(txn)
        return txn

    return _make
