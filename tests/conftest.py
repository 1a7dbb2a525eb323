"""
Test configuration and fixtures for ClaimDesk backend tests.
"""

import os

# Keep the app's own engine off disk; tests use the engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from main import app
from claimdesk.db.base import Base
from claimdesk.db.session import get_db
from claimdesk.core.security import create_access_token
from claimdesk.services import (
    CUSTOMER,
    POLICY,
    AggregationService,
    ClaimLifecycle,
    EntityStore,
)


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def customer_data(**overrides) -> dict:
    """Valid customer fields."""
    data = {
        "first_name": "Amal",
        "last_name": "B",
        "email": "a@b.com",
        "address": "x",
        "phone": "1",
    }
    data.update(overrides)
    return data


def claim_data(policy_id: int, **overrides) -> dict:
    """Valid claim fields."""
    data = {
        "date": "2024-01-05",
        "description": "fender",
        "claimed_amount": 500,
        "policy_id": policy_id,
    }
    data.update(overrides)
    return data


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def store(db: Session) -> EntityStore:
    return EntityStore(db)


@pytest.fixture
def lifecycle(store: EntityStore) -> ClaimLifecycle:
    return ClaimLifecycle(store)


@pytest.fixture
def aggregation(store: EntityStore) -> AggregationService:
    return AggregationService(store)


@pytest.fixture
def test_customer(store: EntityStore):
    """Create a test customer."""
    return store.create(CUSTOMER, customer_data())


@pytest.fixture
def test_policy(store: EntityStore, test_customer):
    """Create a test auto policy."""
    return store.create(
        POLICY,
        {"type": "auto", "coverage_amount": 10000, "customer_id": test_customer.id},
    )


@pytest.fixture
def test_claim(lifecycle: ClaimLifecycle, test_policy):
    """Create a pending test claim."""
    return lifecycle.submit(claim_data(test_policy.id))


@pytest.fixture
def agent_token() -> str:
    """Token for a back-office agent, as issued by the upstream login service."""
    return create_access_token(data={"sub": "agent-42"})


@pytest.fixture
def agent_headers(agent_token: str) -> dict:
    return {"Authorization": f"Bearer {agent_token}"}
