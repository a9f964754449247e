"""Shared fixtures: deterministic clock, in-memory storage and ledgers."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockledger.config import Settings
from stockledger.database import init_db, make_engine
from stockledger.dependencies import get_ledger
from stockledger.main import app
from stockledger.services.ledger import StockLedger
from stockledger.storage import MemoryStorage, SqlStorage


class TickingClock:
    """Returns a new instant one second later on every call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def ledger(storage, test_settings, clock):
    return StockLedger(storage, settings=test_settings, clock=clock)


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def client(ledger):
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def widget(ledger):
    return ledger.create({"name": "Widget", "code": "W1", "stock": 10, "min_stock": 5})
