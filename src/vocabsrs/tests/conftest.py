"""Test configuration."""
import os
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Callable, List
from zoneinfo import ZoneInfo

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from vocabsrs.clock import Clock
from vocabsrs.engine import VocabEngine
from vocabsrs.models.review_models import ItemRecord
from vocabsrs.services.store import InMemoryStore

fake = Faker()

TOKYO = ZoneInfo("Asia/Tokyo")
# 2024-05-10 12:00 in Tokyo
START = datetime(2024, 5, 10, 3, 0, tzinfo=UTC)


class FakeNow:
    """Adjustable "now" for the engine clock."""

    def __init__(self, value: datetime = START):
        self.value = value

    def __call__(self) -> datetime:
        return self.value

    def advance(self, **kwargs) -> None:
        self.value += timedelta(**kwargs)


@pytest.fixture
def now() -> FakeNow:
    return FakeNow()


@pytest.fixture
def clock(now: FakeNow) -> Clock:
    return Clock(tz=TOKYO, now=now)


@pytest.fixture
def today(clock: Clock) -> date:
    return clock.today()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def engine(store: InMemoryStore, clock: Clock) -> VocabEngine:
    return VocabEngine(store, clock)


@pytest.fixture
def make_item(store: InMemoryStore) -> Callable[..., ItemRecord]:
    """Create and store items; later calls get later creation times."""
    counter = {"id": 0}

    async def _make_item(**kwargs) -> ItemRecord:
        counter["id"] += 1
        item = ItemRecord(
            id=kwargs.pop("id", counter["id"]),
            text=kwargs.pop("text", fake.word()),
            meanings=kwargs.pop("meanings", [fake.word()]),
            created_at=kwargs.pop("created_at", 1_700_000_000_000 + counter["id"] * 1000),
            **kwargs,
        )
        await store.put_item(item)
        return item

    return _make_item


@pytest.fixture
def make_items(make_item) -> Callable[[int], List[ItemRecord]]:
    async def _make_items(count: int) -> List[ItemRecord]:
        return [await make_item() for _ in range(count)]

    return _make_items
