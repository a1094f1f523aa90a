"""Tests for progress rows, imports and calendar dates."""
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from vocabsrs.clock import as_calendar_date
from vocabsrs.errors import InvalidProgress
from vocabsrs.models.review_models import ProgressKey, ProgressRecord, Skill
from vocabsrs.services.interval_ladder import IntervalLadder
from vocabsrs.services.progress_service import validate_progress_row

TOKYO = ZoneInfo("Asia/Tokyo")
LADDER = IntervalLadder.from_raw([1, 2, 4, 7, 15, 30])


def test_accuracy_is_zero_without_attempts():
    """Test the derived accuracy."""
    assert ProgressRecord(1, Skill.A).accuracy == 0.0
    assert ProgressRecord(1, Skill.A, correct_count=3, wrong_count=1).accuracy == 0.75


def test_as_calendar_date_drops_time_of_day():
    """Test reduction of timestamps to Tokyo calendar dates."""
    assert as_calendar_date("2024-05-10", TOKYO) == date(2024, 5, 10)
    assert as_calendar_date("2024-05-10T16:00:00Z", TOKYO) == date(2024, 5, 11)
    assert as_calendar_date(datetime(2024, 5, 10, 14, 0, tzinfo=UTC), TOKYO) == date(2024, 5, 10)
    assert as_calendar_date(date(2024, 1, 2), TOKYO) == date(2024, 1, 2)
    assert as_calendar_date(None, TOKYO) is None


def test_validate_progress_row_accepts_valid_row(clock):
    """Test conversion of an imported row."""
    record = validate_progress_row(
        {"item_id": 7, "skill": "B", "stage": 5, "next_due": "2024-06-01", "correct_count": 9, "wrong_count": 2},
        LADDER,
        clock,
    )
    assert record.key == ProgressKey(7, Skill.B)
    assert record.mastered is True
    assert record.next_due == date(2024, 6, 1)


@pytest.mark.parametrize(
    "row",
    [
        {"item_id": 1, "skill": "A", "stage": 6},
        {"item_id": 1, "skill": "A", "stage": -1},
        {"item_id": 1, "skill": "D", "stage": 0},
        {"item_id": 1, "skill": "A", "wrong_count": -2},
        {"skill": "A"},
        {"item_id": 1, "skill": "A", "next_due": "not a date"},
    ],
)
def test_validate_progress_row_rejects_bad_rows(row, clock):
    """Test that out-of-bounds or malformed rows are rejected."""
    with pytest.raises(InvalidProgress):
        validate_progress_row(row, LADDER, clock)


@pytest.mark.asyncio
async def test_import_rows_is_all_or_nothing(engine, store):
    """Test that one bad row rejects the whole batch."""
    rows = [
        {"item_id": 1, "skill": "A", "stage": 2},
        {"item_id": 1, "skill": "B", "stage": 99},
    ]
    with pytest.raises(InvalidProgress):
        await engine.progress_service.import_rows(rows, LADDER)
    assert store.progress == {}

    records = await engine.progress_service.import_rows(rows[:1], LADDER)
    assert store.progress[ProgressKey(1, Skill.A)] == records[0]


@pytest.mark.asyncio
async def test_get_or_create_persists_default(engine, store, today):
    """Test lazy creation of a missing row."""
    key = ProgressKey(3, Skill.C)
    assert await engine.progress_service.get_or_default(key) == ProgressRecord(3, Skill.C, next_due=today)
    assert store.progress == {}

    created = await engine.progress_service.get_or_create(key)
    assert store.progress[key] == created
