"""Tests for scheduler service."""
from datetime import timedelta

import pytest

from vocabsrs.errors import InvalidConfiguration
from vocabsrs.models.review_models import ProgressKey, ProgressRecord, Skill
from vocabsrs.services.scheduler_service import is_due


def test_is_due_compares_calendar_dates(today):
    """Test the shared membership test."""
    assert is_due(ProgressRecord(1, Skill.A, next_due=today), today)
    assert is_due(ProgressRecord(1, Skill.A, next_due=today - timedelta(days=3)), today)
    assert not is_due(ProgressRecord(1, Skill.A, next_due=today + timedelta(days=1)), today)


@pytest.mark.asyncio
async def test_new_items_are_due_in_every_skill(engine, store, make_items, today):
    """Test lazy creation of default rows, due today."""
    items = await make_items(2)

    queue = await engine.build_due_queue()

    assert len(queue) == 6
    assert len(store.progress) == 6
    for entry in queue:
        assert entry.progress.stage == 0
        assert entry.progress.next_due == today


@pytest.mark.asyncio
async def test_queue_orders_most_recent_item_first(engine, make_item):
    """Test recency ordering with stable skill order on ties."""
    old = await make_item(created_at=1_000)
    new = await make_item(created_at=5_000)
    twin = await make_item(created_at=5_000)

    queue = await engine.build_due_queue()

    assert [(e.item.id, e.skill) for e in queue] == [
        (new.id, Skill.A), (new.id, Skill.B), (new.id, Skill.C),
        (twin.id, Skill.A), (twin.id, Skill.B), (twin.id, Skill.C),
        (old.id, Skill.A), (old.id, Skill.B), (old.id, Skill.C),
    ]


@pytest.mark.asyncio
async def test_limit_truncates_but_count_does_not(engine, make_items):
    """Test 40 due entries: the queue holds 30, the count reports 40."""
    items = await make_items(40)

    queue = await engine.build_due_queue(skills=[Skill.A], limit=30)
    count = await engine.count_due_queue(skills=[Skill.A])

    assert len(queue) == 30
    assert count == 40
    assert [e.item.id for e in queue] == [item.id for item in reversed(items)][:30]


@pytest.mark.asyncio
async def test_default_limit_from_settings(engine, make_items):
    """Test the configured default limit of 30."""
    await make_items(11)

    assert len(await engine.build_due_queue()) == 30
    assert await engine.count_due_queue() == 33


@pytest.mark.asyncio
async def test_build_twice_returns_same_set(engine, make_items):
    """Test idempotence without answers in between."""
    await make_items(5)

    first = {e.key for e in await engine.build_due_queue()}
    second = {e.key for e in await engine.build_due_queue()}

    assert first == second


@pytest.mark.asyncio
async def test_answered_entries_leave_the_queue(engine, make_item, now):
    """Test that answered pairs come back when their interval has passed."""
    item = await make_item()
    await engine.record_answer(item, Skill.A, True)
    await engine.record_answer(item, Skill.B, False)

    keys = {e.key for e in await engine.build_due_queue()}
    assert keys == {ProgressKey(item.id, Skill.C)}
    assert await engine.count_due_queue() == 1

    now.advance(days=1)
    keys = {e.key for e in await engine.build_due_queue()}
    assert keys == {ProgressKey(item.id, Skill.B), ProgressKey(item.id, Skill.C)}

    now.advance(days=1)
    assert await engine.count_due_queue() == 3


@pytest.mark.asyncio
async def test_due_date_follows_configured_timezone(engine, make_item, now):
    """Test that "today" rolls over at local midnight, not UTC midnight."""
    item = await make_item()
    await engine.record_answer(item, Skill.A, False)  # due tomorrow, Tokyo time

    # 2024-05-10 23:30 Tokyo is still 14:30 UTC the same day
    now.advance(hours=11, minutes=30)
    assert await engine.count_due_queue(skills=[Skill.A]) == 0

    # 2024-05-11 00:30 Tokyo, still 2024-05-10 in UTC
    now.advance(hours=1)
    assert await engine.count_due_queue(skills=[Skill.A]) == 1


@pytest.mark.asyncio
async def test_orphaned_rows_are_excluded(engine, store, make_item, today):
    """Test that rows of deleted items never enter the queue."""
    kept = await make_item()
    gone = await make_item()
    await store.put_progress(ProgressRecord(gone.id, Skill.A, next_due=today))
    await store.delete_item(gone.id)

    queue = await engine.build_due_queue()

    assert {e.item.id for e in queue} == {kept.id}
    assert await engine.count_due_queue() == 3


@pytest.mark.asyncio
async def test_invalid_ladder_blocks_scheduling(engine, store, make_item):
    """Test that scheduling refuses an unusable ladder."""
    await make_item()
    store.settings["intervals"] = [3, 3]

    with pytest.raises(InvalidConfiguration):
        await engine.build_due_queue()
    with pytest.raises(InvalidConfiguration):
        await engine.count_due_queue()
    assert store.progress == {}
