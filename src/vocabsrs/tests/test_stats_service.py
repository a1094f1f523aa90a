"""Tests for statistics."""
from datetime import date, timedelta

import pytest

from vocabsrs.models.review_models import AttemptRecord, ProgressRecord, Skill
from vocabsrs.services.stats_service import calculate_streak


def test_calculate_streak_counts_back_from_today():
    """Test current and longest streaks."""
    today = date(2024, 5, 10)
    days = [today - timedelta(days=n) for n in (0, 1, 2, 5, 6, 7, 8)]

    assert calculate_streak(days, today) == (3, 4)


def test_calculate_streak_without_study_today():
    """Test that yesterday's run does not count as current."""
    today = date(2024, 5, 10)
    assert calculate_streak([today - timedelta(days=1)], today) == (0, 1)
    assert calculate_streak([], today) == (0, 0)


@pytest.mark.asyncio
async def test_compute_stats_aggregates_progress_and_attempts(engine, store, make_item, clock, today):
    """Test mastery counts, totals and today's figures."""
    full = await make_item()
    partial = await make_item()
    for skill in (Skill.A, Skill.B, Skill.C):
        await store.put_progress(ProgressRecord(full.id, skill, stage=5, next_due=today + timedelta(days=30), mastered=True))
    await store.put_progress(ProgressRecord(partial.id, Skill.C, stage=5, next_due=today + timedelta(days=30), mastered=True))

    yesterday_ms = clock.now_ms() - 24 * 3600 * 1000
    await store.append_attempt(AttemptRecord(partial.id, Skill.A, True, yesterday_ms, 2000))
    await engine.record_answer(partial, Skill.A, True, 1000)
    await engine.record_answer(partial, Skill.B, False, 3000)

    stats = await engine.compute_stats()

    assert stats.total_items == 2
    assert (stats.mastered_a, stats.mastered_b, stats.mastered_c) == (1, 1, 2)
    assert stats.complete_master == 1
    assert stats.total_attempts == 3
    assert stats.total_correct == 2
    assert stats.overall_accuracy == pytest.approx(2 / 3)
    assert stats.average_response_ms == pytest.approx(2000)
    assert stats.today_attempts == 2
    assert stats.today_correct == 1
    assert stats.today_accuracy == 0.5
    assert stats.current_streak == 2
    assert stats.longest_streak == 2
    assert stats.due_count == 0
    assert stats.status_counts["listenable"] == 1


@pytest.mark.asyncio
async def test_compute_stats_skips_orphans_and_has_no_side_effects(engine, store, make_item, today):
    """Test that deleted items' rows are ignored and nothing is written."""
    item = await make_item()
    gone = await make_item()
    for skill in (Skill.A, Skill.B, Skill.C):
        await store.put_progress(ProgressRecord(gone.id, skill, stage=5, next_due=today, mastered=True))
    await store.delete_item(gone.id)

    stats = await engine.compute_stats()

    assert stats.total_items == 1
    assert stats.complete_master == 0
    assert stats.mastered_a == 0
    assert stats.due_count == 3
    assert {key.item_id for key in store.progress} == {gone.id}
    assert store.attempts == []
    assert store.achievements == {}


@pytest.mark.asyncio
async def test_weak_items_ordered_by_wrong_rate(engine, store, make_item, today):
    """Test that only items with mistakes are listed, worst first."""
    mostly_wrong = await make_item()
    sometimes_wrong = await make_item()
    never_wrong = await make_item()
    gone = await make_item()
    await store.put_progress(ProgressRecord(mostly_wrong.id, Skill.A, stage=0, next_due=today, correct_count=1, wrong_count=2))
    await store.put_progress(ProgressRecord(mostly_wrong.id, Skill.C, stage=0, next_due=today, wrong_count=1))
    await store.put_progress(ProgressRecord(sometimes_wrong.id, Skill.B, stage=1, next_due=today, correct_count=3, wrong_count=1))
    await store.put_progress(ProgressRecord(never_wrong.id, Skill.A, stage=2, next_due=today, correct_count=5))
    await store.put_progress(ProgressRecord(gone.id, Skill.A, stage=0, next_due=today, wrong_count=9))
    await store.delete_item(gone.id)

    weak = await engine.weak_items()

    assert [w.item.id for w in weak] == [mostly_wrong.id, sometimes_wrong.id]
    assert weak[0].wrong_rate == pytest.approx(3 / 4)
    assert (weak[1].correct_count, weak[1].wrong_count) == (3, 1)
    assert [w.item.id for w in await engine.weak_items(limit=1)] == [mostly_wrong.id]
    assert store.attempts == []
