"""Tests for achievements."""
import pytest

from vocabsrs.models.review_models import AchievementRecord, Stats
from vocabsrs.services.achievement_service import ACHIEVEMENT_RULES


def test_rule_codes_are_unique():
    """Test that every threshold yields its own code."""
    codes = [code for rule in ACHIEVEMENT_RULES for code, _ in rule.codes()]
    assert len(codes) == len(set(codes))
    assert "registered_10" in codes
    assert "masterAll_10000" in codes
    assert "streak_7" in codes


@pytest.mark.asyncio
async def test_evaluate_unlocks_reached_thresholds(engine, store, clock):
    """Test that every reached threshold is unlocked with a timestamp."""
    stats = Stats(total_items=25, mastered_a=10, total_attempts=60, total_correct=9)

    newly = await engine.evaluate_achievements(stats)

    assert sorted(newly) == sorted(
        ["registered_10", "registered_20", "masterA_10", "attempts_10", "attempts_50"]
    )
    assert store.achievements["registered_20"].achieved_at == clock.now_ms()


@pytest.mark.asyncio
async def test_evaluate_twice_yields_nothing_new(engine):
    """Test idempotence with unchanged stats."""
    stats = Stats(total_items=120, complete_master=10, current_streak=8)

    first = await engine.evaluate_achievements(stats)
    second = await engine.evaluate_achievements(stats)

    assert "masterAll_10" in first
    assert "streak_7" in first
    assert second == []


@pytest.mark.asyncio
async def test_missed_lower_threshold_is_still_unlocked(engine, store):
    """Test that thresholds are independent of each other."""
    await store.add_achievement(AchievementRecord("registered_100", 1))

    newly = await engine.evaluate_achievements(Stats(total_items=100))

    assert "registered_100" not in newly
    assert {"registered_10", "registered_50", "registered_75"} <= set(newly)


@pytest.mark.asyncio
async def test_evaluate_from_live_stats(engine, make_items):
    """Test evaluation over computed stats."""
    await make_items(10)

    assert await engine.evaluate_achievements() == ["registered_10"]
    assert await engine.evaluate_achievements() == []
