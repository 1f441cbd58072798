"""Tests for next-check planning (cadence by state, jitter bounds, floor)."""

import random
from datetime import timedelta

from livestatus.core.poll_config import (
    LIVE_RECHECK_BASE_SECONDS,
    LIVE_RECHECK_JITTER_SECONDS,
    OFFLINE_RECHECK_BASE_SECONDS,
    OFFLINE_RECHECK_JITTER_SECONDS,
    RECHECK_MIN_SECONDS,
)
from livestatus.services.live_status.schedule import jitter_seconds, next_check_delay, plan_next_check
from tests.conftest import T0


def test_live_delay_stays_within_base_plus_minus_jitter():
    rng = random.Random(7)
    low = max(RECHECK_MIN_SECONDS, LIVE_RECHECK_BASE_SECONDS - LIVE_RECHECK_JITTER_SECONDS)
    high = LIVE_RECHECK_BASE_SECONDS + LIVE_RECHECK_JITTER_SECONDS
    delays = {next_check_delay(True, rng=rng) for _ in range(2000)}
    assert min(delays) >= low
    assert max(delays) <= high
    # Jitter actually spreads the values
    assert len(delays) > 1


def test_offline_delay_stays_within_base_plus_minus_jitter():
    rng = random.Random(11)
    low = max(RECHECK_MIN_SECONDS, OFFLINE_RECHECK_BASE_SECONDS - OFFLINE_RECHECK_JITTER_SECONDS)
    high = OFFLINE_RECHECK_BASE_SECONDS + OFFLINE_RECHECK_JITTER_SECONDS
    delays = [next_check_delay(False, rng=rng) for _ in range(2000)]
    assert min(delays) >= low
    assert max(delays) <= high


def test_default_cadence_brackets():
    # Defaults: live 30±10s, offline 90±30s
    assert jitter_seconds(30, 10, rng=random.Random(1)) in range(20, 41)
    assert jitter_seconds(90, 30, rng=random.Random(1)) in range(60, 121)


def test_floor_applies_when_jitter_would_go_too_low():
    rng = random.Random(3)
    assert all(jitter_seconds(5, 10, floor=10, rng=rng) >= 10 for _ in range(500))


def test_zero_spread_is_exact():
    assert jitter_seconds(45, 0) == 45


def test_plan_next_check_returns_now_and_future():
    last_checked_at, next_check_at = plan_next_check(T0, True, rng=random.Random(5))
    assert last_checked_at == T0
    assert next_check_at - T0 >= timedelta(seconds=RECHECK_MIN_SECONDS)
    assert next_check_at - T0 <= timedelta(seconds=LIVE_RECHECK_BASE_SECONDS + LIVE_RECHECK_JITTER_SECONDS)
