"""Next-check planning: live accounts come back sooner than offline ones, each with independent jitter."""
import random
from datetime import datetime, timedelta

from livestatus.core.poll_config import (
    LIVE_RECHECK_BASE_SECONDS,
    LIVE_RECHECK_JITTER_SECONDS,
    OFFLINE_RECHECK_BASE_SECONDS,
    OFFLINE_RECHECK_JITTER_SECONDS,
    RECHECK_MIN_SECONDS,
)

_rng = random.Random()


def jitter_seconds(base: int, spread: int, *, floor: int = RECHECK_MIN_SECONDS, rng: random.Random | None = None) -> int:
    """base ± spread (inclusive), never below floor."""
    delta = (rng or _rng).randint(-spread, spread) if spread > 0 else 0
    return max(floor, base + delta)


def next_check_delay(is_live: bool, *, rng: random.Random | None = None) -> int:
    if is_live:
        return jitter_seconds(LIVE_RECHECK_BASE_SECONDS, LIVE_RECHECK_JITTER_SECONDS, rng=rng)
    return jitter_seconds(OFFLINE_RECHECK_BASE_SECONDS, OFFLINE_RECHECK_JITTER_SECONDS, rng=rng)


def plan_next_check(now: datetime, is_live: bool, *, rng: random.Random | None = None) -> tuple[datetime, datetime]:
    """(last_checked_at, next_check_at) to persist for an account checked at now."""
    return now, now + timedelta(seconds=next_check_delay(is_live, rng=rng))
