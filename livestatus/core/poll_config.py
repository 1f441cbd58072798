"""
Poll workload config. .env is the source of truth; these defaults apply only when
the env var is unset. All values read at import time.

Env vars: POLL_TICK_SECONDS, POLL_BATCH_SIZE, POLL_RUN_DEADLINE_SECONDS,
POLL_HTTP_TIMEOUT_SECONDS, LIVE_RECHECK_BASE_SECONDS, LIVE_RECHECK_JITTER_SECONDS,
OFFLINE_RECHECK_BASE_SECONDS, OFFLINE_RECHECK_JITTER_SECONDS, RECHECK_MIN_SECONDS,
TWITCH_BATCH_SIZE, YOUTUBE_FEED_CONCURRENCY, YOUTUBE_FRESHNESS_HOURS,
YOUTUBE_BATCH_SIZE, KICK_CONCURRENCY, KICK_CHUNK_DELAY_MS.

In Docker, .env is not in the image; set these in docker-compose environment: or env_file:
so each environment can use different values. Verify with GET /poll/status (includes poll config).
"""
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load the project .env so poll config sees env vars regardless of entry point
# (main.py also loads it; this ensures scripts/tests/workers that import poll_config do too)
_project_dir = Path(__file__).resolve().parent.parent.parent
_env_path = _project_dir / ".env"
_env_paths = [_env_path]
if Path.cwd() != _project_dir:
    _env_paths.append(Path.cwd() / ".env")
for _p in _env_paths:
    if _p.exists():
        load_dotenv(_p, override=False)
        break
else:
    load_dotenv(_env_path, override=False)  # load_dotenv no-ops if file missing

_log = logging.getLogger(__name__)


def _int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    raw = os.environ.get(key)
    if raw is None:
        v = default
    else:
        try:
            v = int(raw.strip())
        except ValueError:
            v = default
    if min_val is not None and v < min_val:
        v = min_val
    if max_val is not None and v > max_val:
        v = max_val
    return v


def _float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    raw = os.environ.get(key)
    if raw is None:
        v = default
    else:
        try:
            v = float(raw.strip())
        except ValueError:
            v = default
    if min_val is not None and v < min_val:
        v = min_val
    if max_val is not None and v > max_val:
        v = max_val
    return v


# -----------------------------------------------------------------------------
# Run: tick, batch cap, deadline (.env is source of truth)
# -----------------------------------------------------------------------------
POLL_TICK_SECONDS = _int("POLL_TICK_SECONDS", 60, min_val=10, max_val=600)
POLL_BATCH_SIZE = _int("POLL_BATCH_SIZE", 1000, min_val=1, max_val=10_000)
# Adapter calls still running after this are abandoned; their accounts resolve to unknown
POLL_RUN_DEADLINE_SECONDS = _float("POLL_RUN_DEADLINE_SECONDS", 50.0, min_val=1.0, max_val=600.0)
POLL_HTTP_TIMEOUT_SECONDS = _float("POLL_HTTP_TIMEOUT_SECONDS", 15.0, min_val=1.0, max_val=120.0)

# -----------------------------------------------------------------------------
# Backoff: live accounts are re-checked faster than offline ones
# -----------------------------------------------------------------------------
LIVE_RECHECK_BASE_SECONDS = _int("LIVE_RECHECK_BASE_SECONDS", 30, min_val=10, max_val=3600)
LIVE_RECHECK_JITTER_SECONDS = _int("LIVE_RECHECK_JITTER_SECONDS", 10, min_val=0, max_val=600)
OFFLINE_RECHECK_BASE_SECONDS = _int("OFFLINE_RECHECK_BASE_SECONDS", 90, min_val=10, max_val=3600)
OFFLINE_RECHECK_JITTER_SECONDS = _int("OFFLINE_RECHECK_JITTER_SECONDS", 30, min_val=0, max_val=600)
RECHECK_MIN_SECONDS = _int("RECHECK_MIN_SECONDS", 10, min_val=1, max_val=600)

# -----------------------------------------------------------------------------
# Platform limits
# -----------------------------------------------------------------------------
TWITCH_BATCH_SIZE = _int("TWITCH_BATCH_SIZE", 100, min_val=1, max_val=100)  # Helix: max 100 user_id per call
YOUTUBE_FEED_CONCURRENCY = _int("YOUTUBE_FEED_CONCURRENCY", 10, min_val=1, max_val=50)
YOUTUBE_FRESHNESS_HOURS = _float("YOUTUBE_FRESHNESS_HOURS", 3.0, min_val=0.25, max_val=48.0)
YOUTUBE_BATCH_SIZE = _int("YOUTUBE_BATCH_SIZE", 50, min_val=1, max_val=50)  # videos.list: max 50 ids per call
KICK_CONCURRENCY = _int("KICK_CONCURRENCY", 5, min_val=1, max_val=20)
KICK_CHUNK_DELAY_MS = _int("KICK_CHUNK_DELAY_MS", 100, min_val=0, max_val=5000)

# Log effective config at import so each environment can verify env vars are applied
_log.info(
    "Poll config (from env): tick=%ss batch=%s deadline=%ss http_timeout=%ss "
    "live=%s±%ss offline=%s±%ss min=%ss",
    POLL_TICK_SECONDS,
    POLL_BATCH_SIZE,
    POLL_RUN_DEADLINE_SECONDS,
    POLL_HTTP_TIMEOUT_SECONDS,
    LIVE_RECHECK_BASE_SECONDS,
    LIVE_RECHECK_JITTER_SECONDS,
    OFFLINE_RECHECK_BASE_SECONDS,
    OFFLINE_RECHECK_JITTER_SECONDS,
    RECHECK_MIN_SECONDS,
)


@dataclass(frozen=True)
class PollConfig:
    """Snapshot of poll config for passing around (e.g. tests)."""
    tick_seconds: int
    batch_size: int
    run_deadline_seconds: float
    http_timeout_seconds: float
    live_recheck_base_seconds: int
    live_recheck_jitter_seconds: int
    offline_recheck_base_seconds: int
    offline_recheck_jitter_seconds: int
    recheck_min_seconds: int
    twitch_batch_size: int
    youtube_feed_concurrency: int
    youtube_freshness_hours: float
    youtube_batch_size: int
    kick_concurrency: int
    kick_chunk_delay_ms: int

    def to_dict(self) -> dict:
        return asdict(self)


def get_poll_config() -> PollConfig:
    return PollConfig(
        tick_seconds=POLL_TICK_SECONDS,
        batch_size=POLL_BATCH_SIZE,
        run_deadline_seconds=POLL_RUN_DEADLINE_SECONDS,
        http_timeout_seconds=POLL_HTTP_TIMEOUT_SECONDS,
        live_recheck_base_seconds=LIVE_RECHECK_BASE_SECONDS,
        live_recheck_jitter_seconds=LIVE_RECHECK_JITTER_SECONDS,
        offline_recheck_base_seconds=OFFLINE_RECHECK_BASE_SECONDS,
        offline_recheck_jitter_seconds=OFFLINE_RECHECK_JITTER_SECONDS,
        recheck_min_seconds=RECHECK_MIN_SECONDS,
        twitch_batch_size=TWITCH_BATCH_SIZE,
        youtube_feed_concurrency=YOUTUBE_FEED_CONCURRENCY,
        youtube_freshness_hours=YOUTUBE_FRESHNESS_HOURS,
        youtube_batch_size=YOUTUBE_BATCH_SIZE,
        kick_concurrency=KICK_CONCURRENCY,
        kick_chunk_delay_ms=KICK_CHUNK_DELAY_MS,
    )
