"""
Centralized constants for the poll job and reconciliation.

Change job IDs, event names or outcome names here instead of scattering literals
across main, the job and routes. Intervals and limits come from poll_config (env-driven).
"""
from livestatus.core.poll_config import POLL_BATCH_SIZE, POLL_TICK_SECONDS

# Scheduler job IDs (must match ids used in main.py add_job)
POLL_JOB_ID = "poll_platform_accounts"
POLL_INTERVAL_SECONDS = POLL_TICK_SECONDS
DUE_ACCOUNTS_LIMIT = POLL_BATCH_SIZE

# status_events.event_type
EVENT_WENT_LIVE = "went_live"
EVENT_WENT_OFFLINE = "went_offline"

# Per-account outcome, logged as event=poll_account_result
OUTCOME_NO_CHANGE = "no_change"
OUTCOME_CREATED_SESSION = "created_session"
OUTCOME_UPDATED_SESSION = "updated_session"
OUTCOME_CLOSED_SESSION = "closed_session"
OUTCOME_RACE_LOST = "race_lost_refetched"
# Adapter could not determine status; reconciliation skipped, schedule still advanced
OUTCOME_UNKNOWN = "unknown_skipped"
# Unexpected persistence failure for this account; logged, run continues
OUTCOME_FAILED = "failed"

POLL_ACCOUNT_RESULT_EVENT = "poll_account_result"

# Live-now API: cap open sessions returned per request
LIVE_NOW_LIMIT = 500
