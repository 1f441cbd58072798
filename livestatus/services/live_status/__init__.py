"""
Live status: storage glue, reconciliation state machine and next-check planning.

- platform_accounts: tracked channels; the poll job only advances last_checked_at/next_check_at.
- live_sessions: one row per broadcast; at most one open (ended_at IS NULL) per account.
- status_events: append-only went_live / went_offline audit trail.
"""
from livestatus.services.live_status.heartbeat import get_poll_job_heartbeat, set_poll_job_heartbeat
from livestatus.services.live_status.reconcile import reconcile_account
from livestatus.services.live_status.schedule import next_check_delay, plan_next_check
from livestatus.services.live_status.store import LiveStatusStore

__all__ = [
    "LiveStatusStore",
    "get_poll_job_heartbeat",
    "next_check_delay",
    "plan_next_check",
    "reconcile_account",
    "set_poll_job_heartbeat",
]
