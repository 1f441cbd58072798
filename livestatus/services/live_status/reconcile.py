"""
Per-account state machine. Compares the account's open session in storage (was live?) with the
fresh snapshot (is live?) and applies exactly one transition:

  not live → live   insert open session, then went_live event        → created_session
  live → not live   close open session, then went_offline event      → closed_session
  live → live       update viewer_count / title / updated_at         → updated_session
  not live → not    no writes                                        → no_change

wasLive always comes from storage, never from memory: runs are stateless and may overlap.
Losing the insert race to another run (unique violation on the open-session index) is a
successful no-op (race_lost_refetched). The caller commits.
"""
import logging
from datetime import datetime

from livestatus.core.constants import (
    EVENT_WENT_LIVE,
    EVENT_WENT_OFFLINE,
    OUTCOME_CLOSED_SESSION,
    OUTCOME_CREATED_SESSION,
    OUTCOME_NO_CHANGE,
    OUTCOME_RACE_LOST,
    OUTCOME_UPDATED_SESSION,
)
from livestatus.core.errors import DuplicateOpenSessionError
from livestatus.models.live_session import LiveSession
from livestatus.services.live_status.store import LiveStatusStore, dump_payload
from livestatus.services.platforms.types import Snapshot

logger = logging.getLogger(__name__)


def _new_session(account_id: int, snap: Snapshot, now: datetime) -> LiveSession:
    return LiveSession(
        platform_account_id=account_id,
        is_live=True,
        started_at=snap.started_at or now,
        ended_at=None,
        title=snap.title,
        category=snap.category,
        viewer_count=snap.viewer_count,
        stream_url=snap.stream_url,
        thumbnail_url=snap.thumbnail_url,
        raw_json=dump_payload(snap.raw),
        updated_at=now,
    )


def reconcile_account(store: LiveStatusStore, account_id: int, snap: Snapshot, now: datetime) -> str:
    """Apply one transition for this account and return its outcome name."""
    open_session = store.find_open_session(account_id)
    was_live = open_session is not None

    if not was_live and snap.is_live:
        # Session first: if we lose the race nothing else has been written yet
        try:
            store.insert_live_session(_new_session(account_id, snap, now))
        except DuplicateOpenSessionError:
            winner = store.find_open_session(account_id)
            logger.info(
                "Account %s: open session already created by a concurrent run (session_id=%s)",
                account_id,
                winner.id if winner is not None else None,
            )
            return OUTCOME_RACE_LOST
        store.insert_status_event(account_id, EVENT_WENT_LIVE, snap.raw, created_at=now)
        return OUTCOME_CREATED_SESSION

    if was_live and not snap.is_live:
        if not store.close_live_session(open_session.id, now):
            logger.info("Account %s: session %s already closed by a concurrent run", account_id, open_session.id)
            return OUTCOME_NO_CHANGE
        store.insert_status_event(account_id, EVENT_WENT_OFFLINE, snap.raw, created_at=now)
        return OUTCOME_CLOSED_SESSION

    if was_live and snap.is_live:
        fields: dict = {"updated_at": now}
        if snap.viewer_count is not None:
            fields["viewer_count"] = snap.viewer_count
        if snap.title is not None:
            fields["title"] = snap.title
        store.update_live_session(open_session.id, fields)
        return OUTCOME_UPDATED_SESSION

    return OUTCOME_NO_CHANGE
