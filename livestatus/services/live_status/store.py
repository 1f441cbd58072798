"""
Storage operations the poll job consumes. One LiveStatusStore wraps one SQLAlchemy Session;
the caller decides transaction boundaries (commit/rollback once per account).

The one-open-session rule lives in the database (partial unique index on live_sessions);
insert_live_session turns a violation of that index into DuplicateOpenSessionError.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from livestatus.core.errors import DuplicateOpenSessionError
from livestatus.models.live_session import OPEN_SESSION_INDEX_NAME, LiveSession
from livestatus.models.platform_account import PlatformAccount
from livestatus.models.status_event import StatusEvent

logger = logging.getLogger(__name__)

# Columns update_live_session may change while a session is open
UPDATABLE_SESSION_FIELDS = frozenset(
    {"title", "category", "viewer_count", "stream_url", "thumbnail_url", "updated_at"}
)


def as_utc(dt: datetime | None) -> datetime | None:
    """SQLite returns naive datetimes; treat them as UTC."""
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def dump_payload(raw: Any) -> str:
    return json.dumps(raw if raw is not None else {}, default=str)


def is_open_session_conflict(exc: IntegrityError) -> bool:
    """True when the IntegrityError came from the one-open-session index (not an FK or other constraint)."""
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == OPEN_SESSION_INDEX_NAME
    msg = str(orig or exc)
    return OPEN_SESSION_INDEX_NAME in msg or "live_sessions.platform_account_id" in msg


class LiveStatusStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # --- accounts -----------------------------------------------------------

    def select_due_accounts(self, now: datetime, limit: int) -> list[PlatformAccount]:
        """Enabled accounts whose next_check_at has passed, oldest due first, capped at limit."""
        return (
            self.db.query(PlatformAccount)
            .filter(
                PlatformAccount.is_enabled.is_(True),
                PlatformAccount.next_check_at <= now,
            )
            .order_by(PlatformAccount.next_check_at.asc(), PlatformAccount.id.asc())
            .limit(limit)
            .all()
        )

    def update_account_schedule(self, account_id: int, last_checked_at: datetime, next_check_at: datetime) -> None:
        self.db.query(PlatformAccount).filter(PlatformAccount.id == account_id).update(
            {"last_checked_at": last_checked_at, "next_check_at": next_check_at},
            synchronize_session=False,
        )

    # --- sessions -----------------------------------------------------------

    def find_open_session(self, account_id: int) -> LiveSession | None:
        return (
            self.db.query(LiveSession)
            .filter(
                LiveSession.platform_account_id == account_id,
                LiveSession.ended_at.is_(None),
            )
            .first()
        )

    def insert_live_session(self, session: LiveSession) -> LiveSession:
        """
        Add and flush a new open session. Raises DuplicateOpenSessionError when another writer
        already holds the open session for this account; the transaction is rolled back in that
        case, so call this before any other write in the unit of work.
        """
        self.db.add(session)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if is_open_session_conflict(e):
                raise DuplicateOpenSessionError(session.platform_account_id, e) from e
            raise
        return session

    def update_live_session(self, session_id: int, fields: dict[str, Any]) -> None:
        unknown = set(fields) - UPDATABLE_SESSION_FIELDS
        if unknown:
            raise ValueError(f"Not updatable on an open session: {sorted(unknown)}")
        if not fields:
            return
        self.db.query(LiveSession).filter(LiveSession.id == session_id).update(
            fields, synchronize_session=False
        )

    def close_live_session(self, session_id: int, ended_at: datetime) -> bool:
        """Set is_live=false, ended_at. False when the session was already closed by another run."""
        n = self.db.query(LiveSession).filter(
            LiveSession.id == session_id,
            LiveSession.ended_at.is_(None),
        ).update({"is_live": False, "ended_at": ended_at}, synchronize_session=False)
        return n > 0

    def list_open_sessions(self, limit: int) -> list[tuple[LiveSession, PlatformAccount]]:
        """Open sessions with their account, newest started_at first (read side for /live/now)."""
        return (
            self.db.query(LiveSession, PlatformAccount)
            .join(PlatformAccount, PlatformAccount.id == LiveSession.platform_account_id)
            .filter(LiveSession.ended_at.is_(None))
            .order_by(LiveSession.started_at.desc())
            .limit(limit)
            .all()
        )

    # --- events -------------------------------------------------------------

    def insert_status_event(self, account_id: int, event_type: str, payload: Any, created_at: datetime | None = None) -> StatusEvent:
        event = StatusEvent(
            platform_account_id=account_id,
            event_type=event_type,
            payload_json=dump_payload(payload),
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.db.add(event)
        return event

    # --- transaction --------------------------------------------------------

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
