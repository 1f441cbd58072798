"""Live-now API: currently open sessions with their account. Read-only view of poll job output."""
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from livestatus.core.constants import LIVE_NOW_LIMIT
from livestatus.db.session import get_db
from livestatus.services.live_status.store import LiveStatusStore, as_utc

router = APIRouter()


def _iso(dt) -> str | None:
    dt = as_utc(dt)
    return dt.isoformat() if dt is not None else None


@router.get("/now")
def live_now(
    db: Session = Depends(get_db),
    limit: int = Query(100, ge=1, le=LIVE_NOW_LIMIT),
) -> dict[str, Any]:
    """Open sessions (ended_at IS NULL), newest started_at first."""
    rows = LiveStatusStore(db).list_open_sessions(limit)
    return {
        "data": [
            {
                "id": s.id,
                "is_live": s.is_live,
                "started_at": _iso(s.started_at),
                "title": s.title,
                "category": s.category,
                "viewer_count": s.viewer_count,
                "stream_url": s.stream_url,
                "thumbnail_url": s.thumbnail_url,
                "updated_at": _iso(s.updated_at),
                "platform_account": {
                    "id": a.id,
                    "platform": a.platform,
                    "platform_username": a.platform_username,
                    "channel_url": a.channel_url,
                },
            }
            for s, a in rows
        ]
    }
