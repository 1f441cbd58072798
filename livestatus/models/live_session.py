"""One continuous broadcast (started_at → ended_at). At most one open row (ended_at IS NULL) per account."""
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.sql import func

from livestatus.db.base import Base

OPEN_SESSION_INDEX_NAME = "uq_live_sessions_open_per_account"


class LiveSession(Base):
    __tablename__ = "live_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform_account_id = Column(Integer, ForeignKey("platform_accounts.id"), nullable=False, index=True)
    is_live = Column(Boolean, nullable=False, default=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    title = Column(String(512), nullable=True)
    category = Column(String(256), nullable=True)
    viewer_count = Column(Integer, nullable=True)
    stream_url = Column(String(512), nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)
    raw_json = Column(Text, nullable=True)  # platform payload from the snapshot that opened the session
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        # One open session per account; concurrent openers get an IntegrityError on this index.
        Index(
            OPEN_SESSION_INDEX_NAME,
            "platform_account_id",
            unique=True,
            postgresql_where=text("ended_at IS NULL"),
            sqlite_where=text("ended_at IS NULL"),
        ),
    )
