"""One tracked creator channel on one platform. Created by admin tooling; the poll job only moves its schedule."""
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint, true
from sqlalchemy.sql import func

from livestatus.db.base import Base


class Platform(str, Enum):
    TWITCH = "twitch"
    YOUTUBE = "youtube"
    KICK = "kick"
    TIKTOK = "tiktok"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"


class PlatformAccount(Base):
    __tablename__ = "platform_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform = Column(String(16), nullable=False, index=True)
    platform_user_id = Column(String(128), nullable=False)  # join key for snapshots (Twitch user id, YouTube channel id, Kick id/slug)
    platform_username = Column(String(128), nullable=True)  # display name / Kick slug
    channel_url = Column(String(512), nullable=True)
    is_enabled = Column(Boolean, nullable=False, default=True, server_default=true())
    last_checked_at = Column(DateTime(timezone=True), nullable=True)
    next_check_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("platform", "platform_user_id", name="uq_platform_accounts_platform_user"),
        Index("ix_platform_accounts_due", "is_enabled", "next_check_at"),
    )
