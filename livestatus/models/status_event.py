"""Append-only audit row for went_live / went_offline transitions."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from livestatus.db.base import Base


class StatusEvent(Base):
    __tablename__ = "status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform_account_id = Column(Integer, ForeignKey("platform_accounts.id"), nullable=False, index=True)
    event_type = Column(String(32), nullable=False)  # went_live | went_offline
    payload_json = Column(Text, nullable=True)  # raw snapshot payload
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
