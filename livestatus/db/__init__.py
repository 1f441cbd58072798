from livestatus.db.base import Base
from livestatus.db.session import get_db, engine, SessionLocal
from livestatus.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
