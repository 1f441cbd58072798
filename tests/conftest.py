import os
from datetime import datetime, timedelta, timezone

# Tests never touch the configured database; each test gets its own SQLite file.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("POLL_SCHEDULER_ENABLED", "0")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import livestatus.models  # noqa: F401  (registers tables on Base.metadata)
from livestatus.db.base import Base
from livestatus.models import LiveSession, PlatformAccount, StatusEvent
from livestatus.services.live_status.heartbeat import reset_poll_job_heartbeat

T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'livestatus.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def clean_heartbeat():
    reset_poll_job_heartbeat()
    yield
    reset_poll_job_heartbeat()


def add_account(
    db,
    platform: str = "twitch",
    platform_user_id: str = "1001",
    platform_username: str | None = None,
    *,
    next_check_at: datetime | None = None,
    is_enabled: bool = True,
) -> PlatformAccount:
    account = PlatformAccount(
        platform=platform,
        platform_user_id=platform_user_id,
        platform_username=platform_username or f"user_{platform_user_id}",
        is_enabled=is_enabled,
        next_check_at=next_check_at or (T0 - timedelta(minutes=1)),
    )
    db.add(account)
    db.commit()
    return account


def add_open_session(db, account_id: int, *, started_at: datetime | None = None, title: str = "Old title") -> LiveSession:
    session = LiveSession(
        platform_account_id=account_id,
        is_live=True,
        started_at=started_at or (T0 - timedelta(hours=1)),
        title=title,
        viewer_count=10,
        updated_at=started_at or (T0 - timedelta(hours=1)),
    )
    db.add(session)
    db.commit()
    return session


def sessions_for(db, account_id: int) -> list[LiveSession]:
    db.expire_all()
    return db.query(LiveSession).filter(LiveSession.platform_account_id == account_id).order_by(LiveSession.id).all()


def events_for(db, account_id: int) -> list[StatusEvent]:
    db.expire_all()
    return db.query(StatusEvent).filter(StatusEvent.platform_account_id == account_id).order_by(StatusEvent.id).all()
