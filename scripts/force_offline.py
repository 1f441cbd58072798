#!/usr/bin/env python3
"""
Close an account's open live session by hand (stuck session after an outage, wrong channel id, ...).
Writes a went_offline event with reason=manual so the audit trail stays complete.
Run: python scripts/force_offline.py <username> [--platform twitch] [--dry-run]
"""
import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from livestatus.core.constants import EVENT_WENT_OFFLINE
from livestatus.db.session import SessionLocal
from livestatus.models.platform_account import PlatformAccount
from livestatus.services.live_status.store import LiveStatusStore


def main():
    parser = argparse.ArgumentParser(description="Close the open live session of an account")
    parser.add_argument("username", help="platform_username of the account")
    parser.add_argument("--platform", default=None, help="Restrict to one platform (twitch, youtube, kick, ...)")
    parser.add_argument("--dry-run", action="store_true", help="Only report what would be closed")
    args = parser.parse_args()

    db = SessionLocal()
    store = LiveStatusStore(db)
    try:
        q = db.query(PlatformAccount).filter(PlatformAccount.platform_username == args.username)
        if args.platform:
            q = q.filter(PlatformAccount.platform == args.platform)
        accounts = q.all()
        if not accounts:
            print(f"No account with username {args.username!r}.")
            return
        now = datetime.now(timezone.utc)
        closed = 0
        for account in accounts:
            session = store.find_open_session(account.id)
            if session is None:
                print(f"{account.platform}/{account.platform_username} (id={account.id}): no open session.")
                continue
            print(f"{account.platform}/{account.platform_username} (id={account.id}): closing session {session.id}")
            if args.dry_run:
                continue
            if store.close_live_session(session.id, now):
                store.insert_status_event(account.id, EVENT_WENT_OFFLINE, {"reason": "manual"}, created_at=now)
                closed += 1
        if not args.dry_run:
            store.commit()
        print(f"Done. Closed {closed} session(s).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
