"""
One poll run: select due accounts → group by platform → adapters fetch concurrently →
merge into one verdict per account → reconcile + reschedule each account in its own
short transaction.

Runs are stateless and may overlap (the scheduler allows a second instance while a slow run
finishes); the open-session unique index makes concurrent reconciliation safe, so there is no
run lock. Network I/O happens before any write transaction is opened.

Verdicts per account:
  - Snapshot from its adapter          → reconcile
  - FetchError from its adapter        → unknown: skip reconcile, still reschedule
  - neither                            → synthesized offline snapshot
"""
import logging
import random
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Callable

from livestatus.core.constants import (
    DUE_ACCOUNTS_LIMIT,
    OUTCOME_FAILED,
    OUTCOME_UNKNOWN,
    POLL_ACCOUNT_RESULT_EVENT,
)
from livestatus.core.poll_config import POLL_RUN_DEADLINE_SECONDS
from livestatus.db.session import SessionLocal
from livestatus.services.live_status.heartbeat import set_poll_job_heartbeat
from livestatus.services.live_status.reconcile import reconcile_account
from livestatus.services.live_status.schedule import plan_next_check
from livestatus.services.live_status.store import LiveStatusStore
from livestatus.services.platforms import get_adapter
from livestatus.services.platforms.base import PlatformAdapter
from livestatus.services.platforms.types import DueAccount, FetchError, FetchResult, Snapshot

logger = logging.getLogger(__name__)

Verdict = Snapshot | FetchError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def group_by_platform(accounts: list[DueAccount]) -> dict[str, list[DueAccount]]:
    groups: dict[str, list[DueAccount]] = {}
    for a in accounts:
        groups.setdefault(a.platform, []).append(a)
    return groups


def fetch_all_platforms(
    groups: dict[str, list[DueAccount]],
    *,
    get_adapter_fn: Callable[[str], PlatformAdapter] = get_adapter,
    deadline_seconds: float = POLL_RUN_DEADLINE_SECONDS,
) -> dict[str, FetchResult]:
    """
    One adapter call per platform, all concurrently. A platform with no adapter, an adapter that
    raises, or one still running at the deadline yields FetchResult.all_failed for its accounts.
    Calls past the deadline are abandoned, not awaited.
    """
    results: dict[str, FetchResult] = {}
    if not groups:
        return results
    futures = {}
    executor = ThreadPoolExecutor(max_workers=len(groups), thread_name_prefix="poll_platform")
    try:
        for platform, accounts in groups.items():
            try:
                adapter = get_adapter_fn(platform)
            except KeyError as e:
                logger.warning("No adapter for platform %s (%s accounts): %s", platform, len(accounts), e)
                results[platform] = FetchResult.all_failed(accounts, f"No adapter for platform {platform}")
                continue
            futures[executor.submit(adapter.fetch, accounts)] = platform

        done, not_done = wait(futures, timeout=deadline_seconds)
        for future in done:
            platform = futures[future]
            try:
                results[platform] = future.result()
            except Exception as e:
                logger.exception("Adapter %s raised: %s", platform, e)
                results[platform] = FetchResult.all_failed(groups[platform], f"Adapter failed: {e}")
        for future in not_done:
            platform = futures[future]
            future.cancel()
            logger.warning(
                "Adapter %s still running after %ss deadline; %s accounts unknown this run",
                platform,
                deadline_seconds,
                len(groups[platform]),
            )
            results[platform] = FetchResult.all_failed(groups[platform], "Run deadline exceeded")
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return results


def resolve_verdicts(accounts: list[DueAccount], results: dict[str, FetchResult]) -> dict[int, Verdict]:
    """One verdict per requested account; anything the adapter neither resolved nor errored is offline."""
    verdicts: dict[int, Verdict] = {}
    for account in accounts:
        result = results.get(account.platform) or FetchResult()
        uid = account.platform_user_id
        snap = result.snapshots.get(uid)
        if snap is not None:
            verdicts[account.id] = snap
            continue
        error = next((e for e in result.errors if e.platform_user_id == uid), None)
        if error is not None:
            verdicts[account.id] = error
        else:
            verdicts[account.id] = Snapshot.offline(uid)
    return verdicts


def _process_account(
    store: LiveStatusStore,
    account: DueAccount,
    verdict: Verdict,
    now: datetime,
    rng: random.Random | None,
) -> tuple[str, bool]:
    """Reconcile (unless unknown) and reschedule in one transaction. Returns (outcome, is_live)."""
    if isinstance(verdict, FetchError):
        logger.warning(
            "Status unknown platform=%s username=%s account_id=%s: %s",
            account.platform,
            account.platform_username,
            account.id,
            verdict.message,
        )
        outcome = OUTCOME_UNKNOWN
        # Keep the cadence of the last known state
        is_live = store.find_open_session(account.id) is not None
    else:
        outcome = reconcile_account(store, account.id, verdict, now)
        is_live = verdict.is_live
    last_checked_at, next_check_at = plan_next_check(now, is_live, rng=rng)
    store.update_account_schedule(account.id, last_checked_at, next_check_at)
    store.commit()
    return outcome, is_live


def _log_account_result(account: DueAccount, outcome: str, is_live: bool | None, latency_ms: int) -> None:
    record = {
        "event": POLL_ACCOUNT_RESULT_EVENT,
        "platform": account.platform,
        "username": account.platform_username,
        "outcome": outcome,
        "is_live": is_live,
        "latency_ms": latency_ms,
    }
    logger.info(
        "event=%s platform=%s username=%s outcome=%s is_live=%s latency_ms=%s",
        POLL_ACCOUNT_RESULT_EVENT,
        account.platform,
        account.platform_username,
        outcome,
        is_live,
        latency_ms,
        extra={"poll_account_result": record},
    )


def run_poll_job(
    *,
    session_factory: Callable = SessionLocal,
    get_adapter_fn: Callable[[str], PlatformAdapter] = get_adapter,
    now_fn: Callable[[], datetime] = _utcnow,
    limit: int = DUE_ACCOUNTS_LIMIT,
    deadline_seconds: float = POLL_RUN_DEADLINE_SECONDS,
    rng: random.Random | None = None,
) -> dict:
    """
    One run. Returns {"ok": True, "processed": n}. Per-account failures are logged and do not stop
    the run; failures before the account loop (e.g. database unreachable) propagate.
    """
    started = now_fn()
    set_poll_job_heartbeat(started=started)
    db = session_factory()
    store = LiveStatusStore(db)
    try:
        due = [DueAccount.from_model(a) for a in store.select_due_accounts(started, limit)]
        # No transaction held open across the network phase
        store.rollback()
        if not due:
            set_poll_job_heartbeat(finished=now_fn(), processed=0, outcomes={})
            return {"ok": True, "processed": 0}

        groups = group_by_platform(due)
        results = fetch_all_platforms(groups, get_adapter_fn=get_adapter_fn, deadline_seconds=deadline_seconds)
        verdicts = resolve_verdicts(due, results)

        outcomes: Counter = Counter()
        # Iterate the original due list, not the adapter results
        for account in due:
            t0 = time.perf_counter()
            verdict = verdicts[account.id]
            try:
                outcome, is_live = _process_account(store, account, verdict, now_fn(), rng)
            except Exception as e:
                store.rollback()
                outcome = OUTCOME_FAILED
                is_live = verdict.is_live if isinstance(verdict, Snapshot) else None
                logger.exception(
                    "Poll account failed platform=%s username=%s account_id=%s: %s",
                    account.platform,
                    account.platform_username,
                    account.id,
                    e,
                )
            outcomes[outcome] += 1
            _log_account_result(account, outcome, is_live, int((time.perf_counter() - t0) * 1000))

        set_poll_job_heartbeat(finished=now_fn(), processed=len(due), outcomes=dict(outcomes))
        logger.info("Poll run: processed=%s outcomes=%s", len(due), dict(outcomes))
        return {"ok": True, "processed": len(due)}
    except Exception as e:
        set_poll_job_heartbeat(finished=now_fn(), error=str(e))
        raise
    finally:
        db.close()


def run_poll_job_tick() -> None:
    """Scheduler entry point: one run, failures logged (the next tick retries)."""
    try:
        run_poll_job()
    except Exception as e:
        logger.exception("Poll job failed: %s", e)
