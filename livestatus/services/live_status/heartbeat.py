"""
Poll job heartbeat. In-memory only; set by the poll job, read by GET /poll/status.
"""
import logging
import threading
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_job_last_started_at: datetime | None = None  # current run (when running) or last run
_job_last_finished_at: datetime | None = None
# Last *completed* run, preserved when a new run starts
_job_last_completed_started_at: datetime | None = None
_job_last_completed_finished_at: datetime | None = None
_job_last_error: str | None = None
_job_last_processed: int | None = None
_job_last_outcomes: dict[str, int] | None = None
_job_running_count: int = 0


def set_poll_job_heartbeat(
    started: datetime | None = None,
    finished: datetime | None = None,
    error: str | None = None,
    processed: int | None = None,
    outcomes: dict[str, int] | None = None,
) -> None:
    global _job_last_started_at, _job_last_finished_at, _job_last_completed_started_at, _job_last_completed_finished_at, _job_last_error, _job_last_processed, _job_last_outcomes, _job_running_count
    with _lock:
        if started is not None:
            _job_last_started_at = started
            _job_running_count += 1
        if finished is not None:
            _job_last_finished_at = finished
            _job_last_completed_started_at = _job_last_started_at
            _job_last_completed_finished_at = finished
            _job_running_count = max(0, _job_running_count - 1)
        if error is not None:
            _job_last_error = error
        if processed is not None:
            _job_last_processed = processed
        if outcomes is not None:
            _job_last_outcomes = dict(outcomes)


def get_poll_job_heartbeat() -> dict:
    """Last run times, processed count, outcome counts, last error, running flag. In-memory only."""
    with _lock:
        started_at = _job_last_completed_started_at if _job_last_completed_started_at is not None else _job_last_started_at
        finished_at = _job_last_completed_finished_at if _job_last_completed_finished_at is not None else _job_last_finished_at
        out = {
            "last_job_started_at": started_at.isoformat() if started_at is not None else None,
            "last_job_finished_at": finished_at.isoformat() if finished_at is not None else None,
            "last_job_error": _job_last_error,
            "last_run_processed": _job_last_processed,
            "last_run_outcomes": dict(_job_last_outcomes) if _job_last_outcomes is not None else None,
            "is_job_running": _job_running_count > 0,
            "runs_in_flight": _job_running_count,
        }
        if started_at is not None and finished_at is not None and finished_at >= started_at:
            out["last_run_duration_seconds"] = (finished_at - started_at).total_seconds()
        else:
            out["last_run_duration_seconds"] = None
        if _job_running_count > 0 and _job_last_started_at is not None:
            out["current_run_elapsed_seconds"] = max(
                0, (datetime.now(timezone.utc) - _job_last_started_at).total_seconds()
            )
        else:
            out["current_run_elapsed_seconds"] = None
    return out


def reset_poll_job_heartbeat() -> None:
    """Clear all heartbeat state (tests)."""
    global _job_last_started_at, _job_last_finished_at, _job_last_completed_started_at, _job_last_completed_finished_at, _job_last_error, _job_last_processed, _job_last_outcomes, _job_running_count
    with _lock:
        _job_last_started_at = None
        _job_last_finished_at = None
        _job_last_completed_started_at = None
        _job_last_completed_finished_at = None
        _job_last_error = None
        _job_last_processed = None
        _job_last_outcomes = None
        _job_running_count = 0
