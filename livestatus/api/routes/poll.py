"""
Poll API: manual trigger and job status.

The scheduler runs the same job every POLL_TICK_SECONDS; POST /poll/run is for operators
and for external cron-style triggers.
"""
import logging
from typing import Any, Callable

from fastapi import APIRouter, Depends

from livestatus.core.constants import POLL_INTERVAL_SECONDS, POLL_JOB_ID
from livestatus.core.errors import poll_error_to_http
from livestatus.core.poll_config import get_poll_config
from livestatus.scheduler.poll_job import run_poll_job
from livestatus.services.live_status import get_poll_job_heartbeat
from livestatus.services.platforms import list_platforms

router = APIRouter()
logger = logging.getLogger(__name__)


def get_poll_runner() -> Callable[[], dict]:
    return run_poll_job


@router.post("/run")
def trigger_poll(runner: Callable[[], dict] = Depends(get_poll_runner)) -> dict[str, Any]:
    """Run one poll synchronously. Returns {ok, processed}."""
    try:
        return runner()
    except Exception as e:
        logger.exception("Manual poll run failed: %s", e)
        raise poll_error_to_http(e) from e


@router.get("/status")
def poll_status() -> dict[str, Any]:
    """Heartbeat of the poll job plus effective config and registered platforms."""
    return {
        "job_id": POLL_JOB_ID,
        "interval_seconds": POLL_INTERVAL_SECONDS,
        "heartbeat": get_poll_job_heartbeat(),
        "platforms": list_platforms(),
        "config": get_poll_config().to_dict(),
    }
