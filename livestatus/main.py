"""
FastAPI app entrypoint.

Primary: the live-status poll job (APScheduler, every POLL_TICK_SECONDS). HTTP surface is
health, poll trigger/status and the live-now read view.
"""
import logging
import os
import threading
from contextlib import asynccontextmanager
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load .env from the project root before any livestatus code reads settings
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

from livestatus.api.routes import live, poll
from livestatus.core.constants import POLL_INTERVAL_SECONDS, POLL_JOB_ID
from livestatus.scheduler.poll_job import run_poll_job_tick

logger = logging.getLogger(__name__)

_scheduler = BackgroundScheduler()


def _scheduler_enabled() -> bool:
    # POLL_SCHEDULER_ENABLED=0 when an external cron calls POST /poll/run instead
    return os.getenv("POLL_SCHEDULER_ENABLED", "1").strip().lower() not in ("0", "false", "no")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if _scheduler_enabled():
        # max_instances=2: a slow run may overlap the next tick; reconciliation is idempotent
        _scheduler.add_job(
            run_poll_job_tick,
            "interval",
            seconds=POLL_INTERVAL_SECONDS,
            id=POLL_JOB_ID,
            max_instances=2,
            coalesce=True,
        )
        _scheduler.start()
        app.state.scheduler = _scheduler
        # One run on startup so due accounts are not left waiting a full tick
        threading.Thread(target=run_poll_job_tick, daemon=True).start()
        logger.info("Poll job scheduled every %ss", POLL_INTERVAL_SECONDS)
    else:
        logger.info("Poll scheduler disabled (POLL_SCHEDULER_ENABLED=0); use POST /poll/run")
    yield
    if _scheduler.running:
        _scheduler.shutdown(wait=False)


app = FastAPI(title="Live Status", version="0.1.0", lifespan=lifespan)

# CORS: dev origins + optional CORS_ORIGINS env (comma-separated) for the site that reads /live/now
_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_cors_extra = os.getenv("CORS_ORIGINS", "")
if _cors_extra:
    _cors_origins.extend(o.strip() for o in _cors_extra.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(poll.router, prefix="/poll", tags=["poll"])
app.include_router(live.router, prefix="/live", tags=["live"])


@app.get("/", include_in_schema=False)
def root():
    """Root: point to API docs and health."""
    return {"message": "Live Status API", "docs": "/docs", "health": "/health"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
