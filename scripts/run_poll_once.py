#!/usr/bin/env python3
"""
Run one poll (same code path as the scheduler tick) and print the result and outcome counts.
Run: python scripts/run_poll_once.py
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from livestatus.scheduler.poll_job import run_poll_job
from livestatus.services.live_status import get_poll_job_heartbeat


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    try:
        result = run_poll_job()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    hb = get_poll_job_heartbeat()
    print(f"Done. processed={result['processed']} outcomes={hb['last_run_outcomes']}")


if __name__ == "__main__":
    main()
