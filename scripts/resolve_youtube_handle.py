#!/usr/bin/env python3
"""
Resolve a YouTube @handle to its channel id (the platform_user_id the poll job expects).
Needs YOUTUBE_API_KEY in .env. Costs 1 quota unit.
Run: python scripts/resolve_youtube_handle.py @somehandle
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx

from livestatus.config import settings
from livestatus.core.poll_config import POLL_HTTP_TIMEOUT_SECONDS

YOUTUBE_CHANNELS_URL = "https://www.googleapis.com/youtube/v3/channels"


def main():
    if len(sys.argv) != 2:
        print("Usage: resolve_youtube_handle.py @handle", file=sys.stderr)
        sys.exit(2)
    handle = sys.argv[1].strip()
    if not handle.startswith("@"):
        handle = "@" + handle
    if not settings.youtube_api_key:
        print("YOUTUBE_API_KEY is not set.", file=sys.stderr)
        sys.exit(1)

    try:
        r = httpx.get(
            YOUTUBE_CHANNELS_URL,
            params={"forHandle": handle, "part": "id,snippet", "key": settings.youtube_api_key},
            timeout=POLL_HTTP_TIMEOUT_SECONDS,
        )
        r.raise_for_status()
    except httpx.HTTPError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    items = r.json().get("items") or []
    if not items:
        print(f"Handle {handle} not found.")
        sys.exit(1)
    channel = items[0]
    print(f"Channel ID: {channel['id']}")
    print(f"Title: {(channel.get('snippet') or {}).get('title')}")
    print(f"Channel URL: https://www.youtube.com/channel/{channel['id']}")


if __name__ == "__main__":
    main()
