"""Kick adapter. Public channel endpoint, one call per slug; no batch API, so small chunks with a pause between them."""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx

from livestatus.config import settings
from livestatus.core.poll_config import KICK_CHUNK_DELAY_MS, KICK_CONCURRENCY, POLL_HTTP_TIMEOUT_SECONDS
from livestatus.models.platform_account import Platform
from livestatus.services.platforms.types import (
    DueAccount,
    FetchError,
    FetchResult,
    Snapshot,
    chunked,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

KICK_CHANNEL_URL = "https://kick.com/api/v1/channels/{slug}"


def parse_channel(platform_user_id: str, data: dict[str, Any]) -> Snapshot:
    """
    Channel payload → Snapshot keyed by the account's platform_user_id. The channel's numeric
    id is carried as canonical_id (accounts may be stored by slug).
    """
    channel_id = data.get("id")
    canonical_id = str(channel_id) if channel_id is not None else None
    stream = data.get("livestream")
    if not stream or not isinstance(stream, dict):
        return Snapshot(platform_user_id=platform_user_id, is_live=False, raw=data, canonical_id=canonical_id)
    categories = stream.get("categories") or []
    category = categories[0].get("name") if categories and isinstance(categories[0], dict) else None
    thumbnail = stream.get("thumbnail")
    viewers = stream.get("viewer_count")
    slug = data.get("slug")
    return Snapshot(
        platform_user_id=platform_user_id,
        is_live=True,
        started_at=parse_timestamp(stream.get("start_time") or stream.get("created_at")),
        title=stream.get("session_title"),
        category=category,
        viewer_count=int(viewers) if isinstance(viewers, (int, float)) else None,
        stream_url=f"https://kick.com/{slug}" if slug else None,
        thumbnail_url=thumbnail.get("url") if isinstance(thumbnail, dict) else None,
        raw=stream,
        canonical_id=canonical_id,
    )


class KickAdapter:
    platform = Platform.KICK.value

    def __init__(
        self,
        *,
        concurrency: int = KICK_CONCURRENCY,
        chunk_delay_ms: int = KICK_CHUNK_DELAY_MS,
        timeout: float = POLL_HTTP_TIMEOUT_SECONDS,
        user_agent: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._concurrency = concurrency
        self._chunk_delay = chunk_delay_ms / 1000.0
        self._timeout = timeout
        self._user_agent = user_agent or settings.kick_user_agent
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={"User-Agent": self._user_agent, "Accept": "application/json"},
        )

    def _fetch_one(self, client: httpx.Client, account: DueAccount) -> Snapshot | FetchError:
        # Prefer the slug (username); fall back to platform_user_id when it is the slug
        slug = (account.platform_username or account.platform_user_id or "").strip()
        uid = account.platform_user_id
        try:
            r = client.get(KICK_CHANNEL_URL.format(slug=slug))
        except httpx.HTTPError as e:
            logger.warning("Kick fetch error (%s): %s", slug, e)
            return FetchError(uid, f"Request failed: {e}")
        if r.status_code == 404:
            return FetchError(uid, "Channel not found")
        if not r.is_success:
            logger.warning("Kick fetch error (%s): %s", slug, r.status_code)
            return FetchError(uid, f"Kick API {r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            return FetchError(uid, f"Malformed response: {e}")
        if not isinstance(data, dict):
            return FetchError(uid, "Malformed response: not an object")
        snap = parse_channel(uid, data)
        if snap.canonical_id != uid:
            logger.debug("Kick account %s resolves to channel id %s", uid, snap.canonical_id)
        return snap

    def fetch(self, accounts: list[DueAccount]) -> FetchResult:
        if not accounts:
            return FetchResult()
        result = FetchResult()
        chunks = chunked(accounts, self._concurrency)
        with self._client() as client, ThreadPoolExecutor(
            max_workers=self._concurrency, thread_name_prefix="kick_channel"
        ) as executor:
            for i, chunk in enumerate(chunks):
                for outcome in executor.map(lambda a: self._fetch_one(client, a), chunk):
                    if isinstance(outcome, FetchError):
                        result.errors.append(outcome)
                    else:
                        result.snapshots[outcome.platform_user_id] = outcome
                if self._chunk_delay and i < len(chunks) - 1:
                    time.sleep(self._chunk_delay)
        return result
