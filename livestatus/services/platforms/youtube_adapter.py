"""
YouTube adapter. Two phases so the metered Data API is only spent on likely-live channels:

1. Channel Atom feed (free): newest entry older than YOUTUBE_FRESHNESS_HOURS → offline.
2. videos.list?part=snippet,liveStreamingDetails (1 unit per call, 50 ids): live iff
   actualStartTime is set and actualEndTime is not.
"""
import logging
import xml.etree.ElementTree as ET
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, NamedTuple

import httpx

from livestatus.config import settings
from livestatus.core.errors import AdapterFetchError, CredentialsMissingError
from livestatus.core.poll_config import (
    POLL_HTTP_TIMEOUT_SECONDS,
    YOUTUBE_BATCH_SIZE,
    YOUTUBE_FEED_CONCURRENCY,
    YOUTUBE_FRESHNESS_HOURS,
)
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

YOUTUBE_FEED_URL = "https://www.youtube.com/feeds/videos.xml"
YOUTUBE_VIDEOS_URL = "https://www.googleapis.com/youtube/v3/videos"
FEED_USER_AGENT = "Mozilla/5.0 (compatible; livestatus/0.1)"

_ATOM_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "yt": "http://www.youtube.com/xml/schemas/2015",
}


class FeedEntry(NamedTuple):
    video_id: str
    published: datetime


def parse_latest_feed_entry(xml_text: str) -> FeedEntry | None:
    """First <entry> of a channel feed (newest upload). None when the feed has no entries."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise AdapterFetchError(f"Unparseable feed: {e}") from e
    entry = root.find("atom:entry", _ATOM_NS)
    if entry is None:
        return None
    video_id = (entry.findtext("yt:videoId", default="", namespaces=_ATOM_NS) or "").strip()
    published = parse_timestamp(entry.findtext("atom:published", default="", namespaces=_ATOM_NS))
    if not video_id or published is None:
        return None
    return FeedEntry(video_id=video_id, published=published)


def _parse_video(channel_id: str, item: dict[str, Any]) -> Snapshot:
    """videos.list item → Snapshot (live or offline) for the account that owns channel_id."""
    snippet = item.get("snippet") or {}
    details = item.get("liveStreamingDetails") or {}
    is_live = bool(details.get("actualStartTime")) and not details.get("actualEndTime")
    thumbs = snippet.get("thumbnails") or {}
    thumb = (thumbs.get("high") or {}).get("url") or (thumbs.get("default") or {}).get("url")
    viewers = details.get("concurrentViewers")
    try:
        viewer_count = int(viewers) if viewers is not None else None
    except (TypeError, ValueError):
        viewer_count = None
    video_id = item.get("id")
    return Snapshot(
        platform_user_id=channel_id,
        is_live=is_live,
        started_at=parse_timestamp(details.get("actualStartTime")),
        title=snippet.get("title"),
        category=snippet.get("categoryId"),  # numeric category id; name mapping costs quota
        viewer_count=viewer_count,
        stream_url=f"https://youtube.com/watch?v={video_id}" if video_id else None,
        thumbnail_url=thumb,
        raw=item,
    )


class YouTubeAdapter:
    platform = Platform.YOUTUBE.value

    def __init__(
        self,
        *,
        api_key: str | None = None,
        feed_concurrency: int = YOUTUBE_FEED_CONCURRENCY,
        freshness_hours: float = YOUTUBE_FRESHNESS_HOURS,
        batch_size: int = YOUTUBE_BATCH_SIZE,
        timeout: float = POLL_HTTP_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._api_key = (settings.youtube_api_key if api_key is None else api_key).strip()
        self._feed_concurrency = feed_concurrency
        self._freshness = timedelta(hours=freshness_hours)
        self._batch_size = batch_size
        self._timeout = timeout
        self._transport = transport
        self._now = now or (lambda: datetime.now(timezone.utc))

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def _latest_entry(self, client: httpx.Client, channel_id: str) -> FeedEntry | None:
        try:
            r = client.get(
                YOUTUBE_FEED_URL,
                params={"channel_id": channel_id},
                headers={"User-Agent": FEED_USER_AGENT},
            )
        except httpx.HTTPError as e:
            raise AdapterFetchError(f"Feed request failed: {e}") from e
        if not r.is_success:
            raise AdapterFetchError(f"Feed error {r.status_code}")
        return parse_latest_feed_entry(r.text)

    def _probe_feeds(
        self, client: httpx.Client, accounts: list[DueAccount], result: FetchResult
    ) -> dict[str, list[str]]:
        """Phase 1. Fills offline snapshots / errors; returns candidates as video_id → [channel_id]."""
        cutoff = self._now() - self._freshness

        def probe(account: DueAccount) -> tuple[DueAccount, FeedEntry | None, str | None]:
            try:
                return account, self._latest_entry(client, account.platform_user_id), None
            except AdapterFetchError as e:
                return account, None, str(e)

        candidates: dict[str, list[str]] = {}
        with ThreadPoolExecutor(max_workers=self._feed_concurrency, thread_name_prefix="youtube_feed") as executor:
            for account, entry, error in executor.map(probe, accounts):
                cid = account.platform_user_id
                if error is not None:
                    logger.warning("YouTube feed probe failed channel=%s: %s", cid, error)
                    result.errors.append(FetchError(cid, error))
                elif entry is None or entry.published < cutoff:
                    result.snapshots[cid] = Snapshot.offline(cid)
                else:
                    candidates.setdefault(entry.video_id, []).append(cid)
        return candidates

    def _verify_batch(self, client: httpx.Client, video_ids: list[str], owners: dict[str, list[str]]) -> FetchResult:
        """Phase 2 for one batch of ≤50 video ids."""
        out = FetchResult()
        channel_ids = [cid for vid in video_ids for cid in owners[vid]]
        try:
            r = client.get(
                YOUTUBE_VIDEOS_URL,
                params={
                    "part": "snippet,liveStreamingDetails",
                    "id": ",".join(video_ids),
                    "key": self._api_key,
                },
            )
            if not r.is_success:
                raise AdapterFetchError(f"YouTube API {r.status_code}")
            body = r.json()
            if not isinstance(body, dict):
                raise AdapterFetchError("Malformed response: not an object")
            items = body.get("items") or []
            if not isinstance(items, list):
                raise AdapterFetchError("Malformed response: items is not a list")
        except (httpx.HTTPError, ValueError, AdapterFetchError) as e:
            logger.warning("YouTube API batch error (%s videos): %s", len(video_ids), e, exc_info=True)
            out.errors.extend(FetchError(cid, str(e)) for cid in channel_ids)
            return out
        for item in items:
            if not isinstance(item, dict):
                continue
            for cid in owners.get(item.get("id"), []):
                out.snapshots[cid] = _parse_video(cid, item)
        # Video not returned (deleted/private): the API answered, so not live
        for cid in channel_ids:
            if cid not in out.snapshots:
                out.snapshots[cid] = Snapshot.offline(cid)
        return out

    def fetch(self, accounts: list[DueAccount]) -> FetchResult:
        if not accounts:
            return FetchResult()
        if not self.is_configured():
            err = CredentialsMissingError(self.platform, ("YOUTUBE_API_KEY",))
            logger.error("YouTube adapter disabled: %s", err)
            return FetchResult.all_failed(accounts, str(err))

        result = FetchResult()
        with self._client() as client:
            candidates = self._probe_feeds(client, accounts, result)
            for batch in chunked(list(candidates), self._batch_size):
                result.merge(self._verify_batch(client, batch, candidates))
        logger.debug(
            "YouTube: %s accounts, %s candidates, %s live, %s errors",
            len(accounts),
            sum(len(v) for v in candidates.values()),
            sum(1 for s in result.snapshots.values() if s.is_live),
            len(result.errors),
        )
        return result
