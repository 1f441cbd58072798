"""Twitch adapter. Helix /streams with an app access token (client credentials), 100 user ids per call."""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import httpx

from livestatus.config import settings
from livestatus.core.errors import AdapterFetchError, CredentialsMissingError
from livestatus.core.poll_config import POLL_HTTP_TIMEOUT_SECONDS, TWITCH_BATCH_SIZE
from livestatus.models.platform_account import Platform
from livestatus.services.platforms.credentials import TokenCache
from livestatus.services.platforms.types import (
    DueAccount,
    FetchError,
    FetchResult,
    Snapshot,
    chunked,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
TWITCH_STREAMS_URL = "https://api.twitch.tv/helix/streams"
THUMBNAIL_WIDTH = 1280
THUMBNAIL_HEIGHT = 720
MAX_PARALLEL_CHUNKS = 4


def _thumbnail(template: str | None) -> str | None:
    if not template:
        return None
    return template.replace("{width}", str(THUMBNAIL_WIDTH)).replace("{height}", str(THUMBNAIL_HEIGHT))


def _parse_stream(stream: dict[str, Any]) -> Snapshot | None:
    """One entry of Helix streams data[] → live Snapshot. None when user_id is missing."""
    if not isinstance(stream, dict):
        return None
    user_id = stream.get("user_id")
    if not user_id:
        return None
    login = stream.get("user_login") or ""
    viewers = stream.get("viewer_count")
    return Snapshot(
        platform_user_id=str(user_id),
        is_live=True,
        started_at=parse_timestamp(stream.get("started_at")),
        title=stream.get("title"),
        category=stream.get("game_name") or None,
        viewer_count=int(viewers) if isinstance(viewers, (int, float)) else None,
        stream_url=f"https://twitch.tv/{login}" if login else None,
        thumbnail_url=_thumbnail(stream.get("thumbnail_url")),
        raw=stream,
    )


class TwitchAdapter:
    platform = Platform.TWITCH.value

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        batch_size: int = TWITCH_BATCH_SIZE,
        timeout: float = POLL_HTTP_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        self._client_id = (settings.twitch_client_id if client_id is None else client_id).strip()
        self._client_secret = (settings.twitch_client_secret if client_secret is None else client_secret).strip()
        self._batch_size = batch_size
        self._timeout = timeout
        self._transport = transport
        self.tokens = token_cache or TokenCache(self._request_app_token)

    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def _request_app_token(self) -> tuple[str, float]:
        """Client-credentials grant. Returns (access_token, expires_in seconds)."""
        logger.info("Twitch: requesting app access token")
        with self._client() as c:
            r = c.post(
                TWITCH_TOKEN_URL,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                },
            )
        if not r.is_success:
            raise AdapterFetchError(f"Twitch auth failed: {r.status_code} {r.text[:200] if r.text else ''}")
        try:
            data = r.json()
            return data["access_token"], float(data.get("expires_in") or 0)
        except (ValueError, KeyError, TypeError) as e:
            raise AdapterFetchError(f"Twitch auth returned malformed body: {e}") from e

    def _fetch_chunk(self, client: httpx.Client, token: str, chunk: list[DueAccount]) -> FetchResult:
        out = FetchResult()
        user_ids = list(dict.fromkeys(a.platform_user_id for a in chunk))
        if not user_ids:
            return out
        headers = {"Client-ID": self._client_id, "Authorization": f"Bearer {token}"}
        params = [("user_id", uid) for uid in user_ids] + [("first", str(len(user_ids)))]
        try:
            r = client.get(TWITCH_STREAMS_URL, params=params, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Twitch batch request failed (%s ids): %s", len(user_ids), e, exc_info=True)
            out.errors.extend(FetchError(uid, f"Request failed: {e}") for uid in user_ids)
            return out
        if r.status_code == 401:
            # Token revoked or expired early; next caller gets a fresh one
            self.tokens.invalidate(token)
        if not r.is_success:
            logger.warning("Twitch batch error: %s (%s ids)", r.status_code, len(user_ids))
            out.errors.extend(FetchError(uid, f"API error {r.status_code}") for uid in user_ids)
            return out
        try:
            body = r.json()
        except ValueError as e:
            out.errors.extend(FetchError(uid, f"Malformed response: {e}") for uid in user_ids)
            return out
        if not isinstance(body, dict):
            logger.warning("Twitch batch returned %s instead of an object (%s ids)", type(body).__name__, len(user_ids))
            out.errors.extend(FetchError(uid, "Malformed response: not an object") for uid in user_ids)
            return out
        streams = body.get("data") or []
        if not isinstance(streams, list):
            out.errors.extend(FetchError(uid, "Malformed response: data is not a list") for uid in user_ids)
            return out
        requested = set(user_ids)
        for stream in streams:
            snap = _parse_stream(stream)
            if snap is not None and snap.platform_user_id in requested:
                out.snapshots[snap.platform_user_id] = snap
        # Not in the live list = offline (confirmed by a successful call)
        for uid in user_ids:
            if uid not in out.snapshots:
                out.snapshots[uid] = Snapshot.offline(uid)
        return out

    def fetch(self, accounts: list[DueAccount]) -> FetchResult:
        if not accounts:
            return FetchResult()
        if not self.is_configured():
            err = CredentialsMissingError(self.platform, ("TWITCH_CLIENT_ID", "TWITCH_CLIENT_SECRET"))
            logger.error("Twitch adapter disabled: %s", err)
            return FetchResult.all_failed(accounts, str(err))
        try:
            token = self.tokens.get_token()
        except Exception as e:
            # Global failure (auth): every account is unknown this run
            logger.error("Twitch adapter critical failure (token): %s", e)
            return FetchResult.all_failed(accounts, f"Auth failed: {e}")

        result = FetchResult()
        chunks = chunked(accounts, self._batch_size)
        with self._client() as client:
            with ThreadPoolExecutor(
                max_workers=min(len(chunks), MAX_PARALLEL_CHUNKS),
                thread_name_prefix="twitch_chunk",
            ) as executor:
                for part in executor.map(lambda ch: self._fetch_chunk(client, token, ch), chunks):
                    result.merge(part)
        logger.debug(
            "Twitch: %s accounts, %s live, %s errors",
            len(accounts),
            sum(1 for s in result.snapshots.values() if s.is_live),
            len(result.errors),
        )
        return result
