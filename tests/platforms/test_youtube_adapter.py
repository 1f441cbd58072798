"""Tests for the YouTube adapter: free feed probe, then metered videos.list verification."""

import threading
import time
from datetime import datetime, timezone

import httpx
import pytest

from livestatus.core.errors import AdapterFetchError
from livestatus.services.platforms.types import DueAccount
from livestatus.services.platforms.youtube_adapter import YouTubeAdapter, parse_latest_feed_entry

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def feed_xml(video_id: str | None, published: str = "2026-01-01T11:30:00+00:00") -> str:
    entry = ""
    if video_id:
        entry = f"""
  <entry>
    <id>yt:video:{video_id}</id>
    <yt:videoId>{video_id}</yt:videoId>
    <yt:channelId>UCx</yt:channelId>
    <title>Latest upload</title>
    <published>{published}</published>
    <updated>{published}</updated>
  </entry>"""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns:media="http://search.yahoo.com/mrss/" xmlns="http://www.w3.org/2005/Atom">
  <title>Channel</title>{entry}
</feed>"""


def video(video_id: str, *, live: bool = True, ended: bool = False, viewers: str | None = "1234") -> dict:
    details = {}
    if live:
        details["actualStartTime"] = "2026-01-01T11:30:05Z"
        if viewers is not None:
            details["concurrentViewers"] = viewers
    if ended:
        details["actualEndTime"] = "2026-01-01T11:55:00Z"
    return {
        "id": video_id,
        "snippet": {
            "title": f"Stream {video_id}",
            "categoryId": "20",
            "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"}},
        },
        "liveStreamingDetails": details,
    }


class FakeYouTube:
    def __init__(self, feeds, videos=None, *, videos_status=200):
        self.feeds = feeds  # channel_id -> xml text or int status
        self.videos = videos or {}
        self.videos_status = videos_status
        self.video_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/feeds/videos.xml":
            feed = self.feeds.get(request.url.params["channel_id"], 404)
            if isinstance(feed, int):
                return httpx.Response(feed)
            return httpx.Response(200, text=feed)
        if request.url.path == "/youtube/v3/videos":
            assert request.url.params["key"] == "yt-key"
            assert request.url.params["part"] == "snippet,liveStreamingDetails"
            ids = request.url.params["id"].split(",")
            self.video_requests.append(ids)
            if self.videos_status != 200:
                return httpx.Response(self.videos_status, json={"error": {"message": "quotaExceeded"}})
            return httpx.Response(200, json={"items": [self.videos[v] for v in ids if v in self.videos]})
        return httpx.Response(404)


def accounts(*channel_ids):
    return [DueAccount(i, "youtube", cid) for i, cid in enumerate(channel_ids, start=1)]


def adapter(fake, **kwargs):
    return YouTubeAdapter(api_key="yt-key", transport=httpx.MockTransport(fake), now=lambda: NOW, **kwargs)


class TestFeedParsing:
    def test_latest_entry(self):
        entry = parse_latest_feed_entry(feed_xml("vid1"))
        assert entry.video_id == "vid1"
        assert entry.published == datetime(2026, 1, 1, 11, 30, tzinfo=timezone.utc)

    def test_empty_feed(self):
        assert parse_latest_feed_entry(feed_xml(None)) is None

    def test_malformed_feed_raises(self):
        with pytest.raises(AdapterFetchError):
            parse_latest_feed_entry("<feed><entry>")


class TestYouTubeAdapter:
    def test_fresh_upload_verified_live(self):
        fake = FakeYouTube({"UC1": feed_xml("vid1")}, {"vid1": video("vid1")})

        result = adapter(fake).fetch(accounts("UC1"))

        snap = result.snapshots["UC1"]
        assert snap.is_live is True
        assert snap.title == "Stream vid1"
        assert snap.viewer_count == 1234
        assert snap.stream_url == "https://youtube.com/watch?v=vid1"
        assert snap.thumbnail_url == "https://i.ytimg.com/vi/vid1/hqdefault.jpg"
        assert snap.started_at == datetime(2026, 1, 1, 11, 30, 5, tzinfo=timezone.utc)

    def test_stale_feed_is_offline_without_api_call(self):
        fake = FakeYouTube({"UC1": feed_xml("old", published="2025-12-31T06:00:00+00:00"), "UC2": feed_xml(None)})

        result = adapter(fake).fetch(accounts("UC1", "UC2"))

        assert result.snapshots["UC1"].is_live is False
        assert result.snapshots["UC2"].is_live is False
        assert fake.video_requests == []

    def test_ended_or_premiere_video_is_offline(self):
        fake = FakeYouTube(
            {"UC1": feed_xml("ended"), "UC2": feed_xml("upload")},
            {"ended": video("ended", ended=True), "upload": video("upload", live=False)},
        )

        result = adapter(fake).fetch(accounts("UC1", "UC2"))

        assert result.snapshots["UC1"].is_live is False
        assert result.snapshots["UC2"].is_live is False

    def test_video_missing_from_api_is_offline(self):
        fake = FakeYouTube({"UC1": feed_xml("private")}, {})

        result = adapter(fake).fetch(accounts("UC1"))

        assert result.snapshots["UC1"].is_live is False
        assert result.errors == []

    def test_candidates_batched(self):
        feeds = {f"UC{i}": feed_xml(f"v{i}") for i in range(5)}
        fake = FakeYouTube(feeds, {f"v{i}": video(f"v{i}") for i in range(5)})

        result = adapter(fake, batch_size=2).fetch(accounts(*feeds))

        assert sorted(len(ids) for ids in fake.video_requests) == [1, 2, 2]
        assert all(result.snapshots[cid].is_live for cid in feeds)

    def test_feed_failure_is_error_for_that_channel_only(self):
        fake = FakeYouTube({"UC1": 500, "UC2": feed_xml(None)})

        result = adapter(fake).fetch(accounts("UC1", "UC2"))

        assert result.errored_ids() == {"UC1"}
        assert result.snapshots["UC2"].is_live is False

    def test_api_failure_errors_only_candidates(self):
        fake = FakeYouTube({"UC1": feed_xml("vid1"), "UC2": feed_xml(None)}, videos_status=403)

        result = adapter(fake).fetch(accounts("UC1", "UC2"))

        assert result.errored_ids() == {"UC1"}
        assert result.snapshots["UC2"].is_live is False

    def test_missing_api_key_marks_all_unknown(self):
        fake = FakeYouTube({"UC1": feed_xml("vid1")})
        yt = YouTubeAdapter(api_key="", transport=httpx.MockTransport(fake), now=lambda: NOW)

        result = yt.fetch(accounts("UC1", "UC2"))

        assert result.errored_ids() == {"UC1", "UC2"}
        assert "YOUTUBE_API_KEY" in result.errors[0].message

    def test_non_object_api_body_only_errors_its_own_batch(self):
        feeds = {"UC1": feed_xml("bad"), "UC2": feed_xml("good")}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/feeds/videos.xml":
                return httpx.Response(200, text=feeds[request.url.params["channel_id"]])
            if request.url.params["id"] == "bad":
                return httpx.Response(200, json=["unexpected"])
            return httpx.Response(200, json={"items": [video("good")]})

        yt = YouTubeAdapter(api_key="yt-key", batch_size=1, transport=httpx.MockTransport(handler), now=lambda: NOW)

        result = yt.fetch(accounts("UC1", "UC2"))

        assert result.errored_ids() == {"UC1"}
        assert result.snapshots["UC2"].is_live is True

    def test_feed_probes_respect_concurrency_limit(self):
        lock = threading.Lock()
        in_flight = 0
        peak = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal in_flight, peak
            with lock:
                in_flight += 1
                peak = max(peak, in_flight)
            time.sleep(0.02)
            with lock:
                in_flight -= 1
            return httpx.Response(200, text=feed_xml(None))

        channel_ids = [f"UC{i}" for i in range(20)]
        yt = YouTubeAdapter(api_key="yt-key", feed_concurrency=3, transport=httpx.MockTransport(handler), now=lambda: NOW)

        result = yt.fetch(accounts(*channel_ids))

        assert len(result.snapshots) == 20
        assert 1 <= peak <= 3

    def test_empty_input_makes_no_requests(self):
        fake = FakeYouTube({})
        requests = []
        yt = YouTubeAdapter(
            api_key="yt-key",
            transport=httpx.MockTransport(lambda r: requests.append(r) or fake(r)),
            now=lambda: NOW,
        )

        result = yt.fetch([])

        assert result.snapshots == {} and result.errors == []
        assert requests == []
