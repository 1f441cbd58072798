"""Normalized types for all platform adapters. Same shape regardless of Twitch/YouTube/Kick/etc."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class DueAccount:
    """Detached view of a PlatformAccount handed to adapters (safe to share across worker threads)."""

    id: int
    platform: str
    platform_user_id: str
    platform_username: str | None = None

    @classmethod
    def from_model(cls, account: Any) -> "DueAccount":
        platform = account.platform
        return cls(
            id=account.id,
            platform=getattr(platform, "value", platform),
            platform_user_id=account.platform_user_id,
            platform_username=account.platform_username,
        )


class Snapshot:
    """
    One "is this account live right now" fact, produced fresh every run and discarded after
    reconciliation. canonical_id is the platform's own id for the channel when it differs from
    the account's platform_user_id (e.g. Kick numeric id for an account stored by slug).
    """

    __slots__ = (
        "platform_user_id",
        "is_live",
        "started_at",
        "title",
        "category",
        "viewer_count",
        "stream_url",
        "thumbnail_url",
        "raw",
        "canonical_id",
    )

    def __init__(
        self,
        *,
        platform_user_id: str,
        is_live: bool,
        started_at: datetime | None = None,
        title: str | None = None,
        category: str | None = None,
        viewer_count: int | None = None,
        stream_url: str | None = None,
        thumbnail_url: str | None = None,
        raw: Any = None,
        canonical_id: str | None = None,
    ):
        self.platform_user_id = platform_user_id
        self.is_live = bool(is_live)
        self.started_at = started_at
        self.title = title
        self.category = category
        self.viewer_count = viewer_count
        self.stream_url = stream_url
        self.thumbnail_url = thumbnail_url
        self.raw = raw
        self.canonical_id = canonical_id or platform_user_id

    @classmethod
    def offline(cls, platform_user_id: str, raw: Any = None) -> "Snapshot":
        return cls(platform_user_id=platform_user_id, is_live=False, raw=raw)

    def __repr__(self) -> str:
        return f"Snapshot(platform_user_id={self.platform_user_id!r}, is_live={self.is_live}, title={self.title!r})"


@dataclass(frozen=True)
class FetchError:
    """Account whose status could not be determined this run (not the same as offline)."""

    platform_user_id: str
    message: str


@dataclass
class FetchResult:
    """Adapter output: snapshots keyed by platform_user_id plus per-account errors."""

    snapshots: dict[str, Snapshot] = field(default_factory=dict)
    errors: list[FetchError] = field(default_factory=list)

    @classmethod
    def all_failed(cls, accounts: list[DueAccount], message: str) -> "FetchResult":
        """Global adapter failure: every requested account is an error for this run."""
        return cls(errors=[FetchError(a.platform_user_id, message) for a in accounts])

    def merge(self, other: "FetchResult") -> None:
        self.snapshots.update(other.snapshots)
        self.errors.extend(other.errors)

    def errored_ids(self) -> set[str]:
        return {e.platform_user_id for e in self.errors}


def parse_timestamp(value: Any) -> datetime | None:
    """ISO-8601 string from a platform API → aware UTC datetime. None for missing/unparseable."""
    if not value or not isinstance(value, str):
        return None
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def chunked(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]
