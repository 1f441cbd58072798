"""Platforms with no usable live-detection surface. Every account resolves offline, no network call."""
import logging

from livestatus.services.platforms.types import DueAccount, FetchResult, Snapshot

logger = logging.getLogger(__name__)


class StubAdapter:
    """Keeps accounts on these platforms in the schedule until a real integration exists."""

    def __init__(self, platform: str) -> None:
        self.platform = platform

    def fetch(self, accounts: list[DueAccount]) -> FetchResult:
        result = FetchResult()
        for account in accounts:
            result.snapshots[account.platform_user_id] = Snapshot.offline(
                account.platform_user_id,
                raw={"platform": self.platform, "username": account.platform_username},
            )
        return result
