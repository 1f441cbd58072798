"""Protocol for platform adapters. All adapters return the same normalized shape."""
from typing import Protocol

from livestatus.services.platforms.types import DueAccount, FetchResult


class PlatformAdapter(Protocol):
    """Interface for Twitch, YouTube, Kick and the stub platforms. Same contract; only fetch differs."""

    @property
    def platform(self) -> str:
        """Platform id (e.g. 'twitch', 'youtube'); matches platform_accounts.platform."""
        ...

    def fetch(self, accounts: list[DueAccount]) -> FetchResult:
        """
        Resolve live status for a batch of accounts on this platform.
        Returns snapshots keyed by platform_user_id plus per-account errors. Never raises;
        an empty list makes no network calls. Network only, no storage writes.
        """
        ...
