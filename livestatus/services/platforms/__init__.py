"""
Platform adapters: Twitch, YouTube, Kick, plus offline-only stubs.
Each adapter queries its platform in its own way but returns the same FetchResult shape
so reconciliation stays platform-agnostic.
"""
from livestatus.services.platforms.base import PlatformAdapter
from livestatus.services.platforms.registry import get_adapter, list_platforms
from livestatus.services.platforms.types import DueAccount, FetchError, FetchResult, Snapshot

__all__ = [
    "DueAccount",
    "FetchError",
    "FetchResult",
    "PlatformAdapter",
    "Snapshot",
    "get_adapter",
    "list_platforms",
]
