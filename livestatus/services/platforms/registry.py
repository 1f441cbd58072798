"""Registry of platform adapters, keyed by platform id. Add new integrations here."""
import logging

from livestatus.services.platforms.base import PlatformAdapter

logger = logging.getLogger(__name__)

_adapters: dict[str, PlatformAdapter] = {}


def register(adapter: PlatformAdapter) -> None:
    """Register an adapter under its platform id (replaces any existing one)."""
    _adapters[adapter.platform] = adapter
    logger.info("Registered platform adapter: %s", adapter.platform)


def get_adapter(platform: str) -> PlatformAdapter:
    """Get adapter by platform id. Raises KeyError if unknown."""
    key = getattr(platform, "value", platform)
    if key not in _adapters:
        raise KeyError(f"Unknown platform: {key}. Available: {list(_adapters.keys())}")
    return _adapters[key]


def list_platforms() -> list[str]:
    """List registered platform ids."""
    return list(_adapters.keys())


def _init_registry() -> None:
    from livestatus.models.platform_account import Platform
    from livestatus.services.platforms.kick_adapter import KickAdapter
    from livestatus.services.platforms.stub_adapter import StubAdapter
    from livestatus.services.platforms.twitch_adapter import TwitchAdapter
    from livestatus.services.platforms.youtube_adapter import YouTubeAdapter

    register(TwitchAdapter())
    register(YouTubeAdapter())
    register(KickAdapter())
    for platform in (Platform.TIKTOK, Platform.TWITTER, Platform.INSTAGRAM):
        register(StubAdapter(platform.value))


# Register built-in adapters on first import
_init_registry()
