from livestatus.models.live_session import LiveSession
from livestatus.models.platform_account import Platform, PlatformAccount
from livestatus.models.status_event import StatusEvent

__all__ = [
    "LiveSession",
    "Platform",
    "PlatformAccount",
    "StatusEvent",
]
