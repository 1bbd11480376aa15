"""notifsync - Background sync controller for a notification feed."""

from importlib.metadata import version

__version__ = version("notifsync")

from notifsync.client import ApiResult, HttpNotificationApi, NotificationApi
from notifsync.core.manager import SyncManager

__all__ = [
    "ApiResult",
    "HttpNotificationApi",
    "NotificationApi",
    "SyncManager",
]
