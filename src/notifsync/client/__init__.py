"""Notification service clients.

This package provides:
- NotificationApi: Base ABC for any service client
- ApiResult: Payload-or-error outcome of one remote call
- HttpNotificationApi: REST implementation over httpx
"""

from notifsync.client.base import ApiResult, NotificationApi
from notifsync.client.http import HttpNotificationApi

__all__ = ["ApiResult", "NotificationApi", "HttpNotificationApi"]
