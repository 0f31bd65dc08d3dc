"""Notification sub-package — emergency delivery with retry and backoff."""

from mood_garden.notifications.handlers import (
    EmergencyNotifier,
    NotificationDispatcher,
    RetryPolicy,
    create_dispatcher,
)

__all__ = ["EmergencyNotifier", "NotificationDispatcher", "RetryPolicy", "create_dispatcher"]
