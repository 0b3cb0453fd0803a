"""
Push notifications to the mobile app (Expo).
"""

from .push import (
    PushMessage,
    ExpoPushClient,
    PushNotifier,
    expo_client,
    get_push_client,
    get_push_notifier,
)

__all__ = [
    "PushMessage",
    "ExpoPushClient",
    "PushNotifier",
    "expo_client",
    "get_push_client",
    "get_push_notifier",
]
