"""Notification client: stream transport, frame parser, reconnect supervisor, store, session."""

from tripnotify.client.api import NotificationsAPI
from tripnotify.client.auth import ClerkSessionTokenProvider, static_token
from tripnotify.client.parser import Frame, FrameParser, decode_notification
from tripnotify.client.session import NotificationSession
from tripnotify.client.store import NotificationStore
from tripnotify.client.supervisor import ConnectionState, ReconnectSupervisor, RetryPolicy
from tripnotify.client.transport import StreamTransport

__all__ = [
    "ClerkSessionTokenProvider",
    "ConnectionState",
    "Frame",
    "FrameParser",
    "NotificationSession",
    "NotificationStore",
    "NotificationsAPI",
    "ReconnectSupervisor",
    "RetryPolicy",
    "StreamTransport",
    "decode_notification",
    "static_token",
]
