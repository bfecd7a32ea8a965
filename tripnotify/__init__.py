"""tripnotify: resilient server-push notifications for the trip-sharing platform."""

__version__ = "1.0.0"
