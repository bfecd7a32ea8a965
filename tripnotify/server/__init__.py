"""Notification service: FastAPI routes, SSE fan-out, in-memory storage."""
