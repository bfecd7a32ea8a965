"""Frame parser for the notification event stream.

Frames are separated by a blank line. Within a frame, ``event:`` names the
event and one or more ``data:`` lines carry the payload; lines starting with
``:`` are comments (the service uses them as heartbeats).
"""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from tripnotify.schemas.notification import NotificationItem, parse_notification

logger = structlog.get_logger()

NOTIFICATION_EVENT = "notification"
DEFAULT_EVENT = "message"
FRAME_DELIMITER = "\n\n"


@dataclass(frozen=True)
class Frame:
    event: str
    data: str


class FrameParser:
    """Incremental splitter: feed raw chunks, get back complete frames."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Buffered text not yet terminated by a blank line."""
        return self._buffer

    def reset(self) -> None:
        self._decoder.reset()
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> list[Frame]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer = (self._buffer + chunk).replace("\r\n", "\n")

        frames: list[Frame] = []
        boundary = self._buffer.find(FRAME_DELIMITER)
        while boundary != -1:
            raw = self._buffer[:boundary]
            self._buffer = self._buffer[boundary + len(FRAME_DELIMITER):]
            frame = _parse_frame(raw)
            if frame is not None:
                frames.append(frame)
            boundary = self._buffer.find(FRAME_DELIMITER)
        return frames


def _parse_frame(raw: str) -> Frame | None:
    event = DEFAULT_EVENT
    data_lines: list[str] = []
    for line in raw.split("\n"):
        line = line.strip()
        if not line or line.startswith(":"):
            continue
        if line.startswith("event:"):
            event = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data_lines.append(line[len("data:"):].strip())
    if not data_lines and event == DEFAULT_EVENT:
        # comment-only frame (heartbeat)
        return None
    return Frame(event=event, data="\n".join(data_lines))


def decode_notification(frame: Frame) -> NotificationItem | None:
    """Decode a notification frame. Anything else, or anything malformed, yields None."""
    if frame.event != NOTIFICATION_EVENT or not frame.data:
        return None
    try:
        payload = json.loads(frame.data)
    except json.JSONDecodeError as exc:
        logger.warning("notification_payload_invalid", reason="json", error=str(exc), preview=frame.data[:200])
        return None
    try:
        return parse_notification(payload)
    except ValidationError as exc:
        logger.warning(
            "notification_payload_invalid",
            reason="schema",
            errors=exc.error_count(),
            preview=frame.data[:200],
        )
        return None
