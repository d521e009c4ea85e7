"""Feed entries: a message value together with its key and receive time."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

from .crypto import digest_to_ssb_id
from .encoding import ssb_sha256
from .errors import FeedDigestMismatchError, InvalidJsonError
from .message import Message


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _message_key(value: Any) -> str:
    return "%" + digest_to_ssb_id(ssb_sha256(value))


@dataclass
class Feed:
    """A stored feed entry as returned by history and feed streams."""

    key: str
    value: Any
    timestamp: float
    rts: float | None = None

    def into_message(self) -> Message:
        """Verify the entry's value and return it as a message."""
        return Message.from_value(self.value)

    @classmethod
    def from_message(cls, message: Message) -> Feed:
        """Wrap a message in a new entry stamped with the current time."""
        return cls(
            key=_message_key(message.value),
            value=message.value,
            timestamp=time.time(),
            rts=None,
        )

    @classmethod
    def from_slice(cls, data: bytes | str) -> Feed:
        """Parse an entry from JSON and check that its key matches its value."""
        try:
            raw = json.loads(data)
        except ValueError as err:
            raise InvalidJsonError() from err
        if not isinstance(raw, dict):
            raise InvalidJsonError()
        key = raw.get("key")
        timestamp = raw.get("timestamp")
        rts = raw.get("rts")
        if not isinstance(key, str) or "value" not in raw or not _is_number(timestamp):
            raise InvalidJsonError()
        if rts is not None and not _is_number(rts):
            raise InvalidJsonError()

        feed = cls(
            key=key,
            value=raw["value"],
            timestamp=float(timestamp),
            rts=None if rts is None else float(rts),
        )
        if _message_key(feed.value) != feed.key:
            raise FeedDigestMismatchError()
        return feed

    def __str__(self) -> str:
        return json.dumps(
            {"key": self.key, "value": self.value, "timestamp": self.timestamp, "rts": self.rts},
            separators=(",", ":"),
            ensure_ascii=False,
        )