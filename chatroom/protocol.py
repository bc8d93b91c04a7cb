import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .customised_types import ChatMessageType

# Wire field names are fixed for browser frontend compatibility.
FIELD_TYPE = "MessageType"
FIELD_USERNAME = "Username"
FIELD_TIMESTAMP = "Timestamp"
FIELD_TEXT = "Text"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """RFC3339 UTC timestamp with second precision."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class ChatMessage:
    message_type: str = ""
    username: str = ""
    timestamp: str = ""
    text: str = ""

    @classmethod
    def announce(cls, username: str) -> "ChatMessage":
        return cls(
            message_type=ChatMessageType.ANNOUNCE.value,
            username=username,
            text=f"{username} has joined the chat room",
        )

    @classmethod
    def message(cls, username: str, text: str) -> "ChatMessage":
        return cls(
            message_type=ChatMessageType.MESSAGE.value,
            username=username,
            text=text,
        )

    def stamped(self, timestamp: Optional[str] = None) -> "ChatMessage":
        """Copy of this message carrying a server-assigned timestamp."""
        return replace(self, timestamp=timestamp or utc_timestamp())

    def to_dict(self) -> Dict[str, str]:
        return {
            FIELD_TYPE: self.message_type,
            FIELD_USERNAME: self.username,
            FIELD_TIMESTAMP: self.timestamp,
            FIELD_TEXT: self.text,
        }


def make_chat_frame(message: ChatMessage) -> str:
    return json.dumps(message.to_dict())


def parse_chat_message(raw: Any) -> Optional[ChatMessage]:
    """Decode one inbound frame.

    Missing fields decode as empty strings. Returns None when the frame is not
    a JSON object or a known field holds a non-string value.
    """
    try:
        frame = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
        return None
    if not isinstance(frame, dict):
        return None

    values = {}
    for attr, key in (
        ("message_type", FIELD_TYPE),
        ("username", FIELD_USERNAME),
        ("timestamp", FIELD_TIMESTAMP),
        ("text", FIELD_TEXT),
    ):
        value = frame.get(key)
        if value is None:
            value = ""
        if not isinstance(value, str):
            return None
        values[attr] = value
    return ChatMessage(**values)
