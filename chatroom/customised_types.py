from enum import Enum


class ChatMessageType(str, Enum):
    MESSAGE = "message"
    ANNOUNCE = "announce"


class SessionState(str, Enum):
    CONNECTED = "connected"
    NAMED = "named"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
