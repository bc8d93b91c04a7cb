from .coordinator import BroadcastCoordinator
from .customised_types import ChatMessageType, SessionState
from .protocol import ChatMessage, make_chat_frame, parse_chat_message, utc_timestamp
from .server import start_chat_server
from .session import ClientSession
