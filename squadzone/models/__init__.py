from .conversation import Conversation
from .message import Message
from .user import User

__all__ = ["Conversation", "Message", "User"]
