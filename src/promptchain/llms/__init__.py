"""Model units backed by provider APIs."""

from .chat import ChatLLM, ChatParams

__all__ = ["ChatLLM", "ChatParams"]
