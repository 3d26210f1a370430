"""Typed payloads shared by templates, memories and model units."""

from .base import JSON
from .core import AssistantMessage, Conversation, Message, Role, SystemMessage, UserMessage
from .openai_compat import ChatCompletion, ChatCompletionChoice, ChatCompletionMessage, convert_response

__all__ = [
    "JSON",
    "Role",
    "Message",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "Conversation",
    "ChatCompletion",
    "ChatCompletionChoice",
    "ChatCompletionMessage",
    "convert_response",
]
