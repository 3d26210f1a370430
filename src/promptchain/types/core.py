from __future__ import annotations

from typing import Literal, Self

from pydantic import BaseModel, Field

from ..utilities import format_json

Role = Literal["assistant", "system", "tool", "user"]


class Message(BaseModel):
    """A role-tagged chat turn; the unit recorded by conversational memories."""

    role: Role = Field(description="The role of the message author.")
    content: str = Field(description="The contents of the message.")

    def __repr__(self):
        return format_json(self.model_dump())


class SystemMessage(Message):
    role: Literal["system"] = "system"


class UserMessage(Message):
    role: Literal["user"] = "user"


class AssistantMessage(Message):
    role: Literal["assistant"] = "assistant"


class ConversationBuilder:
    def __init__(self):
        self.messages: list[Message] = []

    def add_system(self, content: str) -> Self:
        """Append a system message to the conversation."""
        self.messages.append(SystemMessage(content=content))
        return self

    def add_user(self, content: str) -> Self:
        """Append a user message to the conversation."""
        self.messages.append(UserMessage(content=content))
        return self

    def add_assistant(self, content: str) -> Self:
        """Append an assistant message to the conversation."""
        self.messages.append(AssistantMessage(content=content))
        return self

    def build(self) -> Conversation:
        """Build a Conversation from the added messages."""
        return Conversation(messages=self.messages)


class Conversation(BaseModel):
    """An ordered messages array, as sent to chat endpoints."""

    messages: list[Message] = Field(description="The messages of the conversation.", min_length=1)

    def __repr__(self):
        return format_json(self.model_dump())

    @classmethod
    def builder(cls) -> ConversationBuilder:
        """Obtain a ConversationBuilder for constructing a Conversation.

        Examples
        --------
        >>> conversation = Conversation.builder().add_system("Be brief.").add_user("Hi!").build()
        >>> [m.role for m in conversation.messages]
        ['system', 'user']
        """
        return ConversationBuilder()
