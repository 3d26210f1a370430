"""OpenAI-compatible chat completion models.

Responses from any provider reachable through aisuite are normalised into these models,
so downstream code only ever sees one response shape.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pydantic import BaseModel

from aisuite.framework import ChatCompletionResponse as AISuiteChatCompletion
from openai.types.chat import ChatCompletion as OpenAIChatCompletion

from .core import Message

logger = logging.getLogger(__name__)


class ChatCompletionMessageToolCallFunction(BaseModel, extra="ignore"):
    name: str
    arguments: str


class ChatCompletionMessageToolCall(BaseModel, extra="ignore"):
    id: str
    function: ChatCompletionMessageToolCallFunction
    type: Literal["function"] = "function"


class ChatCompletionMessage(Message, extra="ignore"):
    """A candidate message returned by the model; content may be empty when the model calls a tool."""

    role: Literal["assistant", "system", "tool", "user"] = "assistant"
    content: str | None = None
    tool_calls: list[ChatCompletionMessageToolCall] | None = None
    refusal: str | None = None


class ChatCompletionChoice(BaseModel, extra="ignore"):
    finish_reason: Literal["stop", "length", "tool_calls", "content_filter", "function_call"] | None = None
    message: ChatCompletionMessage


class ChatCompletion(BaseModel, extra="ignore"):
    id: int | str | None = None
    choices: list[ChatCompletionChoice]

    @property
    def messages(self) -> list[ChatCompletionMessage]:
        """Candidate messages in choice order."""
        return [choice.message for choice in self.choices]


def convert_response(response: OpenAIChatCompletion | AISuiteChatCompletion | dict[str, Any]) -> ChatCompletion:
    """Unify provider response object types.

    Raises
    ------
    pydantic.ValidationError
        If the payload does not describe a chat completion.
    """
    if isinstance(response, ChatCompletion):
        return response

    if isinstance(response, OpenAIChatCompletion):
        return ChatCompletion.model_validate(response.model_dump())

    if isinstance(response, dict):
        return ChatCompletion.model_validate(response)

    choices = []
    for choice in response.choices:
        message = ChatCompletionMessage.model_validate(choice.message.model_dump())
        choices.append(
            ChatCompletionChoice(
                message=message,
                finish_reason=getattr(choice, "finish_reason", None),
            )
        )

    return ChatCompletion(id=getattr(response, "id", None), choices=choices)
