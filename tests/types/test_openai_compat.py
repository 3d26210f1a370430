import json

from pydantic import ValidationError
import pytest

from aisuite.framework.chat_completion_response import ChatCompletionResponse as AISuiteChatCompletion
from aisuite.framework.choice import Choice as AISuiteChoice
from aisuite.framework.message import (
    ChatCompletionMessageToolCall as AISuiteToolCall,
    Function as AISuiteFunction,
    Message as AISuiteMessage,
)
from openai.types.chat.chat_completion import (
    ChatCompletion as OpenAIChatCompletion,
    Choice as OpenAIChoice,
)
from openai.types.chat.chat_completion_message import ChatCompletionMessage as OpenAIMessage
from openai.types.chat.chat_completion_message_tool_call import (
    ChatCompletionMessageToolCall as OpenAIToolCall,
    Function as OpenAIFunction,
)

from promptchain.types.core import Message
from promptchain.types.openai_compat import (
    ChatCompletion,
    ChatCompletionMessage,
    ChatCompletionMessageToolCall,
    ChatCompletionMessageToolCallFunction,
    convert_response,
)


@pytest.fixture
def content():
    return ["raindrops on roses", "whiskers on kittens", "warm woolen mittens"]


@pytest.fixture
def tool_call():
    return {"name": "add", "arguments": json.dumps({"x": 1, "y": 2})}


def openai_completion(messages: list[OpenAIMessage], finish_reason: str = "stop") -> OpenAIChatCompletion:
    return OpenAIChatCompletion(
        id="test123",
        created=1234567,
        model="gpt-fake",
        object="chat.completion",
        choices=[
            OpenAIChoice(finish_reason=finish_reason, index=i, message=message) for i, message in enumerate(messages)
        ],
    )


def aisuite_completion(messages: list[AISuiteMessage], finish_reason: str = "stop") -> AISuiteChatCompletion:
    choices = []
    for message in messages:
        choice = AISuiteChoice()
        choice.finish_reason = finish_reason
        choice.message = message
        choices.append(choice)
    completion = AISuiteChatCompletion()
    completion.choices = choices
    return completion


class TestOpenAIResponses:
    def test_content(self, content):
        completion = openai_completion([OpenAIMessage(role="assistant", content=c) for c in content])

        converted = convert_response(completion)

        assert isinstance(converted, ChatCompletion)
        assert converted.id == "test123"
        assert [m.content for m in converted.messages] == content
        assert all(choice.finish_reason == "stop" for choice in converted.choices)
        assert all(isinstance(m, ChatCompletionMessage) and m.role == "assistant" for m in converted.messages)

    def test_tool_call(self, tool_call):
        completion = openai_completion(
            [
                OpenAIMessage(
                    role="assistant",
                    tool_calls=[OpenAIToolCall(id="tool42", function=OpenAIFunction(**tool_call), type="function")],
                )
            ],
            finish_reason="tool_calls",
        )

        message = convert_response(completion).messages[0]

        assert message.content is None
        assert isinstance(message.tool_calls[0], ChatCompletionMessageToolCall)
        assert message.tool_calls[0].id == "tool42"
        assert message.tool_calls[0].function == ChatCompletionMessageToolCallFunction(**tool_call)


class TestAISuiteResponses:
    def test_content(self, content):
        completion = aisuite_completion(
            [AISuiteMessage(role="assistant", content=c, tool_calls=None, refusal=None) for c in content]
        )

        converted = convert_response(completion)

        assert [m.content for m in converted.messages] == content
        assert converted.choices[0].finish_reason == "stop"

    def test_tool_call(self, tool_call):
        completion = aisuite_completion(
            [
                AISuiteMessage(
                    role="assistant",
                    content=None,
                    tool_calls=[AISuiteToolCall(id="tool42", function=AISuiteFunction(**tool_call), type="function")],
                    refusal=None,
                )
            ],
            finish_reason="tool_calls",
        )

        converted = convert_response(completion)

        assert converted.choices[0].finish_reason == "tool_calls"
        assert converted.messages[0].tool_calls[0].function.name == "add"


class TestOtherResponses:
    def test_passthrough(self):
        completion = ChatCompletion.model_validate({"choices": [{"message": {"content": "hi"}}]})
        assert convert_response(completion) is completion

    def test_dict(self):
        converted = convert_response(
            {"id": 7, "choices": [{"finish_reason": "length", "message": {"role": "assistant", "content": "hi"}}]}
        )
        assert converted.id == 7
        assert converted.choices[0].finish_reason == "length"
        assert converted.messages[0].content == "hi"

    def test_extra_fields_are_ignored(self):
        converted = convert_response(
            {"choices": [{"index": 0, "logprobs": None, "message": {"content": "hi", "audio": None}}]}
        )
        assert converted.messages[0].model_dump(exclude_none=True) == {"role": "assistant", "content": "hi"}

    def test_missing_choices(self):
        with pytest.raises(ValidationError):
            convert_response({"error": "overloaded"})

    def test_messages_are_messages(self):
        converted = convert_response({"choices": [{"message": {"content": "hi"}}]})
        assert isinstance(converted.messages[0], Message)
