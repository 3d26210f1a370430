"""Chat model unit backed by an aisuite client.

ChatLLM sends a list of Messages to a chat completions endpoint and returns every candidate
message. Any provider reachable through aisuite works; the model is named as
'provider:identifier' (e.g. 'openai:gpt-4o').

Per-call overrides are passed as an explicit ChatParams object rather than keyword arguments.

API keys resolve in this order: the `api_key` argument, then the `<PROVIDER>_API_KEY`
environment variable. A caller-supplied client is used as-is.

Failures are reported as:
- TransportError, when the request itself fails;
- ProtocolError, when the response is not a chat completion (the raw response is attached).

The core never retries; ChatLLM retries TransportErrors when `max_retries > 0`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Sequence

from pydantic import BaseModel, Field, ValidationError
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from aisuite import Client

from ..core.exceptions import ConfigurationError, ProtocolError, TransportError
from ..types.base import JSON
from ..types.core import Conversation, Message
from ..types.openai_compat import ChatCompletion, ChatCompletionMessage, convert_response

logger = logging.getLogger(__name__)

# providers that run locally and do not authenticate
KEYLESS_PROVIDERS = frozenset({"ollama"})


class ChatParams(BaseModel, extra="forbid"):
    """Per-call overrides for a ChatLLM invocation."""

    model: str | None = Field(default=None, description="Model identifier in 'provider:identifier' format.")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0, description="Sampling temperature.")
    n: int | None = Field(default=None, ge=1, description="Number of candidate messages.")
    request_params: dict[str, JSON] = Field(default_factory=dict, description="Additional API parameters.")


class ChatLLM:
    """Model unit for chat completions endpoints.

    Request type is a list of Messages (or a Conversation); response type is the list of
    candidate ChatCompletionMessages.

    Examples
    --------
        >>> llm = ChatLLM(model="openai:gpt-4o", temperature=0.2)
        >>> candidates = await llm.invoke([SystemMessage(content="Be brief."), UserMessage(content="Hi!")])
        >>> candidates[0].content
        'Hello!'
    """

    def __init__(
        self,
        model: str = "openai:gpt-4",
        client: Client | None = None,
        api_key: str | None = None,
        temperature: float = 0.0,
        n: int = 1,
        request_params: dict[str, JSON] | None = None,
        max_retries: int = 0,
        retry_wait: wait_base | None = None,
    ):
        """Initialize a ChatLLM.

        Parameters
        ----------
        model : str
            Model identifier in 'provider:identifier' format, by default 'openai:gpt-4'
        client : Client | None, optional
            aisuite client; created from `api_key` when None
        api_key : str | None, optional
            API key for the model provider, by default read from `<PROVIDER>_API_KEY`
        temperature : float, optional
            Default sampling temperature, by default 0.0
        n : int, optional
            Default number of candidate messages, by default 1
        request_params : dict[str, JSON] | None, optional
            Additional API parameters sent with every request, by default None
        max_retries : int, optional
            Retries after a TransportError, by default 0
        retry_wait : wait_base | None, optional
            tenacity wait strategy between retries, by default exponential backoff

        Raises
        ------
        ConfigurationError
            If the model identifier is invalid or no API key can be found
        """
        self.model = model
        self.temperature = temperature
        self.n = n
        self.request_params = request_params
        if max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, max=10)
        self.client = client if client is not None else self._make_client(api_key)

    def __repr__(self):
        return f"{self.__class__.__name__}(model={self.model})"

    @property
    def model(self) -> str:
        """Get the model identifier in 'provider:identifier' format."""
        return self._model

    @model.setter
    def model(self, model: str):
        self._model = _validate_model(model)

    @property
    def provider(self) -> str:
        """Provider prefix of the model identifier."""
        return self.model.split(":")[0]

    @property
    def request_params(self) -> dict[str, JSON]:
        """Request parameters used for every invocation."""
        return self._request_params

    @request_params.setter
    def request_params(self, request_params: dict[str, JSON] | None):
        self._request_params = _validate_request_params(request_params or {})
        logger.debug(f"All API requests for {self.__class__.__name__} will use params : {self._request_params}")

    def _make_client(self, api_key: str | None) -> Client:
        provider = self.provider
        api_key = api_key or os.environ.get(f"{provider.upper()}_API_KEY")
        if api_key is None:
            if provider in KEYLESS_PROVIDERS:
                return Client()
            raise ConfigurationError(
                f"Could not locate API key for '{provider}'. "
                f"Pass api_key or set the {provider.upper()}_API_KEY environment variable."
            )
        return Client(provider_configs={provider: {"api_key": api_key}})

    async def invoke(
        self,
        request: Sequence[Message] | Conversation,
        params: ChatParams | None = None,
    ) -> list[ChatCompletionMessage]:
        """Request chat completions.

        Parameters
        ----------
        request : Sequence[Message] | Conversation
            The messages to send
        params : ChatParams | None, optional
            Overrides for this call

        Returns
        -------
        list[ChatCompletionMessage]
            Candidate messages in choice order.

        Raises
        ------
        TransportError
            If the request fails after all retries
        ProtocolError
            If the response is not a chat completion
        """
        messages = request.messages if isinstance(request, Conversation) else list(request)
        if not messages:
            raise ValueError("Cannot request a completion for an empty conversation")

        params = params or ChatParams()
        model = _validate_model(params.model) if params.model else self.model
        request_params: dict[str, Any] = {
            "temperature": self.temperature if params.temperature is None else params.temperature,
        }
        n = self.n if params.n is None else params.n
        if n > 1:
            request_params["n"] = n
        request_params |= self.request_params | _validate_request_params(params.request_params)

        payload = [message.model_dump(exclude_none=True) for message in messages]
        completion = await self._create_with_retry(model, payload, request_params)
        return completion.messages

    async def _create_with_retry(
        self, model: str, messages: list[dict[str, Any]], request_params: dict[str, Any]
    ) -> ChatCompletion:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=self.retry_wait,
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )
        return await retrying(self._chat_completions_create, model, messages, request_params)

    async def _chat_completions_create(
        self, model: str, messages: list[dict[str, Any]], request_params: dict[str, Any]
    ) -> ChatCompletion:
        """Call the chat endpoint in a worker thread and convert its response."""
        logger.debug(f"Requesting {len(messages)} messages from '{model}' with params: {request_params}")
        kwargs = {**request_params, "model": model, "messages": messages}
        try:
            response = await asyncio.to_thread(self.client.chat.completions.create, **kwargs)
        except Exception as e:
            raise TransportError(f"Chat completion request to '{model}' failed: {e}") from e

        try:
            return convert_response(response)
        except (ValidationError, AttributeError, TypeError) as e:
            logger.error(f"Request to '{model}' returned an unexpected response: {response!r}")
            raise ProtocolError(f"Unexpected chat completion payload from '{model}'", payload=response) from e


def _validate_model(model: str) -> str:
    """Validate a model identifier.

    Raises
    ------
    ConfigurationError
        If the identifier is empty or lacks the provider prefix
    """
    if not model or not isinstance(model, str):
        raise ConfigurationError("Model must be a non-empty string")
    if ":" not in model:
        raise ConfigurationError(
            "Model must be in format 'provider:identifier' (e.g., 'openai:gpt-4o' or 'anthropic:claude-3-5-haiku-latest')"
        )
    return model


def _validate_request_params(request_params: dict[str, JSON]) -> dict[str, JSON]:
    """Copy request parameters, rejecting keys that ChatLLM sets itself.

    Raises
    ------
    ConfigurationError
        If 'model' or 'messages' is present
    """
    params = dict(request_params)
    for reserved in ("model", "messages"):
        if reserved in params:
            raise ConfigurationError(f"'{reserved}' should be set separately")
    return params
