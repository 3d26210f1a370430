"""Model units and the adapters that reshape them.

A model unit is anything with `async invoke(request) -> response` (see base.LLM).

Adapters wrap a model unit and present different request and/or response types by running
a pure, synchronous transform before or after the wrapped call. An adapter invocation is
always exactly one invocation of the wrapped unit.

CallableLLM turns a plain function into a model unit, which is how local steps (parsers,
formatters, stubs) join flows and chains.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Generic, TypeVar, Union

from .base import LLM

logger = logging.getLogger(__name__)

Request = TypeVar("Request")
Response = TypeVar("Response")
InnerRequest = TypeVar("InnerRequest")
InnerResponse = TypeVar("InnerResponse")


class CallableLLM(Generic[Request, Response]):
    """Expose a function as a model unit.

    Args:
        fn: Sync or async callable taking the request and returning the response

    Examples
    --------
        >>> async def shout(text: str) -> str:
        ...     return text.upper()
        >>> llm = CallableLLM(shout)
    """

    def __init__(self, fn: Callable[[Request], Union[Response, Awaitable[Response]]]):
        if not callable(fn):
            raise TypeError(f"Expected a callable, got {type(fn)}")
        self.fn = fn

    def __repr__(self):
        return f"{self.__class__.__name__}(fn={getattr(self.fn, '__name__', self.fn)!r})"

    async def invoke(self, request: Request) -> Response:
        """Call the wrapped function, awaiting it if needed."""
        result = self.fn(request)
        if inspect.isawaitable(result):
            result = await result
        return result


class InputAdapter(Generic[Request, InnerRequest, Response]):
    """Transform requests before they reach the wrapped model unit.

    Args:
        llm: The wrapped model unit
        input_adapter: Maps the external request to the wrapped unit's request
    """

    def __init__(self, llm: LLM[InnerRequest, Response], input_adapter: Callable[[Request], InnerRequest]):
        self.llm = llm
        self.input_adapter = input_adapter

    def __repr__(self):
        return f"{self.__class__.__name__}(llm={self.llm!r})"

    async def invoke(self, request: Request) -> Response:
        """Adapt the request, then invoke the wrapped unit."""
        return await self.llm.invoke(self.input_adapter(request))


class OutputAdapter(Generic[Request, InnerResponse, Response]):
    """Transform responses of the wrapped model unit.

    Args:
        llm: The wrapped model unit
        output_adapter: Maps the wrapped unit's response to the external response
    """

    def __init__(self, llm: LLM[Request, InnerResponse], output_adapter: Callable[[InnerResponse], Response]):
        self.llm = llm
        self.output_adapter = output_adapter

    def __repr__(self):
        return f"{self.__class__.__name__}(llm={self.llm!r})"

    async def invoke(self, request: Request) -> Response:
        """Invoke the wrapped unit, then adapt its response."""
        return self.output_adapter(await self.llm.invoke(request))


class InputOutputAdapter(Generic[Request, InnerRequest, InnerResponse, Response]):
    """Transform both requests and responses of the wrapped model unit.

    Args:
        llm: The wrapped model unit
        input_adapter: Maps the external request to the wrapped unit's request
        output_adapter: Maps the wrapped unit's response to the external response

    Examples
    --------
        >>> chat = ...  # LLM[list[Message], list[ChatCompletionMessage]]
        >>> single = InputOutputAdapter(chat, input_adapter=lambda m: [m], output_adapter=lambda ms: ms[0])
    """

    def __init__(
        self,
        llm: LLM[InnerRequest, InnerResponse],
        input_adapter: Callable[[Request], InnerRequest],
        output_adapter: Callable[[InnerResponse], Response],
    ):
        self.llm = llm
        self.input_adapter = input_adapter
        self.output_adapter = output_adapter

    def __repr__(self):
        return f"{self.__class__.__name__}(llm={self.llm!r})"

    async def invoke(self, request: Request) -> Response:
        """Adapt the request, invoke the wrapped unit, adapt the response."""
        response = await self.llm.invoke(self.input_adapter(request))
        return self.output_adapter(response)
