"""Core protocols for composable LLM pipelines.

This module defines the structural contracts that templates, memories, model units, flows
and commands satisfy. Nothing here is abstract base class machinery; any object with the
right attributes participates, and `isinstance` checks work because the protocols are
runtime-checkable.

The type variables document the relations a Flow relies on:
- the Template renders the LLM's input type;
- the LLM produces the Memory's turn type;
- the Memory projects its history as a string bound to a template variable.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Mapping, Protocol, Union

from pydantic import BaseModel
from typing_extensions import TypeVar, runtime_checkable

logger = logging.getLogger(__name__)

RequestType = TypeVar("RequestType", contravariant=True)
ResponseType = TypeVar("ResponseType", covariant=True)
PromptType = TypeVar("PromptType", covariant=True)
TurnType = TypeVar("TurnType", contravariant=True)
FlowOutputType = TypeVar("FlowOutputType", covariant=True)

TemplateArguments = Union[Mapping[str, Any], BaseModel]


@runtime_checkable
class LLM(Generic[RequestType, ResponseType], Protocol):
    """Protocol for model units.

    A model unit asynchronously turns a typed request into a typed response.
    Failures surface as TransportError or ProtocolError and are never retried here.
    """

    async def invoke(self, request: RequestType) -> ResponseType:
        """Invoke the model.

        Parameters
        ----------
        request : RequestType
            The model input.

        Returns
        -------
        ResponseType
            The model output.
        """
        ...


@runtime_checkable
class Template(Generic[PromptType], Protocol):
    """Protocol for prompt templates.

    Attributes
    ----------
    template : str
        The pattern the prompt is rendered from.
    """

    template: str

    @property
    def variables(self) -> tuple[str, ...]:
        """Distinct variable names in order of first occurrence."""
        ...

    def format(self, arguments: TemplateArguments) -> PromptType:
        """Render the prompt from variable bindings."""
        ...

    def encode(self, input: str) -> PromptType:  # NOQA: A002
        """Encode raw input in the prompt type, e.g. to record it in memory."""
        ...


@runtime_checkable
class Memory(Generic[TurnType], Protocol):
    """Protocol for memories of prior turns.

    Attributes
    ----------
    memory_variable_key : str
        The template variable the serialized history binds to.
    """

    memory_variable_key: str

    def save(self, turn: TurnType) -> None:
        """Append a turn to the history."""
        ...

    def load(self) -> str:
        """Project the history for prompt rendering."""
        ...

    def clear(self) -> None:
        """Forget the history."""
        ...


@runtime_checkable
class Flow(Generic[FlowOutputType], Protocol):
    """Protocol for single pipeline stages gluing a template, a memory and a model unit."""

    prompt_template: Template
    memory: Memory
    llm: LLM

    async def run(self, args: TemplateArguments) -> FlowOutputType:
        """Load memory, render the prompt, invoke the model and record the result."""
        ...


@runtime_checkable
class Command(Protocol):
    """Protocol for named tools a model can be told about.

    Attributes
    ----------
    name : str
        Identifier used when the model selects the command.
    description : str
        What the command does.
    input_schema : str
        JSON schema describing the command arguments.
    """

    name: str
    description: str
    input_schema: str

    @property
    def prompt_description(self) -> str:
        """One-line description suitable for embedding in a prompt."""
        ...

    async def call(self, args: Mapping[str, Any]) -> str:
        """Execute the command."""
        ...
