"""Components for composable LLM calls.

A Flow is one pipeline stage: it glues a prompt template, a memory and a model unit behind
a single `run(args)` call.

ConversationFlow runs the following steps:
1. copy the caller's arguments;
2. bind the serialized memory to the memory variable;
3. record the caller's input in memory;
4. render the prompt;
5. invoke the model and record its response in memory;
6. return the response.

The input is recorded *before* the model is invoked, so after a failed invocation the
history ends with the user's turn and no response. Callers that retry by replaying the
input will see that turn twice.

The required type relations (template renders the model's input type; the model returns the
memory's turn type; the memory loads a string) cannot be enforced at runtime. A Flow checks
what it can at construction: the collaborators implement their protocols, and the template
declares both the memory variable and the input variable.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .base import LLM, Memory, Template, TemplateArguments
from .exceptions import ConfigurationError, RenderError
from ..utilities import synchronize, to_snake_case

logger = logging.getLogger(__name__)

Prompt = TypeVar("Prompt")
Response = TypeVar("Response")


class ConversationFlow(Generic[Prompt, Response]):
    """Conversational stage over a template, a memory and a model unit.

    Examples
    --------
        >>> prompt = MessagePromptTemplate(
        ...     '''You are a helpful assistant expert in programming.
        ...
        ...     History:
        ...     {history}
        ...
        ...     Human: {input}
        ...     AI:'''
        ... )
        >>> flow = ConversationFlow(
        ...     prompt_template=prompt,
        ...     memory=ConversationMemory(memory_variable_key="history"),
        ...     llm=InputOutputAdapter(ChatLLM(), input_adapter=lambda m: [m], output_adapter=lambda ms: ms[0]),
        ... )
        >>> reply = await flow.run({"input": "What is a monad?"})
    """

    def __init__(
        self,
        prompt_template: Template[Prompt],
        memory: Memory[Prompt],
        llm: LLM[Prompt, Response],
        input_variable_key: str = "input",
    ):
        """Initialize a ConversationFlow.

        Parameters
        ----------
        prompt_template : Template
            Renders the model input; must declare the memory and input variables
        memory : Memory
            Records the conversation; owned by this flow
        llm : LLM
            The model unit; may be shared
        input_variable_key : str, optional
            Argument holding the caller's input, by default "input"

        Raises
        ------
        ConfigurationError
            If a collaborator does not implement its protocol,
            or the template lacks the memory or input variable
        """
        self.name = to_snake_case(self.__class__.__name__)

        if not isinstance(prompt_template, Template):
            raise ConfigurationError(f"prompt_template does not implement the Template protocol: {prompt_template!r}")
        if not isinstance(memory, Memory):
            raise ConfigurationError(f"memory does not implement the Memory protocol: {memory!r}")
        if not isinstance(llm, LLM):
            raise ConfigurationError(f"llm does not implement the LLM protocol: {llm!r}")

        variables = prompt_template.variables
        if memory.memory_variable_key not in variables:
            raise ConfigurationError(
                f"Template is missing the memory variable '{memory.memory_variable_key}'; found {variables}"
            )
        if input_variable_key not in variables:
            raise ConfigurationError(f"Template is missing the input variable '{input_variable_key}'; found {variables}")

        self.prompt_template = prompt_template
        self.memory = memory
        self.llm = llm
        self.input_variable_key = input_variable_key

    def __repr__(self):
        return f"{self.__class__.__name__}(prompt_template={self.prompt_template!r}, memory={self.memory!r})"

    async def run(self, args: TemplateArguments) -> Response:
        """Run the stage once.

        Parameters
        ----------
        args : Mapping[str, Any] | BaseModel
            Template arguments; must contain the input variable.
            A value bound to the memory variable is replaced by the serialized history.

        Returns
        -------
        Response
            The model response, also recorded in memory.

        Raises
        ------
        RenderError
            If the input argument is missing (memory is untouched) or rendering fails
        SerializationError
            If the memory cannot be loaded (memory is untouched)
        """
        args_: dict[str, Any] = args.model_dump() if isinstance(args, BaseModel) else dict(args)
        if self.input_variable_key not in args_:
            raise RenderError(f"Missing input argument '{self.input_variable_key}'")

        args_[self.memory.memory_variable_key] = self.memory.load()
        self.memory.save(self.prompt_template.encode(args_[self.input_variable_key]))

        prompt = self.prompt_template.format(args_)
        logger.debug(f"Entering {self.name} with prompt: {prompt!r}")

        response = await self.llm.invoke(prompt)
        self.memory.save(response)
        return response

    def run_sync(self, args: TemplateArguments) -> Response:
        """Run the stage from synchronous code."""
        return synchronize(self.run, args)
