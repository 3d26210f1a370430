"""Commands are named tools a model can be told about and asked to use.

A command has a name, a description and a JSON schema for its arguments; together they make
up `prompt_description`, a line that can be listed in a prompt so the model knows which
commands exist and how to call them.

FunctionCommand wraps a python function and validates the arguments with a pydantic model.
"""

from __future__ import annotations

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Mapping, Type, Union

from pydantic import BaseModel

from .base import Command
from .exceptions import ConfigurationError
from ..utilities import to_snake_case

logger = logging.getLogger(__name__)


class FunctionCommand:
    """Expose a function as a Command.

    Args:
        fn: Sync or async function; called with the validated arguments as keywords
        args_model: Pydantic model describing and validating the arguments
        name: Command name; defaults to the function name in snake_case
        description: Command description; defaults to the first paragraph of the docstring

    Examples
    --------
        >>> class SearchArgs(BaseModel):
        ...     query: str
        >>> async def search(query: str) -> str:
        ...     '''Search the web.'''
        ...     return "..."
        >>> cmd = FunctionCommand(search, SearchArgs)
        >>> cmd.prompt_description
        'search: Search the web.. args JSON schema: {...}'
    """

    def __init__(
        self,
        fn: Callable[..., Union[Any, Awaitable[Any]]],
        args_model: Type[BaseModel],
        name: str | None = None,
        description: str | None = None,
    ):
        self.fn = fn
        self.args_model = args_model
        self.name = to_snake_case(name or fn.__name__)

        if description is None:
            doc = inspect.getdoc(fn)
            description = doc.split("\n\n")[0].strip() if doc else None
        if not description:
            raise ConfigurationError(f"Command '{self.name}' requires a description or a docstring")
        self.description = description

        self.input_schema = json.dumps(args_model.model_json_schema())

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name})"

    @property
    def prompt_description(self) -> str:
        """One-line description suitable for embedding in a prompt."""
        return f"{self.name}: {self.description}. args JSON schema: {self.input_schema}"

    async def call(self, args: Mapping[str, Any]) -> str:
        """Validate the arguments and run the function.

        Returns
        -------
        str
            The result; non-string results are serialized to JSON.

        Raises
        ------
        pydantic.ValidationError
            If the arguments do not match `args_model`
        """
        params = self.args_model.model_validate(dict(args))

        logger.debug(f"Invoking {self.name} with params: {params}")
        result = self.fn(**params.model_dump())
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, str):
            return result
        if isinstance(result, BaseModel):
            return result.model_dump_json()
        try:
            return json.dumps(result)
        except (TypeError, ValueError) as e:
            logger.warning(f"JSON serialization failed: {e}")
            return str(result)


def command(args_model: Type[BaseModel], name: str | None = None, description: str | None = None):
    """Decorate a function as a FunctionCommand.

    Examples
    --------
        >>> @command(SearchArgs)
        ... async def search(query: str) -> str:
        ...     '''Search the web.'''
    """

    def decorator(fn: Callable[..., Any]) -> FunctionCommand:
        return FunctionCommand(fn, args_model, name=name, description=description)

    return decorator


def describe_commands(commands: list[Command]) -> str:
    """List the prompt descriptions of several commands, one per line."""
    return "\n".join(cmd.prompt_description for cmd in commands)
