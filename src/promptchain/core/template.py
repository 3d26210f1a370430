"""Components for composable prompting.

A PromptTemplate renders a prompt string from named variables.
Variables are placeholders found by a regular expression; the default placeholder is `{name}`.
The variables a template requires are discovered once, at construction, and kept in order of
first occurrence.

Rendering is lenient by default: a placeholder without a matching argument is left verbatim
in the output and a warning is logged. Pass `strict=True` to raise a RenderError instead.
Substituted values are never scanned again, so a value that itself looks like a placeholder
is emitted as-is.

JinjaPromptTemplate offers the same contract on top of a jinja2 template, for prompts that
need loops or conditionals.

PromptTemplateAdapter changes what a template renders to (e.g. a role-tagged Message)
without touching variable discovery or substitution. MessagePromptTemplate is the common
case of wrapping the rendered string in a Message.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Generic, Mapping, Pattern, TypeVar

from jinja2 import Environment, StrictUndefined, Undefined, meta
from jinja2.exceptions import TemplateError
from pydantic import BaseModel
from typing_extensions import override

from .base import TemplateArguments
from .exceptions import ConfigurationError, RenderError
from ..types.core import Message, Role

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE_PATTERN = re.compile(r"\{(\w+)\}")

AdaptedPrompt = TypeVar("AdaptedPrompt")
WrappedPrompt = TypeVar("WrappedPrompt")


def _template_vars(arguments: TemplateArguments | None) -> dict[str, Any]:
    if arguments is None:
        return {}
    return arguments.model_dump() if isinstance(arguments, BaseModel) else dict(arguments)


class PromptTemplate:
    """Render prompts by substituting `{name}` placeholders.

    Args:
        template: The template string
        variable_pattern: Regex whose first capture group is the variable name
        strict: Raise RenderError for missing variables instead of leaving them in place

    Examples
    --------
        >>> prompt = PromptTemplate("{a} and {b} and {a}")
        >>> prompt.variables
        ('a', 'b')
        >>> prompt.format({"a": "x", "b": "y"})
        'x and y and x'
        >>> prompt(a="x")  # 'b' stays unresolved
        'x and {b} and x'
    """

    def __init__(
        self,
        template: str,
        variable_pattern: Pattern[str] | str = DEFAULT_VARIABLE_PATTERN,
        strict: bool = False,
    ):
        self.variable_pattern = variable_pattern
        self._template = template
        self.strict = strict
        names = (m.group(1) for m in self.variable_pattern.finditer(template))
        self._variables = tuple(dict.fromkeys(name for name in names if name is not None))

    def __repr__(self):
        return f"{self.__class__.__name__}(variables={self.variables})"

    @property
    def template(self) -> str:
        """Template string that defines the prompt for each render."""
        return self._template

    @property
    def variable_pattern(self) -> Pattern[str]:
        """Regex used to find placeholders."""
        return self._variable_pattern

    @variable_pattern.setter
    def variable_pattern(self, variable_pattern: Pattern[str] | str):
        pattern = re.compile(variable_pattern) if isinstance(variable_pattern, str) else variable_pattern
        if pattern.groups < 1:
            raise ConfigurationError("variable_pattern must capture the variable name in a group")
        self._variable_pattern = pattern

    @property
    def variables(self) -> tuple[str, ...]:
        """Distinct variable names in order of first occurrence."""
        return self._variables

    def format(self, arguments: TemplateArguments | None = None) -> str:
        """Render the prompt.

        Parameters
        ----------
        arguments : Mapping[str, Any] | BaseModel | None
            Variable bindings; values are substituted with `str()`.

        Returns
        -------
        str
            The rendered prompt.

        Raises
        ------
        RenderError
            If `strict` and a placeholder has no binding.
        """
        vars_ = _template_vars(arguments)

        parts = []
        position = 0
        for match in self.variable_pattern.finditer(self.template):
            name = match.group(1)
            if name is None:
                continue
            if name not in vars_:
                if self.strict:
                    raise RenderError(f"No value provided for variable '{name}'")
                logger.warning(f"No value provided for variable '{name}'")
                continue
            parts.append(self.template[position : match.start()])
            parts.append(str(vars_[name]))
            position = match.end()
        parts.append(self.template[position:])

        return "".join(parts)

    def encode(self, input: str) -> str:  # NOQA: A002
        """Encode raw input as a prompt; identity for string templates."""
        return input

    def __call__(self, **kwargs: Any) -> str:
        """Render the prompt from keyword arguments."""
        return self.format(kwargs)


class _VerbatimUndefined(Undefined):
    """Undefined that renders back to its placeholder so missing variables survive rendering."""

    __slots__ = ()

    def __str__(self) -> str:
        logger.warning(f"No value provided for variable '{self._undefined_name}'")
        return "{{ %s }}" % self._undefined_name


class JinjaPromptTemplate:
    """Render prompts with a jinja2 template.

    Variables are the template's undeclared names (loop targets and `set` names are excluded)
    in order of first occurrence. Missing variables render as `{{ name }}` unless `strict`,
    in which case StrictUndefined raises and the failure is reported as a RenderError.

    Args:
        template: Jinja template string
        strict: Raise RenderError for missing variables

    Examples
    --------
        >>> prompt = JinjaPromptTemplate("{% for t in topics %}- {{ t }}\\n{% endfor %}About {{ user }}")
        >>> prompt.variables
        ('topics', 'user')
    """

    def __init__(self, template: str, strict: bool = False):
        self._template = template
        self.strict = strict
        self.environment = Environment(
            undefined=StrictUndefined if strict else _VerbatimUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        try:
            ast = self.environment.parse(template)
        except TemplateError as e:
            raise ConfigurationError(f"Invalid jinja template: {e}") from e

        undeclared = meta.find_undeclared_variables(ast)
        # lexer tokens arrive in source order, unlike a walk over the AST
        names = (
            value for _, token, value in self.environment.lex(template) if token == "name" and value in undeclared
        )
        self._variables = tuple(dict.fromkeys(names))
        self._jinja_template = self.environment.from_string(template)

    def __repr__(self):
        return f"{self.__class__.__name__}(variables={self.variables})"

    @property
    def template(self) -> str:
        """Template source that defines the prompt for each render."""
        return self._template

    @property
    def variables(self) -> tuple[str, ...]:
        """Distinct variable names in order of first occurrence."""
        return self._variables

    def format(self, arguments: TemplateArguments | None = None) -> str:
        """Render the prompt.

        Raises
        ------
        RenderError
            If jinja fails to render, including missing variables in strict mode.
        """
        vars_ = _template_vars(arguments)
        try:
            return self._jinja_template.render(**vars_)
        except TemplateError as e:
            raise RenderError(f"Failed to render template: {e}") from e

    def encode(self, input: str) -> str:  # NOQA: A002
        """Encode raw input as a prompt; identity for string templates."""
        return input

    def __call__(self, **kwargs: Any) -> str:
        """Render the prompt from keyword arguments."""
        return self.format(kwargs)


class PromptTemplateAdapter(Generic[WrappedPrompt, AdaptedPrompt]):
    """Change the type a template renders to.

    Both `format` and `encode` pass the wrapped template's output through `adapter`.
    Variable discovery and substitution are those of the wrapped template.

    Args:
        prompt_template: The template to adapt
        adapter: Transform applied to every rendered or encoded prompt

    Examples
    --------
        >>> upper = PromptTemplateAdapter(PromptTemplate("Hi {name}"), adapter=str.upper)
        >>> upper.format({"name": "bob"})
        'HI BOB'
    """

    def __init__(
        self,
        prompt_template: Any,
        adapter: Callable[[WrappedPrompt], AdaptedPrompt],
    ):
        self.prompt_template = prompt_template
        self.adapter = adapter

    def __repr__(self):
        return f"{self.__class__.__name__}(prompt_template={self.prompt_template!r})"

    @property
    def template(self) -> str:
        """Template string of the wrapped template."""
        return self.prompt_template.template

    @property
    def variables(self) -> tuple[str, ...]:
        """Variables of the wrapped template."""
        return self.prompt_template.variables

    def format(self, arguments: TemplateArguments | None = None) -> AdaptedPrompt:
        """Render with the wrapped template, then adapt."""
        return self.adapter(self.prompt_template.format(arguments))

    def encode(self, input: str) -> AdaptedPrompt:  # NOQA: A002
        """Encode with the wrapped template, then adapt."""
        return self.adapter(self.prompt_template.encode(input))

    def __call__(self, **kwargs: Any) -> AdaptedPrompt:
        """Render the prompt from keyword arguments."""
        return self.format(kwargs)


class MessagePromptTemplate(PromptTemplateAdapter[str, Message]):
    """Render prompts as role-tagged Messages.

    Args:
        prompt_template: A template rendering strings, or a template string for PromptTemplate
        role: Role of the rendered messages

    Examples
    --------
        >>> prompt = MessagePromptTemplate("Summarize: {input}")
        >>> prompt.format({"input": "a long text"}).role
        'user'
    """

    def __init__(self, prompt_template: Any, role: Role = "user"):
        if isinstance(prompt_template, str):
            prompt_template = PromptTemplate(prompt_template)
        self.role = role
        super().__init__(prompt_template, adapter=self._to_message)

    def _to_message(self, content: str) -> Message:
        return Message(role=self.role, content=content)

    @override
    def __repr__(self):
        return f"{self.__class__.__name__}(role={self.role}, prompt_template={self.prompt_template!r})"
