"""Errors raised while building and running prompt pipelines."""

from typing import Any


class PromptChainError(Exception):
    """Base class for all promptchain errors."""


class ConfigurationError(PromptChainError, ValueError):
    """A component was constructed with an invalid configuration."""


class RenderError(PromptChainError):
    """A prompt could not be rendered from the supplied arguments."""


class SerializationError(PromptChainError):
    """A memory could not project its history for prompt rendering."""


class TransportError(PromptChainError):
    """The underlying request to the model endpoint failed."""


class ProtocolError(PromptChainError):
    """The model endpoint responded with a payload of unexpected shape.

    Attributes
    ----------
    payload : Any
        The raw, unparsed response for diagnostics.
    """

    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.payload = payload
