"""Memories record the turns of a conversation and project them for prompt rendering.

A memory owns an ordered history. Turns are appended with `save`, the whole history is
serialized with `load`, and `clear` forgets everything. The serialized history is bound to
the template variable named by `memory_variable_key`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Sequence, TypeVar

from pydantic_core import to_json

from .exceptions import ConfigurationError, SerializationError

logger = logging.getLogger(__name__)

Turn = TypeVar("Turn")

Serializer = Callable[[Sequence[Any]], str]


def json_serializer(history: Sequence[Any]) -> str:
    """Serialize a history as a JSON array; pydantic models are dumped field by field."""
    return to_json(list(history)).decode("utf-8")


class ConversationMemory(Generic[Turn]):
    """Keep every turn of a conversation, in order.

    There is no size bound and no deduplication. The memory does no locking, so a single
    instance must not be shared by concurrently running flows.

    Args:
        memory_variable_key: Template variable the serialized history is bound to
        serializer: Converts the history to a string; defaults to a JSON array

    Examples
    --------
        >>> memory = ConversationMemory(memory_variable_key="history")
        >>> memory.save({"role": "user", "content": "Hi"})
        >>> memory.load()
        '[{"role":"user","content":"Hi"}]'
    """

    def __init__(
        self,
        memory_variable_key: str = "memory",
        serializer: Serializer = json_serializer,
    ):
        if not memory_variable_key or not isinstance(memory_variable_key, str):
            raise ConfigurationError("memory_variable_key must be a non-empty string")
        self.memory_variable_key = memory_variable_key
        self.serializer = serializer
        self._history: list[Turn] = []

    def __repr__(self):
        return f"{self.__class__.__name__}(memory_variable_key={self.memory_variable_key}, turns={len(self)})"

    def __len__(self) -> int:
        return len(self._history)

    @property
    def messages(self) -> tuple[Turn, ...]:
        """Read-only view of the recorded turns."""
        return tuple(self._history)

    def save(self, turn: Turn) -> None:
        """Append a turn to the history."""
        self._history.append(turn)

    def load(self) -> str:
        """Serialize the full history.

        Returns
        -------
        str
            The serialized history.

        Raises
        ------
        SerializationError
            If the serializer cannot convert the history. The history is left as it was.
        """
        try:
            return self.serializer(list(self._history))
        except SerializationError:
            raise
        except Exception as e:
            raise SerializationError(f"Could not serialize {len(self)} turns of {self!r}: {e}") from e

    def clear(self) -> None:
        """Forget the history."""
        self._history.clear()
