"""Core components for composable LLM pipelines.

This module provides the building blocks for rendering prompts from templates, remembering
conversations, adapting model units, and sequencing them into flows and chains.
"""

from .base import LLM, Command, Flow, Memory, Template
from .chain import Chain, sequence
from .command import FunctionCommand, command, describe_commands
from .exceptions import (
    ConfigurationError,
    PromptChainError,
    ProtocolError,
    RenderError,
    SerializationError,
    TransportError,
)
from .flow import ConversationFlow
from .llm import CallableLLM, InputAdapter, InputOutputAdapter, OutputAdapter
from .memory import ConversationMemory, json_serializer
from .template import JinjaPromptTemplate, MessagePromptTemplate, PromptTemplate, PromptTemplateAdapter

__all__ = [
    # Base protocols
    "LLM",
    "Command",
    "Flow",
    "Memory",
    "Template",
    # Templates
    "PromptTemplate",
    "JinjaPromptTemplate",
    "PromptTemplateAdapter",
    "MessagePromptTemplate",
    # Memory
    "ConversationMemory",
    "json_serializer",
    # Model units and adapters
    "CallableLLM",
    "InputAdapter",
    "OutputAdapter",
    "InputOutputAdapter",
    # Composition
    "ConversationFlow",
    "Chain",
    "sequence",
    # Commands
    "FunctionCommand",
    "command",
    "describe_commands",
    # Exceptions
    "PromptChainError",
    "ConfigurationError",
    "ProtocolError",
    "RenderError",
    "SerializationError",
    "TransportError",
]
