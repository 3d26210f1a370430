import json
import textwrap

from .async_helpers import get_create_event_loop, synchronize
from .log_helpers import LOG_FMT, basic_log_config, suppress_logs

__all__ = [
    "LOG_FMT",
    "basic_log_config",
    "suppress_logs",
    "get_create_event_loop",
    "synchronize",
    "to_snake_case",
    "format_json",
]


def to_snake_case(text: str) -> str:
    """Convert text to snake_case."""
    import re

    # Replace spaces and hyphens with underscores
    text = text.strip()
    text = re.sub(r"[\s-]+", "_", text)

    # Convert camelCase, PascalCase, and cases like HTTPHeader to snake_case
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    text = re.sub(r"([A-Z]+)([A-Z][a-z0-9])", r"\1_\2", text)

    return text.lower()


def format_json(data, width: int = 100, indent: int = 2, level: int = 0) -> str:
    """Format JSON-like data with indentation and wrapping of long strings.

    Used for readable reprs of messages in logs.
    """
    prefix = " " * (level * indent)

    if isinstance(data, dict):
        if not data:
            return "{}"

        lines = ["{"]
        items = list(data.items())
        for i, (key, value) in enumerate(items):
            key_prefix = f'{prefix}  "{key}": '
            key_indent = " " * len(key_prefix)

            if isinstance(value, str):
                segments = [
                    textwrap.fill(
                        segment,
                        width=max(width - len(key_prefix), 20),
                        initial_indent=key_indent,
                        subsequent_indent=key_indent + " ",
                        drop_whitespace=False,
                    )
                    for segment in value.split("\n")
                ]
                formatted_value = '"{}"'.format("\n".join(segments).strip())
            else:
                formatted_value = format_json(value, width=width, indent=indent, level=level + 1)

            comma = "," if i < len(items) - 1 else ""
            lines.append(f"{key_prefix}{formatted_value}{comma}")

        lines.append(prefix + "}")
        return "\n".join(lines)

    elif isinstance(data, list):
        if not data:
            return "[]"

        lines = ["["]
        for i, item in enumerate(data):
            comma = "," if i < len(data) - 1 else ""
            lines.append(f"{prefix}  {format_json(item, width, indent, level + 1)}{comma}")

        lines.append(prefix + "]")
        return "\n".join(lines)

    elif isinstance(data, str):
        try:
            return format_json(json.loads(data), width, indent, level)
        except json.JSONDecodeError:
            return '"{}"'.format(data)

    elif data is None:
        return "null"

    else:
        return str(data).lower()
