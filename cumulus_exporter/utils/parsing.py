"""
Helpers for validating structured command output.

All helpers raise ParseError so collectors can treat any schema mismatch
as a failed cycle.
"""

import json
from typing import Any

from ..errors import ParseError

_MISSING = object()


def load_json(output: bytes | str, source: str) -> Any:
    """
    Decode JSON output of a command.

    Args:
        output: Raw command output
        source: Name used in error messages

    Raises:
        ParseError: If output is not valid JSON
    """
    try:
        return json.loads(output)
    except ValueError as e:
        raise ParseError(f"cannot decode {source} json: {e}") from None


def get_number(entry: dict[str, Any], key: str, default: Any = _MISSING) -> float:
    """
    Get a numeric field as float.

    A JSON null counts as missing.

    Raises:
        ParseError: If the field is missing (and no default given) or not a number
    """
    value = entry.get(key)
    if value is None:
        if default is _MISSING:
            raise ParseError(f"missing required key {key!r}")
        value = default
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ParseError(f"key {key!r} is not a number: {value!r}")
    return float(value)


def get_string(entry: dict[str, Any], key: str, default: Any = _MISSING) -> str:
    """
    Get a string field.

    A JSON null counts as missing.

    Raises:
        ParseError: If the field is missing (and no default given) or not a string
    """
    value = entry.get(key)
    if value is None:
        if default is _MISSING:
            raise ParseError(f"missing required key {key!r}")
        value = default
    if not isinstance(value, str):
        raise ParseError(f"key {key!r} is not a string: {value!r}")
    return value
