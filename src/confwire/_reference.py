from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


COMPONENT_SIGIL = "@"
PARAM_SIGIL = "%"

SIGILS = (COMPONENT_SIGIL, PARAM_SIGIL)


def escape(value: Any) -> Any:
    """Escape a value so it is never parsed as a reference.

    Strings starting with ``@`` or ``%`` get the leading character doubled.
    Lists, tuples and mappings are walked recursively; anything else is
    returned unchanged.

    Example:
      escape("@db")            # "@@db"
      escape(["%%x", 1, "y"])  # ["%%%x", 1, "y"]

    """
    if isinstance(value, str):
        sigil = value[:1]
        if sigil in SIGILS:
            return sigil + value
        return value
    return walk(value, escape)


def walk(value: Any, func: Any) -> Any:
    """Apply ``func`` to every item of a list, tuple or mapping, keeping its shape."""
    if isinstance(value, list):
        return [func(item) for item in value]
    if isinstance(value, tuple):
        return tuple(func(item) for item in value)
    if isinstance(value, Mapping):
        return {key: func(item) for key, item in value.items()}
    return value


def describe(value: Any) -> str:
    """Readable representation of any value for error messages."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
