"""Contains utilities to store and load objects more conveniently to/from JSON.

More specifically, this module introduces the `JsonizeEncoder`, which can be accessed via the `to_json` utility method.
This encoder allows to transform instances of any class to JSON by providing a `__json__` method in the class
implementation. This method does not take any (required) parameters and returns a JSON-izeable representation of the
current instance, e.g. a `dict` or a `list`.

The inverse direction is handled by the individual classes (e.g. `Query.from_json`), since JSON does not store any type
information. `read_json` only takes care of the file handling.
"""

from __future__ import annotations

import enum
import json
import math
from pathlib import Path
from typing import IO, Any

jsondict = dict
"""Type alias for a JSON-izeable dictionary."""


class JsonizeEncoder(json.JSONEncoder):
    """The JsonizeEncoder allows to transform instances of any class to JSON.

    This can be achieved by providing a `__json__` method in the class implementation. This method does not take any
    (required) parameters and returns a JSON-izeable representation of the current instance, e.g. a `dict` or a `list`.
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, enum.Enum):
            return obj.value
        elif isinstance(obj, (set, frozenset)):
            return sorted(obj) if all(isinstance(item, str) for item in obj) else list(obj)
        elif isinstance(obj, Path):
            return str(obj)
        elif "__json__" in dir(obj):
            return obj.__json__()
        return json.JSONEncoder.default(self, obj)


def to_json(obj: Any, *args, **kwargs) -> str | None:
    """Utility to transform any object to a JSON object, while making use of the `JsonizeEncoder`.

    All arguments other than the object itself are passed to the default Python `json.dumps` function.
    """
    if obj is None:
        return None
    kwargs.pop("cls", None)
    return json.dumps(obj, *args, cls=JsonizeEncoder, **kwargs)


def to_json_dump(obj: Any, file: IO, *args, **kwargs) -> None:
    """Utility to transform any object to a JSON object and write it to a file, while making use of the `JsonizeEncoder`.

    All arguments other than the object itself are passed to the default Python `json.dump` function.
    """
    kwargs.pop("cls", None)
    json.dump(obj, file, cls=JsonizeEncoder, *args, **kwargs)


def read_json(path: str | Path) -> Any:
    """Loads the raw JSON contents of a file."""
    with open(path, "r", encoding="utf-8") as json_file:
        return json.load(json_file)


def nan_safe(value: float) -> float | None:
    """Replaces *NaN* values by *None*, since JSON does not know about *NaN*."""
    return None if isinstance(value, float) and math.isnan(value) else value
