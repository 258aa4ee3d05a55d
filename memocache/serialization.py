"""
JSON codec for cached values.
"""

import json
from typing import Any


class JsonSerializer:
    """Serialize values to JSON text and back.

    Errors from the json module are re-raised unchanged so callers can
    attach them to events; TypeError covers unsupported objects and
    ValueError covers circular references, NaN and infinities, and
    malformed text. Tuples are written as arrays and come back as lists.
    """

    def dumps(self, value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, allow_nan=False, separators=(",", ":"))

    def loads(self, text: str) -> Any:
        if isinstance(text, (bytes, bytearray)):
            text = text.decode("utf-8")
        return json.loads(text)
