"""JSON serialization for durable cache backends.

Bytes (cached audio in particular) are wrapped as ``{"__bytes__": <b64>}``
so they survive a round trip, at any nesting depth.
"""

import base64
import json
from typing import Any

_BYTES_MARKER = "__bytes__"


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return {_BYTES_MARKER: base64.b64encode(bytes(obj)).decode("ascii")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _object_hook(obj: dict[str, Any]) -> Any:
    if len(obj) == 1 and _BYTES_MARKER in obj:
        return base64.b64decode(obj[_BYTES_MARKER])
    return obj


def dumps(value: Any) -> str:
    return json.dumps(value, default=_json_default, separators=(",", ":"))


def loads(raw: str | bytes) -> Any:
    return json.loads(raw, object_hook=_object_hook)
