"""
Dotted-path helpers over nested request payloads.

A path such as ``student.address.city`` addresses
``payload["student"]["address"]["city"]``. A numeric segment indexes into a
list, so ``exams.0.code`` reads the first exam. Lookups never raise: a
missing segment or an out-of-range index yields MISSING.
"""

import json
from typing import Any, Mapping, Sequence


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def get_value_by_path(payload: Any, path: str) -> Any:
    current = payload
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            if not segment.isdecimal() or int(segment) >= len(current):
                return MISSING
            current = current[int(segment)]
        else:
            return MISSING
    return current


def is_blank(value: Any) -> bool:
    """True for values that do not satisfy a required placeholder."""
    return value is MISSING or value is None or value == ""


def stringify(value: Any) -> str:
    """
    Render a payload value as document text.

    Booleans are lower-case, integral floats drop their fractional part,
    sequences are comma-joined and mappings are written as compact JSON.
    """
    if value is MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)
