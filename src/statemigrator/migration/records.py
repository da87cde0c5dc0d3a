"""
Raw record helpers.

A raw record is the JSON-shaped state the host runtime loads for one resource:
string keys mapped to ``None``, strings, booleans, numbers, lists of values or
nested records. Migrations only ever see this untyped form.
"""

from copy import deepcopy
from typing import Any, Dict, List, Union

RawValue = Union[None, str, bool, int, float, List[Any], Dict[str, Any]]
RawRecord = Dict[str, RawValue]


def is_raw_record(value: Any) -> bool:
    """True for a dict whose keys are all strings."""
    return isinstance(value, dict) and all(isinstance(key, str) for key in value)


def copy_record(record: RawRecord) -> RawRecord:
    """Deep copy so that a migration never touches the caller's record."""
    return deepcopy(record)


def is_set(record: RawRecord, key: str) -> bool:
    """True when ``key`` is present and not ``None``."""
    return record.get(key) is not None


def record_depth(value: RawValue) -> int:
    """
    Nesting depth of a raw value.

    Scalars have depth 0; a record or list adds one level to its deepest member.
    """
    if isinstance(value, dict):
        return 1 + max((record_depth(member) for member in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((record_depth(member) for member in value), default=0)
    return 0


__all__ = [
    "RawValue",
    "RawRecord",
    "is_raw_record",
    "copy_record",
    "is_set",
    "record_depth",
]
