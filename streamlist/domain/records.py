"""Record shapes stored by the DataStore and the id checks they share."""
from __future__ import annotations

from typing import Any, Mapping, TypedDict, TypeVar


class Record(TypedDict):
    """Anything persisted in a DataStore: a JSON object with an integer id."""

    id: int


class StreamItem(Record, total=False):
    name: str
    coop: bool


RecordT = TypeVar("RecordT", bound=Record)


def is_valid_id(value: Any) -> bool:
    """True for plain ints; bools are rejected even though they subclass int."""
    return isinstance(value, int) and not isinstance(value, bool)


def record_id(record: Mapping[str, Any]) -> int | None:
    """Return the record's id, or None when it is missing or not an int."""
    if not isinstance(record, Mapping):
        return None
    value = record.get("id")
    return value if is_valid_id(value) else None
