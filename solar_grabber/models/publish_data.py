# solar_grabber/models/publish_data.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Union

Value = Union[str, float]


class FieldKind(Enum):
    TAG = "tag"        # indexed
    FIELD = "field"    # un-indexed


@dataclass(frozen=True)
class Field:
    name: str
    value: Value
    kind: FieldKind

    @property
    def is_tag(self) -> bool:
        return self.kind is FieldKind.TAG


def _coerce_value(value) -> Value:
    # bool is an int subclass; a flag is not a metric
    if isinstance(value, bool):
        raise TypeError("boolean values are not supported")
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    raise TypeError(f"unsupported value type: {type(value).__name__}")


class PublishData:
    """
    Ordered bag of tags and fields produced by a single device poll.

    Entries keep insertion order. Lookup by name returns the first entry with
    that name, whichever class it belongs to.
    """

    def __init__(self):
        self._entries: list[Field] = []

    # ------------------------------------------------------------------
    def _append(self, name: str, value, kind: FieldKind) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("name must be a non-empty string")
        self._entries.append(Field(name, _coerce_value(value), kind))

    def tag(self, name: str, value) -> None:
        self._append(name, value, FieldKind.TAG)

    def field(self, name: str, value) -> None:
        self._append(name, value, FieldKind.FIELD)

    # ------------------------------------------------------------------
    def tags(self) -> list[Field]:
        return [f for f in self._entries if f.kind is FieldKind.TAG]

    def fields(self) -> list[Field]:
        return [f for f in self._entries if f.kind is FieldKind.FIELD]

    def get(self, name: str, default=None):
        for entry in self._entries:
            if entry.name == name:
                return entry.value
        return default

    def __getitem__(self, name: str) -> Value:
        for entry in self._entries:
            if entry.name == name:
                return entry.value
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(entry.name == name for entry in self._entries)

    def __iter__(self) -> Iterator[Field]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PublishData({self._entries!r})"

    def as_dict(self) -> dict[str, dict[str, Value]]:
        tags: dict[str, Value] = {}
        fields: dict[str, Value] = {}
        for entry in self._entries:
            target = tags if entry.is_tag else fields
            target.setdefault(entry.name, entry.value)
        return {"tags": tags, "fields": fields}
