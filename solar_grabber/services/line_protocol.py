# solar_grabber/services/line_protocol.py

from __future__ import annotations

import math

from solar_grabber.models.publish_data import Field, PublishData, Value


MEASUREMENT_SPECIALS = frozenset(", ")
KEY_SPECIALS = frozenset(",= ")
STRING_FIELD_SPECIALS = frozenset('"\\')


def escape(text: str, specials: frozenset[str]) -> str:
    """Prefix every character found in ``specials`` with a backslash.

    Single pass over the input, so backslashes added here are never
    escaped a second time.
    """
    out = []
    for ch in text:
        if ch in specials:
            out.append("\\")
        out.append(ch)
    return "".join(out)


def format_float(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"cannot encode non-finite value {value!r}")
    return repr(value)


def _tag_literal(value: Value) -> str:
    if isinstance(value, str):
        return escape(value, KEY_SPECIALS)
    return format_float(value)


def _field_literal(value: Value) -> str:
    if isinstance(value, str):
        return '"' + escape(value, STRING_FIELD_SPECIALS) + '"'
    return format_float(value)


def _pair(entry: Field) -> str:
    literal = _tag_literal(entry.value) if entry.is_tag else _field_literal(entry.value)
    return f"{escape(entry.name, KEY_SPECIALS)}={literal}"


def encode(measurement: str, data: PublishData) -> str:
    """Render ``data`` as one InfluxDB line-protocol line (no timestamp).

    Tags come first in insertion order, then a single space, then fields in
    insertion order.
    """
    fields = data.fields()
    if not fields:
        raise ValueError("line protocol requires at least one field")

    head = [escape(measurement, MEASUREMENT_SPECIALS)]
    head.extend(_pair(tag) for tag in data.tags())

    return ",".join(head) + " " + ",".join(_pair(f) for f in fields)
