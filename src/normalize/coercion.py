from __future__ import annotations

import re

from src.ingest.errors import MalformedSourceError
from src.normalize.deadline import Deadline

_FORMATTING_PATTERN = re.compile(r"[\s$,%]")
_INT_PATTERN = re.compile(r"^[+-]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")
_NOT_OFFERED_PREFIX = "No "
_PLACEHOLDER = "--"
_RANGE_SEPARATOR = " - "
OWNERSHIP_VALUES = frozenset({"Public", "Private"})


def trim_formatted_number(value: str) -> str:
    """Drop whitespace, currency symbols, thousands separators and percent signs."""
    return _FORMATTING_PATTERN.sub("", value)


def coerce_int(label: str, value: str) -> int:
    trimmed = trim_formatted_number(value)
    if not _INT_PATTERN.match(trimmed):
        raise MalformedSourceError(label, value, reason="expected an integer")
    return int(trimmed)


def coerce_float(label: str, value: str) -> float:
    trimmed = trim_formatted_number(value)
    if not _FLOAT_PATTERN.match(trimmed):
        raise MalformedSourceError(label, value, reason="expected a number")
    return float(trimmed)


def is_not_offered(value: str) -> bool:
    # "No regular application", but not "Nov 1".
    return value.startswith(_NOT_OFFERED_PREFIX) or value == _PLACEHOLDER


def coerce_deadline(label: str, value: str) -> Deadline | None:
    cleaned = value.strip()
    if is_not_offered(cleaned):
        return None
    try:
        return Deadline.parse(cleaned)
    except ValueError as exc:
        raise MalformedSourceError(label, value, reason="expected a month/day deadline") from exc


def coerce_range(label: str, value: str) -> tuple[int, int]:
    parts = value.strip().split(_RANGE_SEPARATOR)
    if len(parts) != 2:
        raise MalformedSourceError(label, value, reason="expected a '<low> - <high>' range")
    low, high = parts
    return coerce_int(label, low), coerce_int(label, high)


def coerce_ownership(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned if cleaned in OWNERSHIP_VALUES else None
