from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

T = TypeVar("T")


def fill_if_absent(current: T | None, candidate: T | None) -> T | None:
    """Keep ``current`` when it is set; otherwise take ``candidate``."""
    return current if current is not None else candidate


def merge_fields(record: Any, values: Mapping[str, Any]) -> tuple[list[str], list[str]]:
    """Apply ``values`` to ``record`` field by field, never overwriting a set field.

    Returns the names written and the names left alone because an earlier
    source had already set them.
    """
    applied: list[str] = []
    kept: list[str] = []
    for field_name, candidate in values.items():
        if candidate is None:
            continue
        current = getattr(record, field_name)
        merged = fill_if_absent(current, candidate)
        if merged is current:
            kept.append(field_name)
            continue
        setattr(record, field_name, merged)
        applied.append(field_name)
    return applied, kept
