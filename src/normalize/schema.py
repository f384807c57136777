from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date
from typing import Any

from src.ingest.errors import RecordStoreError
from src.normalize.deadline import Deadline

INT = "int"
FLOAT = "float"
TEXT = "text"
DEADLINE = "deadline"


def _column(name: str, kind: str, *, identity: bool = False) -> Any:
    return field(default=None, metadata={"column": name, "kind": kind, "identity": identity})


@dataclass(slots=True)
class CollegeRecord:
    record_id: str
    name: str | None = _column("Name", TEXT, identity=True)
    big_future_id: int | None = _column("_big_future_id", INT, identity=True)
    princeton_review_id: int | None = _column("_princeton_review_id", INT, identity=True)

    ownership: str | None = _column("Ownership", TEXT)

    # BigFuture: size, tuition, deadlines
    num_undergrads: int | None = _column("Num. Undergrads", INT)
    in_state_tuition: float | None = _column("Tuition: In-State", FLOAT)
    out_of_state_tuition: float | None = _column("Tuition: Out-of-State", FLOAT)
    standard_deadline: Deadline | None = _column("Standard Deadline", DEADLINE)
    standard_notification: Deadline | None = _column("Standard Notification", DEADLINE)
    early_deadline: Deadline | None = _column("Early Deadline", DEADLINE)
    early_notification: Deadline | None = _column("Early Notification", DEADLINE)

    # BigFuture: ACT/GPA bracket percentages
    act_composite_30_36: float | None = _column("ACT Composite 30-36", FLOAT)
    act_composite_24_29: float | None = _column("ACT Composite 24-29", FLOAT)
    act_composite_18_23: float | None = _column("ACT Composite 18-23", FLOAT)
    act_composite_12_17: float | None = _column("ACT Composite 12-17", FLOAT)
    act_math_30_36: float | None = _column("ACT Math 30-36", FLOAT)
    act_math_24_29: float | None = _column("ACT Math 24-29", FLOAT)
    act_math_18_23: float | None = _column("ACT Math 18-23", FLOAT)
    act_math_12_17: float | None = _column("ACT Math 12-17", FLOAT)
    act_english_30_36: float | None = _column("ACT English 30-36", FLOAT)
    act_english_24_29: float | None = _column("ACT English 24-29", FLOAT)
    act_english_18_23: float | None = _column("ACT English 18-23", FLOAT)
    act_english_12_17: float | None = _column("ACT English 12-17", FLOAT)
    gpa_375_plus: float | None = _column("GPA 3.75+", FLOAT)
    gpa_350_374: float | None = _column("GPA 3.50-3.74", FLOAT)
    gpa_325_349: float | None = _column("GPA 3.25-3.49", FLOAT)
    gpa_300_324: float | None = _column("GPA 3.00-3.24", FLOAT)
    gpa_250_299: float | None = _column("GPA 2.50-2.99", FLOAT)

    # Princeton Review: selectivity
    num_applicants: int | None = _column("Num. Applicants", INT)
    acceptance_rate: float | None = _column("Acceptance Rate", FLOAT)
    gpa_average: float | None = _column("GPA Average", FLOAT)
    act_range_low: int | None = _column("ACT Range Low", INT)
    act_range_high: int | None = _column("ACT Range High", INT)

    # Test score submission codes
    sat_code: int | None = _column("SAT Code", INT)
    act_code: int | None = _column("ACT Code", INT)

    @classmethod
    def from_airtable(cls, payload: dict[str, Any]) -> CollegeRecord:
        record_id = str(payload["id"])
        columns = payload.get("fields") or {}
        values: dict[str, Any] = {}
        for column_field in _COLUMN_FIELDS:
            column = column_field.metadata["column"]
            raw = columns.get(column)
            try:
                values[column_field.name] = _decode(
                    column_field.metadata["kind"], raw, identity=column_field.metadata["identity"]
                )
            except (TypeError, ValueError) as exc:
                raise RecordStoreError(
                    f"airtable: record {record_id} has an unreadable '{column}' value: {raw!r}"
                ) from exc
        return cls(record_id=record_id, **values)

    def to_fields(self, *, today: date | None = None, include_identity: bool = False) -> dict[str, Any]:
        """Airtable ``fields`` mapping of every set column; deadlines resolve against ``today``."""
        encoded: dict[str, Any] = {}
        for column_field in _COLUMN_FIELDS:
            if column_field.metadata["identity"] and not include_identity:
                continue
            value = getattr(self, column_field.name)
            if value is None:
                continue
            if isinstance(value, Deadline):
                value = value.to_iso(today)
            encoded[column_field.metadata["column"]] = value
        return encoded

    @property
    def display_name(self) -> str:
        return self.name or self.record_id


_COLUMN_FIELDS = tuple(column_field for column_field in fields(CollegeRecord) if "column" in column_field.metadata)
ENRICHABLE_FIELDS = tuple(column_field.name for column_field in _COLUMN_FIELDS if not column_field.metadata["identity"])


def column_for(field_name: str) -> str:
    for column_field in _COLUMN_FIELDS:
        if column_field.name == field_name:
            return column_field.metadata["column"]
    raise KeyError(field_name)


def _decode(kind: str, raw: Any, *, identity: bool = False) -> Any:
    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    if kind == DEADLINE:
        return Deadline.from_iso(str(raw))
    if kind == INT:
        value = int(raw)
        # A zero source id means none was entered.
        return None if identity and value == 0 else value
    if kind == FLOAT:
        return float(raw)
    return str(raw)
