from __future__ import annotations

import pytest

from src.ingest.errors import MalformedSourceError
from src.normalize.coercion import (
    coerce_deadline,
    coerce_float,
    coerce_int,
    coerce_ownership,
    coerce_range,
    trim_formatted_number,
)
from src.normalize.deadline import Deadline


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("24,118", 24118),
        ("$10,560", 10560),
        ("1 234 567", 1234567),
        ("45%", 45),
        ("  $ 3,000 ", 3000),
    ],
)
def test_coerce_int_strips_number_formatting(raw: str, expected: int) -> None:
    assert coerce_int("label", raw) == expected


def test_trim_formatted_number_is_idempotent() -> None:
    raw = "$ 1,234,567 %"
    once = trim_formatted_number(raw)

    assert once == "1234567"
    assert trim_formatted_number(once) == once
    assert coerce_int("label", once) == coerce_int("label", raw)


def test_coerce_float_reads_percentages() -> None:
    assert coerce_float("Acceptance Rate", "62%") == 62.0
    assert coerce_float("In-State Tuition", "$10,560.50") == 10560.5
    assert coerce_float("GPA", ".5") == 0.5


@pytest.mark.parametrize("raw", ["N/A", "", "1_000", "nan", "12.5.1", "3-4"])
def test_coerce_float_rejects_non_numbers(raw: str) -> None:
    with pytest.raises(MalformedSourceError) as excinfo:
        coerce_float("Average HS GPA", raw)

    assert excinfo.value.label == "Average HS GPA"
    assert excinfo.value.raw == raw


def test_coerce_int_rejects_decimals() -> None:
    with pytest.raises(MalformedSourceError, match="Applicants"):
        coerce_int("Applicants", "31.5")


@pytest.mark.parametrize("raw", ["No regular application", "No early action", "--", "  --  "])
def test_coerce_deadline_treats_not_offered_as_absent(raw: str) -> None:
    assert coerce_deadline("Regular application due", raw) is None


def test_coerce_deadline_does_not_mistake_november_for_not_offered() -> None:
    assert coerce_deadline("Early action application due", "Nov 1") == Deadline(month=11, day=1)


def test_coerce_deadline_raises_on_unparsable_value() -> None:
    with pytest.raises(MalformedSourceError) as excinfo:
        coerce_deadline("Regular application due", "Rolling")

    assert "Regular application due" in str(excinfo.value)
    assert "Rolling" in str(excinfo.value)


def test_coerce_range_splits_low_and_high() -> None:
    assert coerce_range("ACT Composite", "21 - 27") == (21, 27)


@pytest.mark.parametrize("raw", ["21", "21-27", "21 - 27 - 30"])
def test_coerce_range_rejects_other_shapes(raw: str) -> None:
    with pytest.raises(MalformedSourceError):
        coerce_range("ACT Composite", raw)


def test_coerce_ownership_accepts_only_public_or_private() -> None:
    assert coerce_ownership(" Public ") == "Public"
    assert coerce_ownership("Private") == "Private"
    assert coerce_ownership("Private nonprofit") is None
    assert coerce_ownership("4-year") is None
    assert coerce_ownership(None) is None
