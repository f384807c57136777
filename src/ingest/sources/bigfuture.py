from __future__ import annotations

from bs4 import BeautifulSoup

from src.ingest.base import DEADLINE, FLOAT, INT, OWNERSHIP, FieldSpec, SourceAdapter
from src.ingest.blocks import InfoBlock, find_heading_block

_ACT_BRACKETS = (("30 - 36", "30_36"), ("24 - 29", "24_29"), ("18 - 23", "18_23"), ("12 - 17", "12_17"))
_GPA_BRACKETS = (
    ("3.75+", "gpa_375_plus"),
    ("3.5 - 3.74", "gpa_350_374"),
    ("3.25 - 3.49", "gpa_325_349"),
    ("3.00 - 3.24", "gpa_300_324"),
    ("2.50 - 2.99", "gpa_250_299"),
)


def _act_fields(block: str, prefix: str) -> tuple[FieldSpec, ...]:
    return tuple(FieldSpec(block, label, FLOAT, (f"{prefix}_{suffix}",)) for label, suffix in _ACT_BRACKETS)


BIGFUTURE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("Quick Facts", "Total undergraduates", INT, ("num_undergrads",)),
    FieldSpec("Quick Facts", "In-State Tuition", FLOAT, ("in_state_tuition",)),
    FieldSpec("Quick Facts", "Out-of-State Tuition", FLOAT, ("out_of_state_tuition",)),
    FieldSpec("Type of School", "College Board Code", INT, ("sat_code",)),
    FieldSpec("Type of School", None, OWNERSHIP, ("ownership",)),
    FieldSpec("Admission", "Regular application due", DEADLINE, ("standard_deadline",)),
    FieldSpec(
        "Admission",
        "College will notify student of admission",
        DEADLINE,
        ("standard_notification",),
    ),
    FieldSpec("Early Decision and Action", "Early action application due", DEADLINE, ("early_deadline",)),
    FieldSpec(
        "Early Decision and Action",
        "College will notify student of early action admission by",
        DEADLINE,
        ("early_notification",),
    ),
    *_act_fields("ACT Composite", "act_composite"),
    *_act_fields("ACT Math", "act_math"),
    *_act_fields("ACT English", "act_english"),
    *(FieldSpec("GPAs of incoming freshmen", label, FLOAT, (target,)) for label, target in _GPA_BRACKETS),
)


class BigFutureSource(SourceAdapter):
    """College Board BigFuture printable profile: ``<td><h2>Heading</h2><p>Label: value</p>...``."""

    name = "bigfuture"
    id_field = "big_future_id"
    url_template = (
        "https://bigfuture.collegeboard.org/college-university-search/print-college-profile?id={source_id}"
    )
    fields = BIGFUTURE_FIELDS

    def find_block(self, document: BeautifulSoup, name: str) -> InfoBlock | None:
        return find_heading_block(document, name)
