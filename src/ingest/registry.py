from __future__ import annotations

from src.normalize.schema import column_for

from .base import SourceAdapter
from .sources.bigfuture import BigFutureSource
from .sources.princeton_review import PrincetonReviewSource


def register_sources() -> list[SourceAdapter]:
    # Run order is precedence: earlier sources win any field both can fill.
    return [BigFutureSource(), PrincetonReviewSource()]


def source_id_formula(sources: list[SourceAdapter]) -> str:
    """Airtable formula matching records that carry an id for at least one source."""
    clauses = [f"NOT({{{column_for(source.id_field)}}} = '')" for source in sources]
    if len(clauses) == 1:
        return clauses[0]
    return f"OR({', '.join(clauses)})"
