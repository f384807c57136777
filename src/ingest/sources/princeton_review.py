from __future__ import annotations

from bs4 import BeautifulSoup

from src.ingest.base import FLOAT, INT, RANGE, FieldSpec, SourceAdapter
from src.ingest.blocks import InfoBlock, find_labelled_block

PRINCETON_REVIEW_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("Applicants", None, INT, ("num_applicants",)),
    FieldSpec("Acceptance Rate", None, FLOAT, ("acceptance_rate",)),
    FieldSpec("Average HS GPA", None, FLOAT, ("gpa_average",)),
    FieldSpec("ACT Composite", None, RANGE, ("act_range_low", "act_range_high")),
)


class PrincetonReviewSource(SourceAdapter):
    """The Princeton Review college page: ``<div class="col-sm-4"><div>Label</div>...<div>Value</div></div>`` stat tiles."""

    name = "princeton_review"
    id_field = "princeton_review_id"
    url_template = "https://www.princetonreview.com/college/x-{source_id}"
    fields = PRINCETON_REVIEW_FIELDS
    container_selector = "div.col-sm-4"

    def find_block(self, document: BeautifulSoup, name: str) -> InfoBlock | None:
        return find_labelled_block(document, name, container_selector=self.container_selector)
