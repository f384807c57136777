from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import requests
from bs4 import BeautifulSoup

from src.enrich.merge import merge_fields
from src.ingest.blocks import InfoBlock, parse_document
from src.ingest.errors import MalformedSourceError, TransportError
from src.normalize.coercion import (
    coerce_deadline,
    coerce_float,
    coerce_int,
    coerce_ownership,
    coerce_range,
)
from src.normalize.schema import CollegeRecord

logger = logging.getLogger(__name__)

INT = "int"
FLOAT = "float"
DEADLINE = "deadline"
RANGE = "range"
OWNERSHIP = "ownership"

_SCALAR_COERCERS = {
    INT: coerce_int,
    FLOAT: coerce_float,
    DEADLINE: coerce_deadline,
}


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """Where one value lives on a page and which record field(s) it fills.

    ``prop`` names the ``label: value`` line inside ``block``; ``None`` reads the
    block's sole value instead. ``RANGE`` fills two targets (low, high);
    ``OWNERSHIP`` reads the block's second descriptor line.
    """

    block: str
    prop: str | None
    kind: str
    targets: tuple[str, ...]

    @property
    def label(self) -> str:
        return self.prop or self.block


@dataclass(slots=True)
class EnrichmentOutcome:
    source: str
    source_id: int | None
    applied: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    skipped: bool = False


class SourceAdapter(ABC):
    name: str
    id_field: str
    url_template: str
    fields: tuple[FieldSpec, ...] = ()

    @abstractmethod
    def find_block(self, document: BeautifulSoup, name: str) -> InfoBlock | None:
        """Locate the uniquely named block, or ``None`` when it is absent or ambiguous."""

    def source_id(self, record: CollegeRecord) -> int | None:
        return getattr(record, self.id_field)

    def url_for(self, source_id: int) -> str:
        return self.url_template.format(source_id=source_id)

    def fetch(self, record: CollegeRecord, http_client: Any) -> str:
        source_id = self.source_id(record)
        url = self.url_for(source_id)
        try:
            return http_client.get_text(url)
        except requests.RequestException as exc:
            raise TransportError(
                f"{self.name}: fetch failed for {url}: {exc}", source=self.name, url=url
            ) from exc

    def extract(self, html: str) -> dict[str, Any]:
        try:
            document = parse_document(html)
        except Exception as exc:
            raise TransportError(f"{self.name}: could not parse document: {exc}", source=self.name) from exc

        values: dict[str, Any] = {}
        blocks: dict[str, InfoBlock | None] = {}
        for field_spec in self.fields:
            if field_spec.block not in blocks:
                blocks[field_spec.block] = self.find_block(document, field_spec.block)
            block = blocks[field_spec.block]
            if block is None:
                continue
            try:
                values.update(self._read_field(block, field_spec))
            except MalformedSourceError as exc:
                raise exc.with_context(source=self.name, block=block.name)
        return values

    def enrich(self, record: CollegeRecord, http_client: Any) -> EnrichmentOutcome:
        source_id = self.source_id(record)
        if source_id is None:
            logger.debug("Source=%s skipped %s: no source id", self.name, record.display_name)
            return EnrichmentOutcome(source=self.name, source_id=None, skipped=True)

        html = self.fetch(record, http_client)
        values = self.extract(html)
        applied, kept = merge_fields(record, values)
        logger.info(
            "Source=%s record=%s applied=%d kept=%d",
            self.name,
            record.display_name,
            len(applied),
            len(kept),
        )
        return EnrichmentOutcome(source=self.name, source_id=source_id, applied=applied, kept=kept)

    def _read_field(self, block: InfoBlock, field_spec: FieldSpec) -> dict[str, Any]:
        if field_spec.kind == OWNERSHIP:
            return {field_spec.targets[0]: coerce_ownership(block.descriptor(1))}

        raw = block.value() if field_spec.prop is None else block.lookup(field_spec.prop)
        if raw is None:
            return {}
        if field_spec.kind == RANGE:
            low, high = coerce_range(field_spec.label, raw)
            low_target, high_target = field_spec.targets
            return {low_target: low, high_target: high}
        return {field_spec.targets[0]: _SCALAR_COERCERS[field_spec.kind](field_spec.label, raw)}
