from __future__ import annotations


class EnrichmentError(Exception):
    """Base class for failures raised while enriching a college record."""


class MalformedSourceError(EnrichmentError):
    """A page no longer matches the layout an adapter was written against."""

    def __init__(
        self,
        label: str,
        raw: str,
        *,
        reason: str = "unparsable value",
        source: str | None = None,
        block: str | None = None,
    ) -> None:
        self.label = label
        self.raw = raw
        self.reason = reason
        self.source = source
        self.block = block
        super().__init__(self._describe())

    def with_context(self, *, source: str | None = None, block: str | None = None) -> MalformedSourceError:
        if source is not None and self.source is None:
            self.source = source
        if block is not None and self.block is None:
            self.block = block
        self.args = (self._describe(),)
        return self

    def _describe(self) -> str:
        where = "/".join(part for part in (self.source, self.block) if part)
        prefix = f"{where}: " if where else ""
        return f"{prefix}{self.reason} for '{self.label}': {self.raw!r}"


class TransportError(EnrichmentError):
    """Fetching or parsing a document failed before any field was read."""

    def __init__(self, message: str, *, source: str | None = None, url: str | None = None) -> None:
        self.source = source
        self.url = url
        super().__init__(message)


class RecordStoreError(EnrichmentError):
    """The record store rejected a read or a patch."""
