from __future__ import annotations

from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from src.ingest.errors import MalformedSourceError


def _normalize_label(value: str) -> str:
    return value.strip().lower()


@dataclass(slots=True)
class InfoBlock:
    """A named page section and its raw descriptor lines, in page order."""

    name: str
    descriptors: list[str] = field(default_factory=list)

    def lookup(self, label: str) -> str | None:
        """Value of the first ``label: value`` line whose label matches.

        Lines without a colon carry no field and are skipped. A line with more
        than one colon means the page no longer splits the way we expect.
        """
        wanted = _normalize_label(label)
        for line in self.descriptors:
            parts = line.split(":")
            if len(parts) > 2:
                raise MalformedSourceError(
                    label,
                    line,
                    reason="descriptor line with multiple ':'",
                    block=self.name,
                )
            if len(parts) < 2:
                continue
            key, value = parts
            if _normalize_label(key) == wanted:
                return value.strip()
        return None

    def descriptor(self, index: int) -> str | None:
        if 0 <= index < len(self.descriptors):
            return self.descriptors[index].strip()
        return None

    def value(self) -> str | None:
        return self.descriptor(0)


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def find_heading_block(document: BeautifulSoup, header: str) -> InfoBlock | None:
    """Block introduced by a ``td > h2`` heading; descriptors are its ``p`` siblings."""
    wanted = _normalize_label(header)
    headings = [
        heading
        for heading in document.select("td > h2")
        if _normalize_label(heading.get_text()) == wanted
    ]
    if len(headings) != 1:
        return None

    heading = headings[0]
    siblings = heading.parent.find_all("p", recursive=False) if heading.parent else []
    return InfoBlock(
        name=heading.get_text().strip(),
        descriptors=[sibling.get_text() for sibling in siblings],
    )


def find_labelled_block(
    document: BeautifulSoup,
    label: str,
    *,
    container_selector: str = "div.col-sm-4",
) -> InfoBlock | None:
    """Block held by a container whose first child is ``label`` and last child the value."""
    wanted = _normalize_label(label)
    matches: list[list[Tag]] = []
    for container in document.select(container_selector):
        children = container.find_all(True, recursive=False)
        if len(children) <= 1:
            continue
        if _normalize_label(children[0].get_text()) == wanted:
            matches.append(children)
    if len(matches) != 1:
        return None

    children = matches[0]
    return InfoBlock(
        name=children[0].get_text().strip(),
        descriptors=[children[-1].get_text().strip()],
    )
