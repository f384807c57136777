from __future__ import annotations

import pytest

from src.ingest.blocks import InfoBlock, find_heading_block, find_labelled_block, parse_document
from src.ingest.errors import MalformedSourceError


def test_lookup_matches_labels_case_insensitively_and_trimmed() -> None:
    block = InfoBlock(name="Quick Facts", descriptors=["Four-year, Public", "  Total Undergraduates : 24,118 "])

    assert block.lookup("total undergraduates") == "24,118"
    assert block.lookup("In-State Tuition") is None


def test_lookup_raises_on_line_with_multiple_colons() -> None:
    block = InfoBlock(name="Admission", descriptors=["Regular application due: Jan 15: 11:59pm"])

    with pytest.raises(MalformedSourceError) as excinfo:
        block.lookup("Regular application due")

    assert excinfo.value.block == "Admission"
    assert "multiple ':'" in str(excinfo.value)


def test_descriptor_returns_positional_line_or_none() -> None:
    block = InfoBlock(name="Type of School", descriptors=["4-year", " Private "])

    assert block.descriptor(1) == "Private"
    assert block.descriptor(2) is None
    assert block.value() == "4-year"


def test_heading_block_collects_paragraph_siblings_in_order() -> None:
    document = parse_document(
        "<table><tr><td><h2> Quick Facts </h2><p>a: 1</p><span>x: 9</span><p>b: 2</p></td></tr></table>"
    )

    block = find_heading_block(document, "QUICK FACTS")

    assert block is not None
    assert block.name == "Quick Facts"
    assert block.descriptors == ["a: 1", "b: 2"]


def test_heading_block_missing_is_absent() -> None:
    document = parse_document("<table><tr><td><h2>Admission</h2><p>a: 1</p></td></tr></table>")

    assert find_heading_block(document, "Quick Facts") is None


def test_heading_block_that_appears_twice_is_absent() -> None:
    document = parse_document(
        "<table><tr>"
        "<td><h2>ACT Math</h2><p>30 - 36: 10%</p></td>"
        "<td><h2>ACT Math</h2><p>30 - 36: 12%</p></td>"
        "</tr></table>"
    )

    assert find_heading_block(document, "ACT Math") is None


def test_heading_outside_table_cell_is_ignored() -> None:
    document = parse_document("<div><h2>Quick Facts</h2><p>a: 1</p></div>")

    assert find_heading_block(document, "Quick Facts") is None


def test_labelled_block_reads_last_child_value() -> None:
    document = parse_document(
        '<div class="col-sm-4"><div>Applicants</div><span>note</span><div> 31,870 </div></div>'
    )

    block = find_labelled_block(document, "applicants")

    assert block is not None
    assert block.name == "Applicants"
    assert block.value() == "31,870"


def test_labelled_block_requires_a_value_child_and_a_unique_match() -> None:
    single_child = parse_document('<div class="col-sm-4"><div>Applicants</div></div>')
    duplicated = parse_document(
        '<div class="col-sm-4"><div>Applicants</div><div>1</div></div>'
        '<div class="col-sm-4"><div>Applicants</div><div>2</div></div>'
    )

    assert find_labelled_block(single_child, "Applicants") is None
    assert find_labelled_block(duplicated, "Applicants") is None
