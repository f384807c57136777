from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd

from src.io.snapshotting import (
    SNAPSHOT_COLUMNS,
    build_and_write_snapshot,
    records_to_frame,
)
from src.normalize.deadline import Deadline
from src.normalize.schema import CollegeRecord


def test_records_to_frame_orders_rows_and_resolves_deadlines() -> None:
    records = [
        CollegeRecord(record_id="rec2", name="B", early_deadline=Deadline(month=11, day=1)),
        CollegeRecord(record_id="rec1", name="A", num_applicants=31870),
    ]

    df = records_to_frame(records, today=date(2024, 3, 1))

    assert list(df.columns) == SNAPSHOT_COLUMNS
    assert list(df["record_id"]) == ["rec1", "rec2"]
    assert df.loc[1, "Early Deadline"] == "2024-11-01"
    assert df.loc[0, "Num. Applicants"] == 31870


def test_records_to_frame_handles_empty_input() -> None:
    df = records_to_frame([])

    assert df.empty
    assert list(df.columns) == SNAPSHOT_COLUMNS


def test_build_and_write_snapshot_names_file_by_run_date(tmp_path: Path) -> None:
    path = build_and_write_snapshot(
        [CollegeRecord(record_id="rec1", name="A", ownership="Private")],
        processed_dir=tmp_path,
        run_date="20240301",
    )

    assert path.name == "colleges_snapshot_20240301.parquet"
    assert sorted(tmp_path.iterdir()) == [path]
    assert pd.read_parquet(path).loc[0, "Ownership"] == "Private"
