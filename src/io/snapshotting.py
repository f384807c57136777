from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

import pandas as pd

from src.normalize.schema import ENRICHABLE_FIELDS, CollegeRecord, column_for

SNAPSHOT_PREFIX = "colleges_snapshot_"
IDENTITY_COLUMNS = ["record_id", "Name", "_big_future_id", "_princeton_review_id"]
SNAPSHOT_COLUMNS = [*IDENTITY_COLUMNS, *(column_for(name) for name in ENRICHABLE_FIELDS)]


def _coerce_output_date(run_date: date | str | None) -> date:
    if run_date is None:
        return datetime.now(tz=UTC).date()
    if isinstance(run_date, date):
        return run_date
    return datetime.strptime(run_date, "%Y%m%d").date()


def _snapshot_filename(run_date: date) -> str:
    return f"{SNAPSHOT_PREFIX}{run_date.strftime('%Y%m%d')}.parquet"


def records_to_frame(records: Iterable[CollegeRecord], *, today: date | None = None) -> pd.DataFrame:
    rows = [
        {"record_id": record.record_id, **record.to_fields(today=today, include_identity=True)}
        for record in records
    ]
    if not rows:
        return pd.DataFrame(columns=SNAPSHOT_COLUMNS)

    df = pd.DataFrame(rows)
    for column in SNAPSHOT_COLUMNS:
        if column not in df.columns:
            df[column] = None
    ordered = df[SNAPSHOT_COLUMNS]
    return ordered.sort_values(by=["record_id"], kind="mergesort").reset_index(drop=True)


def write_parquet_atomic(df: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = output_path.parent / f"{output_path.name}.{uuid4().hex}.tmp"
    try:
        df.to_parquet(temp_path, index=False, engine="pyarrow")
        temp_path.replace(output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def write_json_atomic(payload: dict[str, Any], output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = output_path.parent / f"{output_path.name}.{uuid4().hex}.tmp"
    try:
        temp_path.write_text(json.dumps(payload, indent=2, sort_keys=True, default=str), encoding="utf-8")
        temp_path.replace(output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def build_and_write_snapshot(
    records: Iterable[CollegeRecord],
    *,
    processed_dir: Path,
    run_date: date | str | None = None,
) -> Path:
    snapshot_date = _coerce_output_date(run_date)
    snapshot_df = records_to_frame(records, today=snapshot_date)
    snapshot_path = processed_dir / _snapshot_filename(snapshot_date)
    write_parquet_atomic(snapshot_df, snapshot_path)
    return snapshot_path
