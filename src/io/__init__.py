"""I/O utilities for run reports and record snapshots."""

from src.io.snapshotting import build_and_write_snapshot, write_json_atomic

__all__ = ["build_and_write_snapshot", "write_json_atomic"]
