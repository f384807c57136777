from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

import pandas as pd
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.enrich.orchestrator import (
    EnrichmentAborted,
    FailurePolicy,
    Orchestrator,
    RecordResult,
    ScheduleMode,
)
from src.ingest.errors import EnrichmentError
from src.ingest.http import PoliteHttpClient
from src.ingest.registry import register_sources, source_id_formula
from src.io.snapshotting import build_and_write_snapshot, write_json_atomic
from src.store.airtable import AirtableRecordStore, AirtableSettings

logger = logging.getLogger("run_enrichment")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Enrich Airtable college records from BigFuture and Princeton Review.")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ScheduleMode],
        default=ScheduleMode.FAN_OUT.value,
        help="sequential: one record at a time; fan_out: one task per record.",
    )
    parser.add_argument("--bigfuture-rps", type=float, default=2.0)
    parser.add_argument("--princeton-rps", type=float, default=2.0)
    parser.add_argument("--store-rps", type=float, default=5.0)
    parser.add_argument("--request-timeout-seconds", type=float, default=20.0)
    parser.add_argument("--dry-run", action="store_true", help="Extract and merge without patching Airtable.")
    parser.add_argument("--report-dir", type=Path, default=ROOT_DIR / "reports" / "enrich_runs")
    parser.add_argument("--snapshot-dir", type=Path, default=None)
    parser.add_argument(
        "--skip-transport-errors",
        action="store_true",
        help="Keep going past fetch/store failures instead of stopping the run; the exit code is still 1.",
    )
    parser.add_argument(
        "--max-repeated-malformed",
        type=int,
        default=1,
        help="Stop once the same source label is malformed on this many records.",
    )
    return parser.parse_args(argv)


def _resolve_repo_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return ROOT_DIR / path


def _build_policy(*, skip_transport_errors: bool, max_repeated_malformed: int) -> FailurePolicy:
    return FailurePolicy(
        max_repeated_malformed=max(1, max_repeated_malformed),
        skip_transport_errors=skip_transport_errors,
    )


def _exception_summary(exc: BaseException) -> dict[str, str]:
    return {"type": type(exc).__name__, "message": str(exc)}


def format_status_table(results: list[RecordResult]) -> str:
    if not results:
        return "No records enriched."
    df = pd.DataFrame(
        [
            {
                "Name": result.record.display_name,
                "BigFuture": result.record.big_future_id,
                "Princeton": result.record.princeton_review_id,
                "Status": result.status,
                "Patched": result.patched,
            }
            for result in results
        ]
    )
    for column in ("BigFuture", "Princeton"):
        df[column] = df[column].astype("Int64")
    return df.to_string(index=False, na_rep="-")


def run_enrichment(
    *,
    settings: AirtableSettings,
    mode: ScheduleMode = ScheduleMode.FAN_OUT,
    bigfuture_rps: float = 2.0,
    princeton_rps: float = 2.0,
    store_rps: float = 5.0,
    request_timeout_seconds: float = 20.0,
    dry_run: bool = False,
    policy: FailurePolicy | None = None,
    report_dir: Path | None = None,
    snapshot_dir: Path | None = None,
    today: date | None = None,
) -> dict[str, Any]:
    started_at = datetime.now(tz=UTC)
    resolved_report_dir = _resolve_repo_path(report_dir or (ROOT_DIR / "reports" / "enrich_runs"))
    report_path = resolved_report_dir / f"enrich_{started_at.strftime('%Y%m%dT%H%M%SZ')}.json"
    effective_policy = policy or FailurePolicy.strict()

    sources = register_sources()
    rates = {"bigfuture": bigfuture_rps, "princeton_review": princeton_rps}
    http_clients = {
        source.name: PoliteHttpClient(
            requests_per_second=rates.get(source.name, 2.0),
            timeout_seconds=request_timeout_seconds,
        )
        for source in sources
    }
    store = AirtableRecordStore(
        settings,
        requests_per_second=store_rps,
        timeout_seconds=request_timeout_seconds,
    )

    results: list[RecordResult] = []
    records_listed = 0
    snapshot_path: Path | None = None
    run_exception: dict[str, str] | None = None
    try:
        records = store.list_records(source_id_formula(sources))
        records_listed = len(records)
        orchestrator = Orchestrator(
            sources,
            store,
            http_clients,
            policy=effective_policy,
            mode=mode,
            dry_run=dry_run,
            today=today,
        )
        try:
            results = orchestrator.run(records)
        except EnrichmentAborted as exc:
            results = exc.results
            raise

        if snapshot_dir is not None:
            snapshot_path = build_and_write_snapshot(
                [result.record for result in results if result.ok],
                processed_dir=_resolve_repo_path(snapshot_dir),
                run_date=today,
            )
            logger.info("Wrote snapshot %s", snapshot_path)
    except EnrichmentError as exc:
        run_exception = _exception_summary(exc)
        logger.error("Enrichment stopped: %s", exc)
    except Exception as exc:
        run_exception = _exception_summary(exc)
        raise
    finally:
        for client in http_clients.values():
            client.close()
        store.close()

        finished_at = datetime.now(tz=UTC)
        failed = [result for result in results if not result.ok]
        if run_exception is not None:
            status = "failed"
        elif failed:
            status = "partial"
        else:
            status = "success"

        report_payload = {
            "status": status,
            "run_started_at": started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "run_finished_at": finished_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "duration_seconds": round((finished_at - started_at).total_seconds(), 3),
            "config": {
                "mode": ScheduleMode(mode).value,
                "bigfuture_rps": bigfuture_rps,
                "princeton_rps": princeton_rps,
                "store_rps": store_rps,
                "request_timeout_seconds": request_timeout_seconds,
                "dry_run": dry_run,
                "max_repeated_malformed": effective_policy.max_repeated_malformed,
                "skip_transport_errors": effective_policy.skip_transport_errors,
            },
            "records": {
                "listed": records_listed,
                "processed": len(results),
                "patched": sum(1 for result in results if result.patched),
                "failed": len(failed),
                "details": [result.to_dict() for result in results],
            },
            "artifact_paths": {
                "report": str(report_path.resolve()),
                "snapshot": str(snapshot_path.resolve()) if snapshot_path else None,
            },
            "exception_summary": run_exception,
        }
        write_json_atomic(report_payload, report_path)

    report_payload["results"] = results
    return report_payload


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = AirtableSettings.from_env()
    except EnrichmentError as exc:
        logger.error("%s", exc)
        return 1

    report = run_enrichment(
        settings=settings,
        mode=ScheduleMode(args.mode),
        bigfuture_rps=args.bigfuture_rps,
        princeton_rps=args.princeton_rps,
        store_rps=args.store_rps,
        request_timeout_seconds=args.request_timeout_seconds,
        dry_run=args.dry_run,
        policy=_build_policy(
            skip_transport_errors=args.skip_transport_errors,
            max_repeated_malformed=args.max_repeated_malformed,
        ),
        report_dir=args.report_dir,
        snapshot_dir=args.snapshot_dir,
    )

    print(format_status_table(report["results"]))
    print(f"Run status: {report['status']}")
    print(f"Wrote enrichment report: {report['artifact_paths']['report']}")
    if report["exception_summary"]:
        print(f"Stopped: {report['exception_summary']['message']}")
    return 0 if report["status"] == "success" else 1


if __name__ == "__main__":
    raise SystemExit(main())
