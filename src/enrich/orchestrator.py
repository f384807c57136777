from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from src.ingest.base import EnrichmentOutcome, SourceAdapter
from src.ingest.errors import EnrichmentError, MalformedSourceError, RecordStoreError, TransportError
from src.normalize.schema import CollegeRecord

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_MALFORMED = "malformed"
STATUS_TRANSPORT = "transport"
STATUS_STORE = "store"
STATUS_ABORTED = "aborted"


class ScheduleMode(str, Enum):
    SEQUENTIAL = "sequential"
    FAN_OUT = "fan_out"


@dataclass(slots=True)
class RecordResult:
    record: CollegeRecord
    status: str = STATUS_OK
    outcomes: list[EnrichmentOutcome] = field(default_factory=list)
    error: EnrichmentError | None = None
    failed_source: str | None = None
    patched: bool = False

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def malformed_key(self) -> tuple[str | None, str] | None:
        if isinstance(self.error, MalformedSourceError):
            return self.error.source, self.error.label
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_id": self.record.record_id,
            "name": self.record.name,
            "status": self.status,
            "patched": self.patched,
            "failed_source": self.failed_source,
            "error": str(self.error) if self.error else None,
            "sources": [
                {
                    "source": outcome.source,
                    "source_id": outcome.source_id,
                    "skipped": outcome.skipped,
                    "applied": list(outcome.applied),
                    "kept": list(outcome.kept),
                }
                for outcome in self.outcomes
            ],
        }


@dataclass(frozen=True, slots=True)
class FailurePolicy:
    """When a failed record should stop the whole run.

    ``strict()`` stops on the first failure of any kind. ``tolerant()`` keeps
    going past transport and store failures, and stops only once the same
    (source, label) has been malformed on ``max_repeated_malformed`` records.
    """

    max_repeated_malformed: int = 1
    skip_transport_errors: bool = False

    @classmethod
    def strict(cls) -> FailurePolicy:
        return cls()

    @classmethod
    def tolerant(cls, max_repeated_malformed: int = 3) -> FailurePolicy:
        return cls(max_repeated_malformed=max(1, max_repeated_malformed), skip_transport_errors=True)

    def should_abort(self, result: RecordResult, malformed_counts: Counter) -> bool:
        if result.ok:
            return False
        if result.status == STATUS_MALFORMED:
            return malformed_counts[result.malformed_key] >= self.max_repeated_malformed
        return not self.skip_transport_errors


class EnrichmentAborted(EnrichmentError):
    def __init__(self, result: RecordResult, results: list[RecordResult]) -> None:
        self.result = result
        self.results = results
        super().__init__(
            f"Enrichment aborted at {result.record.display_name} "
            f"({result.failed_source or 'record store'}): {result.error}"
        )


class Orchestrator:
    """Run every source against each record in a fixed order, then write it back."""

    def __init__(
        self,
        sources: Sequence[SourceAdapter],
        store: Any,
        http_clients: Mapping[str, Any],
        *,
        policy: FailurePolicy | None = None,
        mode: ScheduleMode = ScheduleMode.SEQUENTIAL,
        dry_run: bool = False,
        today: date | None = None,
    ) -> None:
        missing = [source.name for source in sources if source.name not in http_clients]
        if missing:
            raise ValueError(f"No HTTP client configured for sources: {', '.join(missing)}")
        self.sources = list(sources)
        self.store = store
        self.http_clients = dict(http_clients)
        self.policy = policy or FailurePolicy.strict()
        self.mode = ScheduleMode(mode)
        self.dry_run = dry_run
        self.today = today
        self._aborted = threading.Event()

    def enrich_record(self, record: CollegeRecord) -> RecordResult:
        result = RecordResult(record=record)
        for source in self.sources:
            if self._aborted.is_set():
                return self._cancelled(result)
            try:
                outcome = source.enrich(record, self.http_clients[source.name])
            except MalformedSourceError as exc:
                return self._failed(result, STATUS_MALFORMED, exc, source.name)
            except TransportError as exc:
                return self._failed(result, STATUS_TRANSPORT, exc, source.name)
            result.outcomes.append(outcome)

        if self.dry_run:
            return result
        if self._aborted.is_set():
            return self._cancelled(result)
        try:
            self.store.patch(record, today=self.today)
        except (RecordStoreError, TransportError) as exc:
            return self._failed(result, STATUS_STORE, exc, None)
        result.patched = True
        return result

    def run(self, records: Iterable[CollegeRecord]) -> list[RecordResult]:
        pending = list(records)
        self._aborted.clear()
        logger.info("Enriching %d records (mode=%s)", len(pending), self.mode.value)
        if self.mode is ScheduleMode.FAN_OUT:
            return self._run_fan_out(pending)
        return self._run_sequential(pending)

    def _run_sequential(self, records: list[CollegeRecord]) -> list[RecordResult]:
        results: list[RecordResult] = []
        malformed_counts: Counter = Counter()
        for record in records:
            result = self.enrich_record(record)
            results.append(result)
            self._settle(result, results, malformed_counts)
        return results

    def _run_fan_out(self, records: list[CollegeRecord]) -> list[RecordResult]:
        if not records:
            return []

        results_by_index: dict[int, RecordResult] = {}
        malformed_counts: Counter = Counter()
        # One task per record. After an abort, running tasks stop at their next
        # source or before patching, and report STATUS_ABORTED.
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=len(records))
        futures: dict[concurrent.futures.Future, int] = {}
        try:
            for index, record in enumerate(records):
                futures[executor.submit(self.enrich_record, record)] = index
            for future in concurrent.futures.as_completed(futures):
                result = future.result()
                results_by_index[futures[future]] = result
                ordered = [results_by_index[index] for index in sorted(results_by_index)]
                self._settle(result, ordered, malformed_counts)
        except EnrichmentAborted as exc:
            executor.shutdown(wait=True, cancel_futures=True)
            for future, index in futures.items():
                if index not in results_by_index and not future.cancelled():
                    results_by_index[index] = future.result()
            exc.results = [results_by_index[index] for index in sorted(results_by_index)]
            raise
        finally:
            executor.shutdown(wait=True)
        return [results_by_index[index] for index in range(len(records))]

    def _settle(self, result: RecordResult, results: list[RecordResult], malformed_counts: Counter) -> None:
        if result.ok:
            logger.info(
                "Record=%s done patched=%s",
                result.record.display_name,
                result.patched,
            )
            return

        if result.status == STATUS_MALFORMED:
            malformed_counts[result.malformed_key] += 1
        logger.error(
            "Record=%s failed status=%s source=%s: %s",
            result.record.display_name,
            result.status,
            result.failed_source,
            result.error,
        )
        if self.policy.should_abort(result, malformed_counts):
            self._aborted.set()
            raise EnrichmentAborted(result, results)

    @staticmethod
    def _cancelled(result: RecordResult) -> RecordResult:
        result.status = STATUS_ABORTED
        logger.warning("Record=%s not written: run aborted", result.record.display_name)
        return result

    @staticmethod
    def _failed(
        result: RecordResult,
        status: str,
        error: EnrichmentError,
        source_name: str | None,
    ) -> RecordResult:
        result.status = status
        result.error = error
        result.failed_source = source_name
        return result
