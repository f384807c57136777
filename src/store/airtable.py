from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

import requests

from src.ingest.errors import RecordStoreError, TransportError
from src.ingest.http import PoliteHttpClient
from src.normalize.schema import CollegeRecord

logger = logging.getLogger(__name__)

AIRTABLE_API_ROOT = "https://api.airtable.com/v0"
DEFAULT_REQUESTS_PER_SECOND = 5.0
_ENV_KEYS = ("AIRTABLE_API_KEY", "AIRTABLE_BASE", "AIRTABLE_TABLE")


@dataclass(frozen=True, slots=True)
class AirtableSettings:
    api_key: str
    base_id: str
    table_name: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AirtableSettings:
        env = os.environ if environ is None else environ
        missing = [key for key in _ENV_KEYS if not env.get(key, "").strip()]
        if missing:
            raise RecordStoreError(f"Missing Airtable settings: {', '.join(missing)}")
        return cls(
            api_key=env["AIRTABLE_API_KEY"].strip(),
            base_id=env["AIRTABLE_BASE"].strip(),
            table_name=env["AIRTABLE_TABLE"].strip(),
        )


class AirtableRecordStore:
    """List and patch college records in one Airtable table."""

    def __init__(
        self,
        settings: AirtableSettings,
        *,
        http_client: PoliteHttpClient | None = None,
        requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND,
        timeout_seconds: float = 20.0,
    ) -> None:
        self.settings = settings
        self.http_client = http_client or PoliteHttpClient(
            requests_per_second=requests_per_second,
            timeout_seconds=timeout_seconds,
            headers={"Authorization": f"Bearer {settings.api_key}"},
        )

    @property
    def root_url(self) -> str:
        return f"{AIRTABLE_API_ROOT}/{self.settings.base_id}/{self.settings.table_name}"

    def close(self) -> None:
        self.http_client.close()

    def list_records(self, formula: str | None = None) -> list[CollegeRecord]:
        records: list[CollegeRecord] = []
        params: dict[str, Any] = {}
        if formula:
            params["filterByFormula"] = formula

        while True:
            payload = self._send("GET", self.root_url, params=params)
            for item in payload.get("records") or []:
                records.append(CollegeRecord.from_airtable(item))
            offset = payload.get("offset")
            if not offset:
                break
            params = {**params, "offset": offset}

        logger.info("Listed %d records from %s", len(records), self.settings.table_name)
        return records

    def patch(self, record: CollegeRecord, *, today: date | None = None) -> dict[str, Any]:
        url = f"{self.root_url}/{record.record_id}"
        return self._send("PATCH", url, json={"fields": record.to_fields(today=today)})

    def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        try:
            response = self.http_client.request(
                method, url, params=params, json=json, raise_for_status=False
            )
        except requests.RequestException as exc:
            raise TransportError(f"airtable: {method} {url} failed: {exc}", source="airtable", url=url) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RecordStoreError(
                f"airtable: undecodable response ({response.status_code}) for {method} {url}"
            ) from exc

        error = payload.get("error") if isinstance(payload, dict) else None
        if response.status_code != 200 or error:
            raise RecordStoreError(_describe_error(error, response.status_code))
        return payload


def _describe_error(error: Any, status_code: int) -> str:
    if isinstance(error, dict):
        return f"airtable: {error.get('type', 'UNKNOWN')}: {error.get('message', '')}"
    if isinstance(error, str):
        return f"airtable: {error}"
    return f"airtable: HTTP {status_code}"
