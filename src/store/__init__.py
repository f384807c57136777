from __future__ import annotations

from .airtable import AirtableRecordStore, AirtableSettings

__all__ = ["AirtableRecordStore", "AirtableSettings"]
