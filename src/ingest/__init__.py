from __future__ import annotations

from .blocks import InfoBlock, find_heading_block, find_labelled_block
from .errors import EnrichmentError, MalformedSourceError, RecordStoreError, TransportError
from .http import PoliteHttpClient
from .rate_limit import RateLimiter

__all__ = [
    "EnrichmentError",
    "InfoBlock",
    "MalformedSourceError",
    "PoliteHttpClient",
    "RateLimiter",
    "RecordStoreError",
    "TransportError",
    "find_heading_block",
    "find_labelled_block",
]
