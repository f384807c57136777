from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests
from requests import Response

from src.ingest.rate_limit import RateLimiter

DEFAULT_USER_AGENT = "CollegeEnrichmentBot/0.1 (+https://localhost; contact=local)"
logger = logging.getLogger(__name__)
_SLOW_REQUEST_SECONDS = 5.0


@dataclass(slots=True)
class PoliteHttpClient:
    requests_per_second: float = 2.0
    timeout_seconds: float = 20.0
    user_agent: str = DEFAULT_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)
    rate_limiter: RateLimiter | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent, **self.headers})
        if self.rate_limiter is None:
            self.rate_limiter = RateLimiter.per_second(self.requests_per_second)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> PoliteHttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_text(self, url: str, *, params: dict[str, Any] | None = None) -> str:
        return self.request("GET", url, params=params).text

    @property
    def timeout_tuple(self) -> tuple[float, float]:
        connect_timeout = max(1.0, min(self.timeout_seconds, 5.0))
        read_timeout = max(connect_timeout, self.timeout_seconds)
        return connect_timeout, read_timeout

    def request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        raise_for_status: bool = True,
    ) -> Response:
        self.rate_limiter.acquire()
        started_at = time.monotonic()
        response = self._session.request(
            method=method,
            url=url,
            params=params,
            json=json,
            timeout=self.timeout_tuple,
        )
        elapsed = time.monotonic() - started_at
        if elapsed > _SLOW_REQUEST_SECONDS:
            logger.warning("Slow HTTP %s %.3fs %s", method, elapsed, url)
        if raise_for_status:
            response.raise_for_status()
        return response
