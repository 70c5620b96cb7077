"""Thin wrapper around a requests session for the MOEX ISS candles endpoint."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

import requests

from moex_history.errors import NetworkError

DEFAULT_BASE_URL = "https://iss.moex.com/iss"


class IssRESTClient:
    """Fetch raw CSV candle pages with resource cleanup."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout: float | None = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = request_timeout
        self._session = session or requests.Session()

    def __enter__(self) -> "IssRESTClient":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP session."""

        self._session.close()

    def candles_url(self, *, engine: str, market: str, board: str, security: str) -> str:
        return (
            f"{self._base_url}/engines/{engine}/markets/{market}"
            f"/boards/{board}/securities/{security}/candles.csv"
        )

    def get_candles_csv(
        self,
        *,
        engine: str,
        market: str,
        board: str,
        security: str,
        start: date,
        end: date,
        interval: int,
        offset: int,
    ) -> str:
        """Request one page of candles and return the response body."""

        url = self.candles_url(engine=engine, market=market, board=board, security=security)
        params: Dict[str, Any] = {
            "from": start.isoformat(),
            "till": end.isoformat(),
            "interval": interval,
            "start": offset,
        }
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as exc:
            raise NetworkError(f"GET {url} failed: {exc}") from exc

        if response.status_code != requests.codes.ok:
            raise NetworkError(f"GET {url} returned unexpected status code {response.status_code}")
        return response.text
