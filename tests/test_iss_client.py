"""Tests for the ISS HTTP transport."""
from __future__ import annotations

from datetime import date

import pytest
import requests

from moex_history.data import IssRESTClient
from moex_history.errors import NetworkError


class DummyResponse:
    def __init__(self, status_code: int = 200, text: str = "") -> None:
        self.status_code = status_code
        self.text = text


class DummySession:
    def __init__(self, response: DummyResponse | None = None, error: Exception | None = None) -> None:
        self._response = response
        self._error = error
        self.requests = []
        self.closed = False

    def get(self, url, *, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self._error is not None:
            raise self._error
        return self._response

    def close(self) -> None:
        self.closed = True


def _get(client: IssRESTClient) -> str:
    return client.get_candles_csv(
        engine="stock",
        market="shares",
        board="TQBR",
        security="SBER",
        start=date(2024, 1, 1),
        end=date(2024, 1, 31),
        interval=1,
        offset=500,
    )


def test_builds_candles_request() -> None:
    session = DummySession(DummyResponse(text="candles\n"))
    client = IssRESTClient(base_url="https://iss.example/iss/", session=session)

    assert _get(client) == "candles\n"

    url, params, timeout = session.requests[0]
    assert url == "https://iss.example/iss/engines/stock/markets/shares/boards/TQBR/securities/SBER/candles.csv"
    assert params == {"from": "2024-01-01", "till": "2024-01-31", "interval": 1, "start": 500}
    assert timeout is None


def test_non_success_status_raises_network_error() -> None:
    client = IssRESTClient(session=DummySession(DummyResponse(status_code=503)))

    with pytest.raises(NetworkError, match="503"):
        _get(client)


def test_transport_failure_raises_network_error() -> None:
    client = IssRESTClient(session=DummySession(error=requests.ConnectionError("refused")))

    with pytest.raises(NetworkError, match="refused") as excinfo:
        _get(client)
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)


def test_context_manager_closes_session() -> None:
    session = DummySession(DummyResponse())

    with IssRESTClient(session=session, request_timeout=5.0) as client:
        _get(client)

    assert session.closed
    assert session.requests[0][2] == 5.0
