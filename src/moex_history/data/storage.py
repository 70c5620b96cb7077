"""Persistence of candles to per-instrument text files."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import IO, Iterable

from loguru import logger

from moex_history.data.client import Candle
from moex_history.errors import FilesystemError

HEADER = "<DATE>,<TIME>,<OPEN>,<HIGH>,<LOW>,<CLOSE>,<VOL>\n"


class ResetPolicy(str, Enum):
    """What to do with an output file left behind by a previous run."""

    APPEND = "append"
    REPLACE = "replace"


def format_price(value: float) -> str:
    """Shortest round-trip representation, without a trailing ``.0`` for integral prices."""

    text = repr(float(value))
    if text.endswith(".0"):
        return text[:-2]
    return text


def format_candle(candle: Candle) -> str:
    return "{date},{time},{open},{high},{low},{close},{volume}\n".format(
        date=candle.begin.strftime("%Y%m%d"),
        time=candle.begin.strftime("%H:%M:%S"),
        open=format_price(candle.open),
        high=format_price(candle.high),
        low=format_price(candle.low),
        close=format_price(candle.close),
        volume=int(candle.volume),
    )


class CandleFileWriter:
    """Own the output file of one instrument for the duration of a worker run."""

    def __init__(self, root: Path, *, name: str, policy: ResetPolicy) -> None:
        self._path = Path(root) / f"{name}.txt"
        self._policy = policy
        self._handle: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> "CandleFileWriter":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def ensure_ready(self) -> None:
        """Prepare the file according to the reset policy and keep it open for appends.

        APPEND keeps whatever a previous run left and only writes the header
        when the file is new. REPLACE always starts from an empty file.
        """

        try:
            if self._policy is ResetPolicy.REPLACE:
                self._path.unlink(missing_ok=True)
            created = not self._path.exists()
            self._handle = self._path.open("a", encoding="utf-8", newline="")
            if created:
                self._handle.write(HEADER)
                self._handle.flush()
        except OSError as exc:
            self.close()
            raise FilesystemError(f"failed to prepare {self._path}: {exc}") from exc

        logger.debug(
            "Prepared {path} ({policy}, created={created})",
            path=self._path,
            policy=self._policy.value,
            created=created,
        )

    def append(self, candles: Iterable[Candle]) -> int:
        """Write the candles of one completed period and flush them to disk."""

        if self._handle is None:
            raise FilesystemError(f"{self._path} is not open; call ensure_ready() first")

        written = 0
        try:
            for candle in candles:
                self._handle.write(format_candle(candle))
                written += 1
            self._handle.flush()
        except OSError as exc:
            raise FilesystemError(f"failed to append to {self._path}: {exc}") from exc
        return written

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
