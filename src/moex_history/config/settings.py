"""Configuration management for the history downloader."""
from __future__ import annotations

import tomllib
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from moex_history.data.instruments import Instrument, InstrumentClass
from moex_history.data.iss_client import DEFAULT_BASE_URL

DEFAULT_SHARES = ["SBER", "GAZP", "LKOH", "GMKN"]

DEFAULT_FUTURES = [
    "Si", "BR", "RI", "SR", "GZ", "LK", "MX", "GD", "RN", "VB",
    "MG", "SN", "NL", "MT", "GM", "TT", "PL", "CH", "YN", "AL",
    "ME", "FV", "PO", "PH", "TN", "AF", "NV", "PK", "RU", "HY",
]


class IssSettings(BaseModel):
    """MOEX ISS connection parameters."""

    base_url: str = Field(DEFAULT_BASE_URL)
    request_timeout: float | None = Field(None, gt=0.0, description="Seconds per request; unbounded when unset")


class DownloadSettings(BaseModel):
    """Pagination, throttling and concurrency knobs."""

    interval: int = Field(1, ge=1, description="ISS candle interval code (1 = one minute)")
    page_size: int = Field(500, ge=1, description="Rows per ISS page; a shorter page ends pagination")
    request_delay: float = Field(0.1, ge=0.0, description="Seconds to pause after each period")
    max_workers: int = Field(4, ge=1, description="Instruments downloaded concurrently")
    output_dir: Path = Field(Path("moex_data"))
    cancel_on_failure: bool = Field(False, description="Stop remaining periods of other instruments after a failure")


class InstrumentGroup(BaseModel):
    """A set of symbols sharing one venue and one year range."""

    symbols: List[str]
    engine: str
    market: str
    board: str
    year_start: int
    year_end: int

    @model_validator(mode="after")
    def _check_years(self) -> "InstrumentGroup":
        if self.year_start > self.year_end:
            raise ValueError("year_start must not be after year_end")
        return self


class AppSettings(BaseSettings):
    """Application-wide configuration composed from individual domains."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_prefix="MOEX_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    iss: IssSettings = IssSettings()
    download: DownloadSettings = DownloadSettings()
    shares: InstrumentGroup = InstrumentGroup(
        symbols=DEFAULT_SHARES,
        engine="stock",
        market="shares",
        board="TQBR",
        year_start=2010,
        year_end=2026,
    )
    futures: InstrumentGroup = InstrumentGroup(
        symbols=DEFAULT_FUTURES,
        engine="futures",
        market="forts",
        board="RFUD",
        year_start=2016,
        year_end=2026,
    )

    def group(self, kind: InstrumentClass) -> InstrumentGroup:
        return self.shares if kind is InstrumentClass.EQUITY else self.futures

    def instruments(self, kind: InstrumentClass, symbols: Optional[List[str]] = None) -> List[Instrument]:
        """Build instruments of one class, optionally restricted to ``symbols``."""

        group = self.group(kind)
        return [
            Instrument(symbol=symbol, engine=group.engine, market=group.market, board=group.board, kind=kind)
            for symbol in (symbols or group.symbols)
        ]


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """Load settings from a TOML file, falling back to environment variables."""

    if path is None:
        path = Path("config/settings.toml")

    try:
        if path.exists():
            raw_data = tomllib.loads(path.read_text())
            return AppSettings.model_validate(raw_data)
        return AppSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration in {path} or the MOEX_* environment variables.") from exc
