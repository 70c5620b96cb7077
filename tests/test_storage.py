"""Tests for the per-instrument output files."""
from datetime import datetime

import pytest

from moex_history.data import HEADER, CandleFileWriter, ResetPolicy, format_candle
from moex_history.data.client import Candle
from moex_history.data.storage import format_price
from moex_history.errors import FilesystemError


def make_candle(minute: int = 0, price: float = 250.5) -> Candle:
    return Candle(
        begin=datetime(2024, 3, 1, 9, minute, 5),
        open=price,
        high=price + 1,
        low=price - 0.25,
        close=price + 0.125,
        volume=42,
    )


def test_format_candle_layout() -> None:
    line = format_candle(make_candle(minute=7))

    assert line == "20240301,09:07:05,250.5,251.5,250.25,250.625,42\n"


@pytest.mark.parametrize(
    ("value", "expected"),
    [(250.0, "250"), (0.1, "0.1"), (73.155, "73.155"), (1e-05, "1e-05"), (0.0, "0")],
)
def test_format_price_uses_shortest_repr(value: float, expected: str) -> None:
    assert format_price(value) == expected


def test_append_policy_creates_file_with_header(tmp_path) -> None:
    with CandleFileWriter(tmp_path, name="SBER", policy=ResetPolicy.APPEND) as writer:
        writer.ensure_ready()
        assert writer.append([make_candle(0), make_candle(1)]) == 2

    assert writer.path == tmp_path / "SBER.txt"
    lines = (tmp_path / "SBER.txt").read_text().splitlines(keepends=True)
    assert lines[0] == HEADER
    assert len(lines) == 3


def test_append_policy_preserves_existing_content(tmp_path) -> None:
    target = tmp_path / "SBER.txt"
    target.write_text(HEADER + "old\n")

    with CandleFileWriter(tmp_path, name="SBER", policy=ResetPolicy.APPEND) as writer:
        writer.ensure_ready()
        writer.append([make_candle()])

    lines = target.read_text().splitlines()
    assert lines[:2] == [HEADER.strip(), "old"]
    assert lines.count(HEADER.strip()) == 1
    assert len(lines) == 3


def test_replace_policy_truncates_previous_run(tmp_path) -> None:
    target = tmp_path / "Si.txt"
    target.write_text(HEADER + "stale\nstale\n")

    with CandleFileWriter(tmp_path, name="Si", policy=ResetPolicy.REPLACE) as writer:
        writer.ensure_ready()

    assert target.read_text() == HEADER


def test_appends_are_flushed_per_call(tmp_path) -> None:
    writer = CandleFileWriter(tmp_path, name="GAZP", policy=ResetPolicy.APPEND)
    writer.ensure_ready()
    writer.append([make_candle()])

    assert len((tmp_path / "GAZP.txt").read_text().splitlines()) == 2
    writer.close()


def test_append_without_ensure_ready_fails(tmp_path) -> None:
    writer = CandleFileWriter(tmp_path, name="LKOH", policy=ResetPolicy.APPEND)

    with pytest.raises(FilesystemError):
        writer.append([make_candle()])


def test_missing_directory_raises_filesystem_error(tmp_path) -> None:
    writer = CandleFileWriter(tmp_path / "absent", name="GMKN", policy=ResetPolicy.APPEND)

    with pytest.raises(FilesystemError):
        writer.ensure_ready()
