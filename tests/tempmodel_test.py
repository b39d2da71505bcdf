from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import pytest

from temp_dirs.tempduration import MAX_TIMESTAMP
from temp_dirs.tempduration import parse_duration
from temp_dirs.temperrors import CreationError
from temp_dirs.temperrors import InvalidNameError
from temp_dirs.temperrors import MalformedAmountError
from temp_dirs.temperrors import RecordFormatError
from temp_dirs.temperrors import UnknownUnitError
from temp_dirs.tempmodel import SweepReport
from temp_dirs.tempmodel import TempDirectory
from temp_dirs.tempmodel import validate_name

NOW_TS = 1700000000


def fixed_clock() -> float:
    return NOW_TS + 0.75


@pytest.fixture
def record() -> TempDirectory:
    return TempDirectory("foo", "1d", NOW_TS, NOW_TS + 86400, "/tmp/foo")


def test_new_sets_timestamps_from_clock() -> None:
    record = TempDirectory.new("foo", "1d", clock=fixed_clock)

    assert record.name == "foo"
    assert record.duration == "1d"
    assert record.created_at == NOW_TS
    assert record.end_time == NOW_TS + 86400
    assert record.path is None


@pytest.mark.parametrize("duration", ["1s", "30min", "12h", "1d", "4w", "8m"])
def test_new_end_time_matches_duration(duration: str) -> None:
    record = TempDirectory.new("foo", duration)

    assert record.end_time - record.created_at == parse_duration(duration)


def test_new_raises_creation_error_on_invalid_duration() -> None:
    with pytest.raises(CreationError) as error:
        TempDirectory.new("foo", "10xyz", clock=fixed_clock)

    assert isinstance(error.value.__cause__, UnknownUnitError)


def test_new_raises_creation_error_on_oversized_duration() -> None:
    with pytest.raises(CreationError) as error:
        TempDirectory.new("foo", "99999999999999m", clock=fixed_clock)

    assert isinstance(error.value.__cause__, MalformedAmountError)


def test_new_raises_creation_error_when_end_time_out_of_range() -> None:
    with pytest.raises(CreationError) as error:
        TempDirectory.new("foo", "1s", clock=lambda: MAX_TIMESTAMP)

    assert isinstance(error.value.__cause__, MalformedAmountError)


def test_str_at_latest_end_time() -> None:
    record = TempDirectory.new("foo", "1s", clock=lambda: MAX_TIMESTAMP - 1)

    assert record.end_time == MAX_TIMESTAMP
    assert str(record).startswith("foo (1s, expires 9999-12-")


def test_from_dict_rejects_end_time_out_of_range() -> None:
    data = {
        "name": "foo",
        "duration": "1s",
        "created_at": MAX_TIMESTAMP,
        "end_time": MAX_TIMESTAMP + 1,
        "path": None,
    }

    with pytest.raises(RecordFormatError):
        TempDirectory.from_dict(data)


@pytest.mark.parametrize("name", ["", ".", "..", "foo/bar", "../foo", "foo\\bar"])
def test_new_raises_creation_error_on_invalid_name(name: str) -> None:
    with pytest.raises(CreationError) as error:
        TempDirectory.new(name, "1d", clock=fixed_clock)

    assert isinstance(error.value.__cause__, InvalidNameError)


@pytest.mark.parametrize("name", ["foo", "foo.bar", "my dir", "2024-01-01"])
def test_validate_name_accepts_single_component(name: str) -> None:
    validate_name(name)


def test_with_path_returns_copy() -> None:
    record = TempDirectory.new("foo", "1d", clock=fixed_clock)

    updated = record.with_path("/tmp/foo")

    assert record.path is None
    assert updated.path == "/tmp/foo"
    assert updated.end_time == record.end_time


def test_is_expired_is_strict(record: TempDirectory) -> None:
    assert record.is_expired(record.end_time - 1) is False
    assert record.is_expired(record.end_time) is False
    assert record.is_expired(record.end_time + 1) is True


def test_str(record: TempDirectory) -> None:
    expected_ts = datetime.fromtimestamp(NOW_TS + 86400).strftime("%Y-%m-%d %H:%M:%S")

    assert str(record) == f"foo (1d, expires {expected_ts})"


@pytest.mark.parametrize("path", ["/tmp/foo", None])
def test_json_round_trip(path: str | None) -> None:
    record = TempDirectory("foo", "4w", NOW_TS, NOW_TS + 2419200, path)

    assert TempDirectory.from_json(record.to_json()) == record


def test_to_json_fields(record: TempDirectory) -> None:
    assert json.loads(record.to_json()) == {
        "name": "foo",
        "duration": "1d",
        "created_at": NOW_TS,
        "end_time": NOW_TS + 86400,
        "path": "/tmp/foo",
    }


def test_from_dict_missing_path_is_none(record: TempDirectory) -> None:
    data = record.to_dict()
    del data["path"]

    assert TempDirectory.from_dict(data).path is None


@pytest.mark.parametrize(
    "changes",
    [
        {"name": 1},
        {"name": "foo/bar"},
        {"duration": None},
        {"duration": "1 day"},
        {"created_at": "1700000000"},
        {"created_at": True},
        {"end_time": 1.5},
        {"end_time": NOW_TS + 1},
        {"path": 42},
    ],
)
def test_from_dict_rejects_invalid_fields(
    record: TempDirectory,
    changes: dict[str, Any],
) -> None:
    data = record.to_dict()
    data.update(changes)

    with pytest.raises(RecordFormatError):
        TempDirectory.from_dict(data)


@pytest.mark.parametrize("content", ["", "not json", "[]", '"foo"', "{}"])
def test_from_json_rejects_foreign_content(content: str) -> None:
    with pytest.raises(RecordFormatError):
        TempDirectory.from_json(content)


def test_sweep_report_ok() -> None:
    assert SweepReport().ok is True
    assert SweepReport(errors=1).ok is False
    assert SweepReport(aborted=True).ok is False
