from __future__ import annotations

import json
from pathlib import Path

import pytest

from jkv.eventlog import EventLog, parse_line
from jkv.store import RecordStore


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "log.txt"


@pytest.fixture
def events(log_path: Path) -> EventLog:
    return EventLog(log_path)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data"
    d.mkdir()
    return d


@pytest.fixture
def store(data_dir: Path, events: EventLog) -> RecordStore:
    return RecordStore(data_dir, events)


def write_record(path: Path, obj: object) -> Path:
    path.write_text(json.dumps(obj))
    return path


def messages(log_path: Path) -> list[str]:
    """Logged messages with their timestamps stripped."""
    if not log_path.exists():
        return []
    return [parse_line(line).message for line in log_path.read_text().splitlines()]
