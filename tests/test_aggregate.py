from __future__ import annotations

import fcntl
import json
import threading

import pytest
from conftest import messages, write_record

from jkv.aggregate import merge_data, select_files, stem
from jkv.errors import ErrorKind, StoreError


def test_merge_two_files(data_dir, events, log_path):
    write_record(data_dir / "a.json", {"x": 1})
    write_record(data_dir / "b.json", {"y": 2})

    merged = merge_data(data_dir, events)

    assert merged == {"a": {"x": 1}, "b": {"y": 2}}
    logged = messages(log_path)
    assert len(logged) == 1
    assert json.loads(logged[0]) == {"a": {"x": 1}, "b": {"y": 2}}


def test_merge_skips_package_manifests_and_other_files(data_dir, events):
    write_record(data_dir / "a.json", {"x": 1})
    write_record(data_dir / "package.json", {"name": "pkg"})
    write_record(data_dir / "package-lock.json", {})
    (data_dir / "notes.txt").write_text("hi")
    (data_dir / "sub.json").mkdir()

    assert merge_data(data_dir, events) == {"a": {"x": 1}}


def test_merge_custom_exclude(data_dir, events):
    write_record(data_dir / "a.json", {"x": 1})
    write_record(data_dir / "secret.json", {"pw": "hunter2"})
    write_record(data_dir / "package.json", {})

    merged = merge_data(data_dir, events, exclude=["secret"])
    assert set(merged) == {"a", "package"}


def test_merge_empty_directory(data_dir, events, log_path):
    assert merge_data(data_dir, events) == {}
    assert messages(log_path) == ["{}"]


def test_merge_aborts_on_malformed_file(data_dir, events, log_path):
    write_record(data_dir / "a.json", {"x": 1})
    (data_dir / "b.json").write_text("{oops")

    with pytest.raises(StoreError) as info:
        merge_data(data_dir, events)

    assert info.value.kind is ErrorKind.MALFORMED
    assert info.value.file == "b.json"
    logged = messages(log_path)
    assert len(logged) == 1
    assert logged[0].startswith("ERROR JSONDecodeError")


def test_merge_missing_directory(tmp_path, events, log_path):
    with pytest.raises(StoreError) as info:
        merge_data(tmp_path / "nowhere", events)
    assert info.value.kind is ErrorKind.NOT_FOUND
    assert messages(log_path)[0].startswith("ERROR FileNotFoundError")


def test_select_files_is_sorted_substring_match():
    names = ["b.json", "a.json", "x.json.bak", "package.json", "readme.md"]
    assert select_files(names) == ["a.json", "b.json", "x.json.bak"]


def test_stem_cuts_at_first_dot():
    assert stem("user.json") == "user"
    assert stem("user.backup.json") == "user"


def test_merge_rejects_nan(data_dir, events):
    (data_dir / "n.json").write_text('{"k": NaN}')
    with pytest.raises(StoreError) as info:
        merge_data(data_dir, events)
    assert info.value.kind is ErrorKind.MALFORMED


def test_merge_waits_for_exclusive_writer(data_dir, events):
    write_record(data_dir / "a.json", {"x": 1})
    result: dict = {}

    with (data_dir / "a.json").open("r+") as held:
        fcntl.flock(held, fcntl.LOCK_EX)
        t = threading.Thread(target=lambda: result.update(merge_data(data_dir, events)))
        t.start()
        t.join(0.2)
        assert t.is_alive()
        fcntl.flock(held, fcntl.LOCK_UN)

    t.join(5)
    assert not t.is_alive()
    assert result == {"a": {"x": 1}}
