"""Merge every record file in a directory into one object keyed by file stem.

    {
      "user": {"firstname": "Scott", "email": "sroberts@talentpath.com"},
      "post": {"title": "Async/Await lesson", "date": "July 15, 2019"}
    }

Files are picked by substring: the name must contain ".json" and none of the
exclude substrings ("package" by default, to skip manifests). Files are read
in sorted name order so the logged object is stable across platforms.
"""

from __future__ import annotations

import fcntl
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jkv.errors import StoreError, classify
from jkv.store import dumps, loads_object

if TYPE_CHECKING:
    from collections.abc import Iterable

    from jkv.eventlog import EventLog

logger = logging.getLogger("jkv.aggregate")


def select_files(names: Iterable[str], exclude: Iterable[str] = ("package",)) -> list[str]:
    skip = list(exclude)
    return sorted(n for n in names if ".json" in n and not any(s in n for s in skip))


def stem(name: str) -> str:
    """Filename up to its first dot: "user.backup.json" -> "user"."""
    return name.partition(".")[0]


def merge_data(root: Path | str, events: EventLog, exclude: Iterable[str] = ("package",)) -> dict[str, Any]:
    """Log and return the merged view of all record files under root.

    The first unreadable or malformed file aborts the merge: the error is
    logged as "ERROR <description>" and StoreError is raised.
    """
    root_path = Path(root)
    merged: dict[str, Any] = {}
    current = str(root_path)
    try:
        names = [p.name for p in root_path.iterdir() if p.is_file()]
        for name in select_files(names, exclude):
            current = name
            with (root_path / name).open(encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                merged[stem(name)] = loads_object(f.read())
    except (OSError, ValueError) as exc:
        logger.debug("merge aborted at %s: %s", current, exc)
        events.log(f"ERROR {type(exc).__name__}: {exc}")
        raise StoreError(classify(exc), current, str(exc)) from exc

    events.log(dumps(merged))
    return merged
