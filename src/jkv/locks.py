"""Process-wide lock table keyed by resolved record path.

Entries are reference-counted and dropped once the last holder or waiter
leaves, so the table only holds paths that are in use.
"""

from __future__ import annotations

import contextlib
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


_table_lock = threading.Lock()
_locks: dict[str, _Entry] = {}


def lock_key(path: Path) -> str:
    return str(path.resolve())


def active_paths() -> list[str]:
    with _table_lock:
        return list(_locks)


@contextlib.contextmanager
def locked(path: Path) -> Iterator[None]:
    """Hold the in-process lock for ``path`` for the duration of the block."""
    key = lock_key(path)
    with _table_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = _locks[key] = _Entry()
        entry.users += 1
    try:
        with entry.lock:
            yield
    finally:
        with _table_lock:
            entry.users -= 1
            if entry.users == 0:
                del _locks[key]
