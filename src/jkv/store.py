"""Read and write single-object JSON record files.

RecordStore is the public API:
    store = RecordStore("/path/to/records", EventLog("/path/to/log.txt"))
    store.create_file("user.json")
    store.set("user.json", "email", "sroberts@talentpath.com")
    store.get("user.json", "email")     # logs "sroberts@talentpath.com <ms>"
    store.union("user.json", "post.json")

Every operation appends one line to the event log. File failures log the
generic "ERROR no such file or directory <file>" line and then raise
StoreError with the actual cause.

Read-modify-write (set/remove) holds the per-path lock from jkv.locks plus
flock(LOCK_EX) on the open file. The rewrite is in place, not atomic.
"""

from __future__ import annotations

import fcntl
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

from jkv import keysets
from jkv.errors import NonStandardJSONError, NotAnObjectError, StoreError, classify
from jkv.locks import locked

if TYPE_CHECKING:
    from collections.abc import Callable

    from jkv.eventlog import EventLog

logger = logging.getLogger("jkv.store")


def dumps(data: Any) -> str:
    """Compact JSON, no whitespace between tokens. NaN and Infinity are refused."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def _reject_constant(name: str) -> Any:
    msg = f"{name} is not valid JSON"
    raise NonStandardJSONError(msg)


def loads(text: str) -> Any:
    """Strict JSON: NaN, Infinity and -Infinity are rejected."""
    return json.loads(text, parse_constant=_reject_constant)


def loads_object(text: str) -> dict[str, Any]:
    parsed = loads(text)
    if not isinstance(parsed, dict):
        msg = f"expected a JSON object, got {type(parsed).__name__}"
        raise NotAnObjectError(msg)
    return parsed


def is_falsy(value: Any) -> bool:
    """null, false, 0 and "" count as empty; [] and {} do not."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


def stringify(value: Any) -> str:
    return value if isinstance(value, str) else dumps(value)


class RecordStore:
    """Directory of JSON record files."""

    def __init__(self, root: Path | str, events: EventLog) -> None:
        self.root = Path(root)
        self.events = events

    def path(self, file: str) -> Path:
        p = Path(file)
        return p if p.is_absolute() else self.root / p

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read(self, file: str) -> dict[str, Any]:
        """Parse ``file`` without logging on success. Failures log and raise."""
        try:
            with self.path(file).open(encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                return loads_object(f.read())
        except (OSError, ValueError) as exc:
            self._fail(file, exc)

    def get(self, file: str, key: str) -> Any:
        """Log the value of object[key] and return it.

        Falsy values (missing, null, false, 0, "") are reported as an invalid
        key and return None.
        """
        value = self.read(file).get(key)
        if is_falsy(value):
            self.events.log(f"ERROR {key} invalid key on {file}")
            return None
        self.events.log(stringify(value))
        return value

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def set(self, file: str, key: str, value: Any) -> None:
        """Set object[key] and rewrite the object to file."""
        def _assign(data: dict[str, Any]) -> None:
            data[key] = value
        self._rewrite(file, _assign)
        self.events.log(f"{key} set on {file}")

    def remove(self, file: str, key: str) -> None:
        """Delete key from the object and rewrite it. A missing key is not an error."""
        def _drop(data: dict[str, Any]) -> None:
            data.pop(key, None)
        self._rewrite(file, _drop)
        self.events.log(f"{key} removed from {file}")

    def create_file(self, file: str) -> None:
        """Write an empty object to file, replacing whatever was there."""
        path = self.path(file)
        try:
            with locked(path), path.open("w", encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                f.write("{}")
        except OSError as exc:
            self._fail(file, exc)
        self.events.log(f"{file} successfully created")

    def delete_file(self, file: str) -> None:
        path = self.path(file)
        try:
            with locked(path):
                path.unlink()
        except OSError as exc:
            self._fail(file, exc)
        self.events.log(f"{file} successfully deleted")

    def _rewrite(self, file: str, mutate: Callable[[dict[str, Any]], None]) -> None:
        path = self.path(file)
        try:
            with locked(path), path.open("rb+") as f:
                fcntl.flock(f, fcntl.LOCK_EX)
                data = loads_object(f.read().decode("utf-8"))
                mutate(data)
                # Encode before truncating: a bad value must leave the file intact.
                payload = dumps(data).encode("utf-8")
                f.seek(0)
                f.truncate()
                f.write(payload)
        except (OSError, ValueError) as exc:
            self._fail(file, exc)

    # ------------------------------------------------------------------
    # Key-set comparison
    # ------------------------------------------------------------------

    def union(self, file_a: str, file_b: str) -> list[str]:
        """Log every property of either object, without duplicates."""
        return self._compare("union", file_a, file_b)

    def intersect(self, file_a: str, file_b: str) -> list[str]:
        """Log the properties both objects share."""
        return self._compare("intersect", file_a, file_b)

    def difference(self, file_a: str, file_b: str) -> list[str]:
        """Log the properties present in exactly one of the two objects."""
        return self._compare("difference", file_a, file_b)

    def _compare(self, op: str, file_a: str, file_b: str) -> list[str]:
        a = self.read(file_a)
        b = self.read(file_b)
        keys = keysets.OPERATIONS[op](a.keys(), b.keys())
        self.events.log(dumps(keys))
        return keys

    # ------------------------------------------------------------------

    def _fail(self, file: str, exc: BaseException) -> NoReturn:
        err = StoreError(classify(exc), file, str(exc))
        logger.debug("%s failed: %s", file, exc)
        self.events.log(err.log_line)
        raise err from exc
