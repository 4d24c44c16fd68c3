"""Failure kinds for record-file operations.

The event log keeps one generic line for every file failure; the kind is for
callers (CLI messages, HTTP status codes).
"""

from __future__ import annotations

import json
from enum import Enum


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    PERMISSION = "permission"
    IO = "io"


_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.MALFORMED: 422,
    ErrorKind.PERMISSION: 403,
    ErrorKind.IO: 500,
}


class NotAnObjectError(ValueError):
    """Parsed JSON whose top-level value is not an object."""


class NonStandardJSONError(ValueError):
    """NaN, Infinity or -Infinity, which plain JSON does not allow."""


class StoreError(Exception):
    """A record file could not be read, parsed or written."""

    def __init__(self, kind: ErrorKind, file: str, detail: str = "") -> None:
        self.kind = kind
        self.file = file
        self.detail = detail
        super().__init__(f"{kind.value}: {file}" + (f" ({detail})" if detail else ""))

    @property
    def log_line(self) -> str:
        return generic_message(self.file)

    @property
    def status(self) -> int:
        return _STATUS[self.kind]


def generic_message(file: str) -> str:
    return f"ERROR no such file or directory {file}"


def classify(exc: BaseException) -> ErrorKind:
    """Map a low-level exception to an ErrorKind."""
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, PermissionError):
        return ErrorKind.PERMISSION
    if isinstance(exc, (json.JSONDecodeError, UnicodeDecodeError, NotAnObjectError, NonStandardJSONError)):
        return ErrorKind.MALFORMED
    return ErrorKind.IO
