"""Key-set comparison between two record objects.

All three functions keep first-seen order and never repeat a key:

    union(["a", "b"], ["b", "c"])      -> ["a", "b", "c"]
    intersect(["a", "b"], ["b", "c"])  -> ["b"]
    difference(["a", "b"], ["b", "c"]) -> ["a", "c"]   # symmetric
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def _unique(keys: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(keys))


def union(a: Iterable[str], b: Iterable[str]) -> list[str]:
    return _unique([*a, *b])


def intersect(a: Iterable[str], b: Iterable[str]) -> list[str]:
    b_set = set(b)
    return [k for k in _unique(a) if k in b_set]


def difference(a: Iterable[str], b: Iterable[str]) -> list[str]:
    a_keys, b_keys = _unique(a), _unique(b)
    a_set, b_set = set(a_keys), set(b_keys)
    return [k for k in a_keys if k not in b_set] + [k for k in b_keys if k not in a_set]


OPERATIONS = {
    "union": union,
    "intersect": intersect,
    "difference": difference,
}
