"""JSON record files: one object per file, key/value access, one shared event log.

Layout:
    jkv.toml              # optional project config
    log.txt               # "<message> <unix_ms>" per line, append-only
    <name>.json           # record files, each a single JSON object

Every operation reads the whole file, changes it in memory and writes it back.
set/remove hold a per-path lock (jkv.locks) plus flock(LOCK_EX) for the cycle.
"""

from jkv.aggregate import merge_data
from jkv.config import JKVConfig, init_config, load_config
from jkv.errors import ErrorKind, StoreError
from jkv.eventlog import EventLog
from jkv.store import RecordStore

__all__ = [
    "ErrorKind",
    "EventLog",
    "JKVConfig",
    "RecordStore",
    "StoreError",
    "init_config",
    "load_config",
    "merge_data",
]
