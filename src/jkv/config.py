"""JKVConfig: project-local config for a directory of JSON record files.

Default layout (all relative to the project root):

    jkv.toml              # project config
    .env                  # optional: JKV_HOST, JKV_PORT
    log.txt               # event log (one "<message> <unix_ms>" per line)
    *.json                # record files

jkv.toml example:

    [jkv]
    name = "my-records"
    # data_dir = "."          # default
    # log_file = "log.txt"    # default, relative to root
    # exclude = ["package"]   # filename substrings skipped by merge

    [server]
    host = "127.0.0.1"
    port = 5000
    owner = "Big Boss"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CONFIG_FILENAME = "jkv.toml"
_DEFAULT_DATA_DIR = "."
_DEFAULT_LOG_FILE = "log.txt"
_DEFAULT_EXCLUDE = ["package"]


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 5000
    owner: str = "Big Boss"


@dataclass
class JKVConfig:
    """Resolved configuration for a record directory."""

    root: Path                      # directory that contains jkv.toml
    name: str = ""
    data_dir: Path = field(default_factory=Path)
    log_file: Path = field(default_factory=Path)
    exclude: list[str] = field(default_factory=lambda: list(_DEFAULT_EXCLUDE))
    server: ServerConfig = field(default_factory=ServerConfig)

    def ensure_dirs(self) -> None:
        """Create data_dir and the log file's parent if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)


def _load_env(root: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE .env file (no external dependency)."""
    env_file = root / ".env"
    if not env_file.exists():
        return {}
    env: dict[str, str] = {}
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, _, v = line.partition("=")
            env[k.strip()] = v.strip().strip('"').strip("'")
    return env


def load_config(root: Path | str | None = None) -> JKVConfig:
    """Load jkv.toml from root (or search upward from cwd if root is None)."""
    root_path = _find_root(Path(root) if root else Path.cwd())
    config_path = root_path / _CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    env = _load_env(root_path)

    jkv_section = raw.get("jkv", {})
    srv_section = raw.get("server", {})

    name = jkv_section.get("name", root_path.name)
    data_rel = jkv_section.get("data_dir", _DEFAULT_DATA_DIR)
    log_rel = jkv_section.get("log_file", _DEFAULT_LOG_FILE)

    # .env overrides jkv.toml for the listening address
    host: str = env.get("JKV_HOST") or str(srv_section.get("host", "127.0.0.1"))
    port = int(env.get("JKV_PORT") or srv_section.get("port", 5000))

    return JKVConfig(
        root=root_path,
        name=name,
        data_dir=root_path / data_rel,
        log_file=root_path / log_rel,
        exclude=[str(s) for s in jkv_section.get("exclude", _DEFAULT_EXCLUDE)],
        server=ServerConfig(
            host=host,
            port=port,
            owner=str(srv_section.get("owner", "Big Boss")),
        ),
    )


def _find_root(start: Path) -> Path:
    """Walk upward from start looking for jkv.toml."""
    for directory in (start, *start.parents):
        if (directory / _CONFIG_FILENAME).exists():
            return directory
    return start


def init_config(root: Path, name: str | None = None) -> Path:
    """Write a default jkv.toml at root. Raises if already exists."""
    config_path = root / _CONFIG_FILENAME
    if config_path.exists():
        msg = f"jkv.toml already exists at {config_path}"
        raise FileExistsError(msg)

    project_name = name or root.name
    content = f"""\
[jkv]
name = "{project_name}"
# data_dir = "."          # default
# log_file = "log.txt"    # default
# exclude = ["package"]   # merge skips filenames containing any of these

# [server]
# host = "127.0.0.1"      # or set JKV_HOST in .env
# port = 5000             # or set JKV_PORT in .env
# owner = "Big Boss"
"""
    config_path.write_text(content)
    return config_path
