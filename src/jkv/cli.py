"""jkv CLI — key/value access into a directory of JSON record files.

Commands:
    jkv init [NAME]              create jkv.toml
    jkv get FILE KEY             log (and print) object[key]
    jkv set FILE KEY VALUE       set object[key] and rewrite the file
    jkv remove FILE KEY          delete object[key]
    jkv create FILE              write {} to FILE
    jkv delete FILE              unlink FILE
    jkv merge                    merge every record file by stem
    jkv union|intersect|difference FILE_A FILE_B
    jkv log [-n N]               show the last log entries
    jkv serve                    start the HTTP front end
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from jkv.aggregate import merge_data
from jkv.config import JKVConfig, init_config, load_config
from jkv.errors import StoreError
from jkv.eventlog import EventLog
from jkv.store import RecordStore, dumps, loads

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_cfg() -> JKVConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _open_store(cfg: JKVConfig) -> RecordStore:
    cfg.ensure_dirs()
    return RecordStore(cfg.data_dir, EventLog(cfg.log_file))


def _run(fn: Callable[..., T], *args: Any) -> T:
    try:
        return fn(*args)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="jkv")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging to stderr")
def cli(verbose: bool) -> None:
    """jkv — JSON record files with a tiny HTTP front end."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


@cli.command()
@click.argument("name", required=False)
@click.option("--dir", "root", default=".", show_default=True, help="Project root")
def init(name: str | None, root: str) -> None:
    """Create jkv.toml in the current directory."""
    root_path = Path(root).resolve()
    try:
        config_path = init_config(root_path, name=name)
        click.echo(f"Created {config_path}")
    except FileExistsError:
        click.echo("jkv.toml already exists — skipping init")

    cfg = load_config(root_path)
    cfg.ensure_dirs()
    click.echo(f"Data dir : {cfg.data_dir}")
    click.echo(f"Log file : {cfg.log_file}")


# ---------------------------------------------------------------------------
# Record operations
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("file")
@click.argument("key")
def get(file: str, key: str) -> None:
    """Log and print FILE[KEY]."""
    store = _open_store(_load_cfg())
    value = _run(store.get, file, key)
    if value is None:
        raise click.ClickException(f"{key} invalid key on {file}")
    click.echo(value if isinstance(value, str) else dumps(value))


@cli.command("set")
@click.argument("file")
@click.argument("key")
@click.argument("value")
@click.option("--json", "as_json", is_flag=True, help="Parse VALUE as JSON instead of storing a string")
def set_(file: str, key: str, value: str, as_json: bool) -> None:
    """Set FILE[KEY] = VALUE."""
    parsed: object = value
    if as_json:
        try:
            parsed = loads(value)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="VALUE") from exc
    store = _open_store(_load_cfg())
    _run(store.set, file, key, parsed)
    click.echo(f"{key} set on {file}")


@cli.command()
@click.argument("file")
@click.argument("key")
def remove(file: str, key: str) -> None:
    """Delete KEY from FILE."""
    store = _open_store(_load_cfg())
    _run(store.remove, file, key)
    click.echo(f"{key} removed from {file}")


@cli.command()
@click.argument("file")
def create(file: str) -> None:
    """Write an empty object to FILE (overwrites)."""
    store = _open_store(_load_cfg())
    _run(store.create_file, file)
    click.echo(f"Created {file}")


@cli.command()
@click.argument("file")
def delete(file: str) -> None:
    """Delete FILE."""
    store = _open_store(_load_cfg())
    _run(store.delete_file, file)
    click.echo(f"Deleted {file}")


@cli.command()
def merge() -> None:
    """Merge all record files into one object keyed by file stem."""
    cfg = _load_cfg()
    cfg.ensure_dirs()
    merged = _run(merge_data, cfg.data_dir, EventLog(cfg.log_file), cfg.exclude)
    click.echo(json.dumps(merged, indent=2, ensure_ascii=False))


def _keyset_command(op: str, help_text: str) -> None:
    @cli.command(op, help=help_text)
    @click.argument("file_a")
    @click.argument("file_b")
    def _cmd(file_a: str, file_b: str) -> None:
        store = _open_store(_load_cfg())
        keys = _run(getattr(store, op), file_a, file_b)
        click.echo(dumps(keys))


_keyset_command("union", "List every property of FILE_A and FILE_B, without duplicates.")
_keyset_command("intersect", "List the properties FILE_A and FILE_B share.")
_keyset_command("difference", "List the properties found in only one of FILE_A and FILE_B.")


# ---------------------------------------------------------------------------
# jkv log
# ---------------------------------------------------------------------------


@cli.command("log")
@click.option("-n", "--lines", default=20, show_default=True, help="Number of entries")
def show_log(lines: int) -> None:
    """Show the last entries of the event log."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    cfg = _load_cfg()
    entries = EventLog(cfg.log_file).tail(lines)
    if not entries:
        click.echo("Log is empty.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Message")
    for entry in entries:
        when = (
            datetime.fromtimestamp(entry.timestamp / 1000, UTC).strftime("%Y-%m-%d %H:%M:%S")
            if entry.timestamp is not None
            else "?"
        )
        style = "red" if entry.message.startswith("ERROR") else None
        table.add_row(when, escape(entry.message), style=style)
    Console().print(table)


# ---------------------------------------------------------------------------
# jkv serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default=None, help="Bind address (default: [server].host)")
@click.option("--port", default=None, type=int, help="Port (default: [server].port)")
def serve(host: str | None, port: int | None) -> None:
    """Start the HTTP front end (blocking)."""
    from jkv.web import serve as _serve

    cfg = _load_cfg()
    store = _open_store(cfg)
    _serve(cfg, store, host or cfg.server.host, port or cfg.server.port)


if __name__ == "__main__":
    cli()
