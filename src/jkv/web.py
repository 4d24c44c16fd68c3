"""Minimal HTTP front end for a record directory.

Routes:
    GET   /                          → welcome text
    GET   /status                    → {"up": true, "owner": ..., "timestamp": <ms>}
    PATCH /set?file=..&key=..&value= → RecordStore.set, "value set"

Known paths hit with another method get 405; everything else gets 404.
"""

from __future__ import annotations

import json
import logging
import socketserver
import urllib.parse
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import TYPE_CHECKING

from jkv.errors import StoreError
from jkv.eventlog import now_ms

if TYPE_CHECKING:
    from jkv.config import JKVConfig
    from jkv.store import RecordStore

logger = logging.getLogger("jkv.web")

# path -> allowed methods
_ROUTES: dict[str, tuple[str, ...]] = {
    "/": ("GET",),
    "/status": ("GET",),
    "/set": ("PATCH",),
}


# ─── HTTP handler ─────────────────────────────────────────────────────────────

class _Handler(BaseHTTPRequestHandler):
    cfg: JKVConfig      # injected via make_handler()
    store: RecordStore

    def do_GET(self) -> None:
        path = urllib.parse.urlparse(self.path).path
        if path == "/":
            self._welcome()
        elif path == "/status":
            self._status()
        else:
            self._unrouted("GET", path)

    def do_PATCH(self) -> None:
        parsed = urllib.parse.urlparse(self.path)
        if parsed.path == "/set":
            self._set(urllib.parse.parse_qs(parsed.query, keep_blank_values=True))
        else:
            self._unrouted("PATCH", parsed.path)

    def do_POST(self) -> None:
        self._unrouted("POST", urllib.parse.urlparse(self.path).path)

    def do_PUT(self) -> None:
        self._unrouted("PUT", urllib.parse.urlparse(self.path).path)

    def do_DELETE(self) -> None:
        self._unrouted("DELETE", urllib.parse.urlparse(self.path).path)

    def _welcome(self) -> None:
        self._text(
            "Welcome to my server",
            headers={
                "My-custom-header": "This is a great API",
                "Another-header": "More meta data",
            },
        )

    def _status(self) -> None:
        self._json({"up": True, "owner": self.cfg.server.owner, "timestamp": now_ms()})

    def _set(self, qs: dict[str, list[str]]) -> None:
        missing = [p for p in ("file", "key", "value") if p not in qs]
        if missing:
            self._text(f"missing query parameter: {', '.join(missing)}", 400)
            return
        file, key, value = qs["file"][0], qs["key"][0], qs["value"][0]
        empty = [name for name, v in (("file", file), ("key", key)) if not v]
        if empty:
            self._text(f"empty query parameter: {', '.join(empty)}", 400)
            return
        try:
            self.store.set(file, key, value)
        except StoreError as exc:
            logger.info("PATCH /set failed: %s", exc)
            self._text(f"{exc.kind.value}: {file}", exc.status)
            return
        self._text("value set")

    def _unrouted(self, method: str, path: str) -> None:
        allowed = _ROUTES.get(path)
        if allowed is None:
            self._text(f"not found: {path}", 404)
        else:
            self._text(f"method {method} not allowed on {path}", 405, headers={"Allow": ", ".join(allowed)})

    def _json(self, payload: object, status: int = 200) -> None:
        encoded = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _text(self, body: str, status: int = 200, headers: dict[str, str] | None = None) -> None:
        encoded = body.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(encoded)

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("%s %s", self.address_string(), format % args)


class _ThreadingHTTPServer(socketserver.ThreadingMixIn, HTTPServer):
    daemon_threads = True


def make_handler(cfg: JKVConfig, store: RecordStore) -> type[_Handler]:
    class _Bound(_Handler):
        pass
    _Bound.cfg = cfg
    _Bound.store = store
    return _Bound


def make_server(cfg: JKVConfig, store: RecordStore, host: str, port: int) -> _ThreadingHTTPServer:
    return _ThreadingHTTPServer((host, port), make_handler(cfg, store))


def serve(cfg: JKVConfig, store: RecordStore, host: str, port: int) -> None:
    """Start the HTTP front end (blocking until Ctrl+C)."""
    server = make_server(cfg, store, host, port)
    print(f"jkv web  →  http://{host}:{port}  (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
