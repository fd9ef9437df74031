"""Mock HTTP server replying with the response authored in the editor.

The server runs ``ThreadingHTTPServer`` on a daemon thread. Every request, on
any path and with any method, is rendered as text for the request pane and
answered with the current ``Response`` after its configured delay.
"""
from __future__ import annotations

import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional, Tuple

from .config import DEFAULT_HOST, DEFAULT_PORT
from .core.response import ResponseStore
from .core.session_log import log_debug, log_exception, log_exchange

RequestCallback = Callable[[str], None]


def format_request(
    request_line: str,
    headers: list[tuple[str, str]],
    body: bytes,
) -> str:
    lines = [request_line]
    lines.extend(f"{key}: {value}" for key, value in headers)
    text = "\n".join(lines) + "\n\n"
    if body:
        text += body.decode("utf-8", errors="replace")
    return text


class _Handler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _store(self) -> ResponseStore:
        return self.server._httplab_store  # type: ignore[attr-defined]

    def _on_request(self) -> Optional[RequestCallback]:
        return getattr(self.server, "_httplab_on_request", None)

    def log_message(self, format: str, *args) -> None:  # noqa: A003 - BaseHTTPRequestHandler API
        return

    def _read_body(self) -> bytes:
        if "chunked" in self.headers.get("Transfer-Encoding", "").lower():
            return self._read_chunked()
        raw_length = self.headers.get("Content-Length")
        if not raw_length:
            return b""
        try:
            length = int(raw_length)
        except ValueError:
            return b""
        return self.rfile.read(max(0, length))

    def _read_chunked(self) -> bytes:
        chunks = []
        while True:
            size_line = self.rfile.readline()
            if not size_line:
                raise ConnectionResetError("connection closed inside chunked body")
            # Chunk extensions after ';' are ignored.
            size = int(size_line.split(b";", 1)[0].strip(), 16)
            if size == 0:
                break
            chunks.append(self.rfile.read(size))
            self.rfile.readline()
        # Trailer section ends with an empty line.
        while self.rfile.readline() not in (b"\r\n", b"\n", b""):
            pass
        return b"".join(chunks)

    def _serve(self) -> None:
        try:
            body = self._read_body()
            dump = format_request(self.requestline, list(self.headers.items()), body)
            log_debug("server", "request.received", {"request": self.requestline})
            callback = self._on_request()
            if callback is not None:
                callback(dump)

            response = self._store().get()
            if response.delay_ms > 0:
                time.sleep(response.delay_seconds)

            self.send_response(response.status)
            for key, values in response.headers.items():
                for value in values:
                    self.send_header(key, value)
            if not response.has_header("Content-Length"):
                self.send_header("Content-Length", str(len(response.body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(response.body)
            log_exchange(
                "server",
                request=dump,
                status=response.status,
                delay_ms=response.delay_ms,
            )
        except (BrokenPipeError, ConnectionResetError):
            self.close_connection = True
        except Exception as exc:  # noqa: BLE001 - keep serving after a bad request
            log_exception("server", exc)
            self.close_connection = True

    do_GET = _serve
    do_HEAD = _serve
    do_POST = _serve
    do_PUT = _serve
    do_PATCH = _serve
    do_DELETE = _serve
    do_OPTIONS = _serve


class MockServer:
    def __init__(
        self,
        store: ResponseStore,
        on_request: Optional[RequestCallback] = None,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self._server = ThreadingHTTPServer((host, port), _Handler)
        self._server.daemon_threads = True
        self._server._httplab_store = store  # type: ignore[attr-defined]
        self._server._httplab_on_request = on_request  # type: ignore[attr-defined]
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="httplab-server", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Shut the server down and close its socket; safe to call twice."""
        if self._thread is not None:
            self._server.shutdown()
            self._thread.join()
            self._thread = None
        self._server.server_close()

    def __enter__(self) -> "MockServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop()
        return False
