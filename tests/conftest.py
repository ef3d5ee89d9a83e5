import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, format, *args):  # noqa: A002
        pass

    def _send(self, status, body=b"", headers=None):
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _dispatch(self):
        self.server.hits.append((self.command, self.path))
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        parts = self.path.strip("/").split("/")

        if parts[0] == "echo":
            payload = {
                "method": self.command,
                "path": self.path,
                "headers": dict(self.headers),
                "body": body.decode("utf-8"),
            }
            self._send(
                200,
                json.dumps(payload).encode("utf-8"),
                {"Content-Type": "application/json"},
            )
        elif parts[0] == "redirect":
            remaining = int(parts[1])
            if remaining > 0:
                self._send(302, headers={"Location": f"/redirect/{remaining - 1}"})
            else:
                self._send(200, b"done", {"Content-Type": "text/plain"})
        elif parts[0] == "delay":
            time.sleep(float(parts[1]))
            self._send(200, b"late", {"Content-Type": "text/plain"})
        elif parts[0] == "raw-headers":
            self._send(
                200,
                b"ok",
                {
                    "Content-Type": "text/plain",
                    "X-Utf8": "café".encode("utf-8").decode("latin-1"),
                    "X-Invalid": "\xff\xfe",
                },
            )
        elif parts[0] == "dup-headers":
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("X-Dup", "first")
            self.send_header("X-Dup", "second")
            self.send_header("Content-Length", "2")
            self.end_headers()
            self.wfile.write(b"ok")
        elif parts[0] == "utf8-text":
            self._send(
                200, "héllo".encode("utf-8"), {"Content-Type": "text/plain"}
            )
        elif parts[0] == "trickle":
            count = int(parts[1])
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Content-Length", str(count))
            self.end_headers()
            for _ in range(count):
                self.wfile.write(b"x")
                self.wfile.flush()
                time.sleep(0.3)
        elif parts[0] == "bad-body":
            self._send(
                200,
                b"\xff\xfe\xfa",
                {"Content-Type": "text/plain; charset=utf-8"},
            )
        else:
            self._send(404, b"not found", {"Content-Type": "text/plain"})

    do_GET = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch


@pytest.fixture
def http_server():
    server = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    server.daemon_threads = True
    server.hits = []
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def base_url(http_server):
    host, port = http_server.server_address[:2]
    return f"http://{host}:{port}"
