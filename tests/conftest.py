import http.server
import sys
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@dataclass
class Observed:
    method: str
    path: str
    headers: dict[str, str]
    body: bytes


@dataclass
class Reply:
    status: int = 204
    message: str | None = "No Content"
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: bytes = b""
    delay: float = 0.0
    # Bytes of body to send before going silent; None sends all of it.
    sent: int | None = None
    stall: float = 0.0


class RecordingHandler(http.server.BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def _handle(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        headers = {name.lower(): value for name, value in self.headers.items()}
        self.server.observed.append(Observed(self.command, self.path, headers, body))

        reply: Reply = self.server.reply
        if reply.delay:
            time.sleep(reply.delay)
        self.send_response(reply.status, reply.message)
        for name, value in reply.headers:
            self.send_header(name, value)
        if reply.status not in (204, 304):
            self.send_header("Content-Length", str(len(reply.body)))
        self.end_headers()
        if reply.body and self.command != "HEAD":
            self.wfile.write(reply.body[: reply.sent])
        if reply.stall:
            self.wfile.flush()
            time.sleep(reply.stall)

    do_OPTIONS = do_GET = do_HEAD = do_POST = _handle  # noqa: N815
    do_PUT = do_DELETE = do_TRACE = do_PATCH = _handle  # noqa: N815

    def log_message(self, format: str, *args) -> None:  # noqa: N802
        return


class RecordingServer(http.server.ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), RecordingHandler)
        self.observed: list[Observed] = []
        self.reply = Reply()

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"

    def respond(
        self,
        status: int,
        message: str | None = None,
        headers=(),
        body: bytes = b"",
        delay: float = 0.0,
        **partial,
    ):
        self.reply = Reply(status, message, list(headers), body, delay, **partial)
        return self

    def reset(self) -> "RecordingServer":
        self.observed.clear()
        self.reply = Reply()
        return self

    def handle_error(self, request, client_address) -> None:
        # Clients that time out leave the handler writing to a closed socket.
        return


@pytest.fixture(scope="module")
def http_server():
    server = RecordingServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()


@pytest.fixture
def server(http_server):
    yield http_server.reset()
