"""Stub HTTP Event Collector for exercising the client locally.

Speaks the collector wire protocol: token check, channel check, gzip bodies,
batch body validation. Replies can be scripted to simulate busy or failing
collectors. Accepted requests are stored in ``received`` for test assertions.
"""

import collections
import json
import logging
import threading
import zlib
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional
from urllib.parse import parse_qs, urlsplit

from splunk_hec.client import EVENT_PATH, RAW_PATH
from splunk_hec.compressor import decompress_body, is_compressed
from splunk_hec.config import ServerConfig
from splunk_hec.errors import STATUS_TEXT, Status
from splunk_hec.serializer import decode_events

logger = logging.getLogger(__name__)

HTTP_STATUS: dict[int, int] = {
    Status.SUCCESS: 200,
    Status.TOKEN_DISABLED: 403,
    Status.TOKEN_REQUIRED: 401,
    Status.INVALID_AUTHORIZATION: 401,
    Status.INVALID_TOKEN: 403,
    Status.INTERNAL_SERVER_ERROR: 500,
    Status.SERVER_BUSY: 503,
}


@dataclass
class ReceivedRequest:
    path: str
    params: dict
    headers: dict
    body: bytes

    @property
    def events(self) -> list[dict]:
        return decode_events(self.body)

    @property
    def lines(self) -> list[bytes]:
        return self.body.splitlines()


class _CollectorHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def do_POST(self):
        self.server.collector.handle(self)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class StubCollector:
    """Threaded HTTP server implementing the collector endpoints."""

    def __init__(self, config: Optional[ServerConfig] = None):
        self._config = config or ServerConfig()
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._server_address: Optional[tuple] = None
        self._lock = threading.Lock()
        self._replies = collections.deque(self._config.replies)
        self.attempts: list[ReceivedRequest] = []
        self.received: list[ReceivedRequest] = []

    @property
    def server_address(self) -> Optional[tuple]:
        return self._server_address

    @property
    def url(self) -> str:
        host, port = self._server_address[:2]
        return f"http://{host}:{port}"

    def script(self, *codes: int) -> None:
        """Queue collector codes to answer the next requests with."""
        with self._lock:
            self._replies.extend(codes)

    def bind(self) -> None:
        self._httpd = ThreadingHTTPServer(
            (self._config.host, self._config.port), _CollectorHandler
        )
        self._httpd.daemon_threads = True
        self._httpd.collector = self
        self._server_address = self._httpd.server_address
        logger.info("Stub collector listening on %s:%d", *self._server_address[:2])

    def start(self) -> None:
        """Bind (if needed) and serve until :meth:`stop` is called."""
        if self._httpd is None:
            self.bind()
        self._httpd.serve_forever(poll_interval=0.1)

    def stop(self) -> None:
        if self._httpd:
            self._httpd.shutdown()
            self._httpd.server_close()

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    def handle(self, handler: BaseHTTPRequestHandler) -> None:
        url = urlsplit(handler.path)
        if url.path not in (EVENT_PATH, EVENT_PATH + "/event", RAW_PATH):
            handler.send_error(404)
            return

        length = int(handler.headers.get("Content-Length", 0))
        body = handler.rfile.read(length)
        params = {k: v[0] for k, v in parse_qs(url.query).items()}
        headers = {k.lower(): v for k, v in handler.headers.items()}

        with self._lock:
            self.attempts.append(ReceivedRequest(url.path, params, headers, body))

        code = self._check_auth(handler.headers.get("Authorization"))
        if code is None:
            code = self._next_scripted()
        if code is None and "channel" not in params:
            code = Status.CHANNEL_MISSING
        if code is None:
            try:
                body = self._decode_body(body, headers.get("content-encoding", ""))
            except (OSError, EOFError, zlib.error):
                code = Status.INVALID_DATA_FORMAT
        if code is None:
            code = self._validate(url.path, body)

        if code == Status.SUCCESS:
            with self._lock:
                self.received.append(ReceivedRequest(url.path, params, headers, body))
        self._reply(handler, code)

    def _check_auth(self, header: Optional[str]) -> Optional[int]:
        if not header:
            return Status.TOKEN_REQUIRED
        scheme, _, token = header.partition(" ")
        if scheme != "Splunk" or not token:
            return Status.INVALID_AUTHORIZATION
        if token != self._config.token:
            return Status.INVALID_TOKEN
        return None

    def _next_scripted(self) -> Optional[int]:
        with self._lock:
            if not self._replies:
                return None
            return self._replies.popleft()

    @staticmethod
    def _decode_body(body: bytes, content_encoding: str) -> bytes:
        if not content_encoding and is_compressed(body):
            content_encoding = "gzip"
        return decompress_body(body, content_encoding)

    @staticmethod
    def _validate(path: str, body: bytes) -> int:
        if not body:
            return Status.NO_DATA
        if path == RAW_PATH:
            return Status.SUCCESS
        try:
            events = decode_events(body)
        except ValueError:
            return Status.INVALID_DATA_FORMAT
        for event in events:
            if "event" not in event:
                return Status.EVENT_FIELD_REQUIRED
            if event["event"] is None or event["event"] == "":
                return Status.EVENT_FIELD_BLANK
        return Status.SUCCESS

    def _reply(self, handler: BaseHTTPRequestHandler, code: int) -> None:
        status = HTTP_STATUS.get(code, 400)
        payload = json.dumps(
            {"text": STATUS_TEXT.get(code, "Unknown error"), "code": int(code)}
        ).encode("utf-8")
        handler.send_response(status)
        handler.send_header("Content-Type", "application/json")
        handler.send_header("Content-Length", str(len(payload)))
        handler.end_headers()
        handler.wfile.write(payload)
