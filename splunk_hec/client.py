"""HEC client — writes events and raw streams to a single collector endpoint."""

import logging
import uuid
from typing import Iterator, Optional, Protocol, Sequence

import httpx

from splunk_hec.compressor import validate_compression
from splunk_hec.errors import EventTooLongError
from splunk_hec.metrics import SendMetrics
from splunk_hec.models import Event, EventMetadata
from splunk_hec.sender import RETRY_WAIT_SECONDS, HTTPSender
from splunk_hec.serializer import encode_event
from splunk_hec.splitter import RawInput, iter_batch_bodies, iter_raw_bodies

logger = logging.getLogger(__name__)

EVENT_PATH = "/services/collector"
RAW_PATH = "/services/collector/raw"

DEFAULT_MAX_CONTENT_LENGTH = 1000000
DEFAULT_MAX_RETRIES = 2


class HEC(Protocol):
    """Operations every collector client offers."""

    def set_http_client(self, http_client: httpx.Client) -> None: ...

    def set_keep_alive(self, enable: bool) -> None: ...

    def set_channel(self, channel: str) -> None: ...

    def set_max_retry(self, retries: int) -> None: ...

    def set_max_content_length(self, size: int) -> None: ...

    def set_compression(self, compression: str) -> None: ...

    def write_event(self, event: Event) -> None: ...

    def write_batch(self, events: Sequence[Event]) -> None: ...

    def write_raw(self, stream: RawInput, metadata: Optional[EventMetadata] = None) -> None: ...

    def metrics_snapshot(self) -> dict: ...

    def close(self) -> None: ...


def new_channel() -> str:
    return str(uuid.uuid4())


def raw_params(channel: str, metadata: Optional[EventMetadata]) -> dict:
    """Query parameters for the raw endpoint; metadata only when set."""
    params = {"channel": channel}
    if metadata is not None:
        params.update(metadata.to_params())
    return params


class HECClient:
    """Client for one collector endpoint.

    Configuration setters are plain attribute writes and take no lock; callers
    that reconfigure a client while another thread is writing through it must
    serialize that themselves.

    A prebuilt *sender* already carries the token, HTTP client and retry wait,
    so *token* and *retry_wait* are ignored when one is given; passing
    *http_client* as well is rejected.
    """

    def __init__(
        self,
        server_url: str,
        token: str,
        http_client: Optional[httpx.Client] = None,
        channel: Optional[str] = None,
        keep_alive: bool = True,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
        compression: str = "",
        retry_wait: float = RETRY_WAIT_SECONDS,
        sender: Optional[HTTPSender] = None,
    ):
        self._server_url = server_url.rstrip("/")
        self._channel = channel or new_channel()
        self._max_length = 0
        if sender is not None and http_client is not None:
            raise ValueError("pass either sender or http_client, not both")
        self._sender = sender or HTTPSender(
            http_client or httpx.Client(), token, retry_wait=retry_wait
        )
        self._metrics = self._sender.metrics
        self.set_keep_alive(keep_alive)
        self.set_max_retry(max_retries)
        self.set_max_content_length(max_content_length)
        self.set_compression(compression)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_http_client(self, http_client: httpx.Client) -> None:
        self._sender.http_client = http_client

    def set_keep_alive(self, enable: bool) -> None:
        self._sender.keep_alive = enable

    def set_channel(self, channel: str) -> None:
        self._channel = channel

    def set_max_retry(self, retries: int) -> None:
        if retries < 0:
            raise ValueError(f"max retries must be >= 0, got {retries}")
        self._sender.max_retries = retries

    def set_max_content_length(self, size: int) -> None:
        if size < 1:
            raise ValueError(f"max content length must be >= 1, got {size}")
        self._max_length = size

    def set_compression(self, compression: str) -> None:
        self._sender.compression = validate_compression(compression)

    @property
    def server_url(self) -> str:
        return self._server_url

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def max_content_length(self) -> int:
        return self._max_length

    @property
    def http_client(self) -> httpx.Client:
        return self._sender.http_client

    @property
    def metrics(self) -> SendMetrics:
        return self._metrics

    def metrics_snapshot(self) -> dict:
        return self._metrics.snapshot()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_event(self, event: Event) -> None:
        """Send a single event. Empty events are skipped.

        Raises:
            EventTooLongError: The encoded event exceeds the max content length.
        """
        if event.is_empty():
            return

        data = encode_event(event)
        if len(data) > self._max_length:
            self._metrics.record_too_long(1)
            raise EventTooLongError()
        self._send(EVENT_PATH, data, {"channel": self._channel})

    def write_batch(self, events: Sequence[Event]) -> None:
        """Send *events* packed into as few bodies as the size limit allows.

        Each body is sent before the next one is built. Oversize events are
        reported once everything else has been delivered.

        Raises:
            EventTooLongError: Lists the 0-based positions of oversize events.
        """
        if not events:
            return

        too_long: list[int] = []
        params = {"channel": self._channel}
        bodies = iter_batch_bodies(events, self._max_length, too_long)
        sent = self._send_all(EVENT_PATH, bodies, params)
        logger.info("Sent batch of %d event(s) in %d body(ies)", len(events), sent)
        self._raise_too_long(too_long)

    def write_raw(
        self, stream: RawInput, metadata: Optional[EventMetadata] = None
    ) -> None:
        """Send a newline-delimited byte stream to the raw endpoint.

        Raises:
            EventTooLongError: Lists the 1-based numbers of oversize lines.
        """
        too_long: list[int] = []
        params = raw_params(self._channel, metadata)
        bodies = iter_raw_bodies(stream, self._max_length, too_long)
        sent = self._send_all(RAW_PATH, bodies, params)
        logger.info("Sent raw stream in %d body(ies)", sent)
        self._raise_too_long(too_long)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _send(self, path: str, body: bytes, params: dict) -> None:
        self._sender.send(self._server_url + path, body, params)

    def _send_all(self, path: str, bodies: Iterator[bytes], params: dict) -> int:
        count = 0
        for body in bodies:
            self._send(path, body, params)
            count += 1
        return count

    def _raise_too_long(self, too_long: list[int]) -> None:
        if too_long:
            self._metrics.record_too_long(len(too_long))
            raise EventTooLongError(too_long)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.http_client.close()
