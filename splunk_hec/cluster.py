"""HEC cluster — spreads writes across several collector endpoints."""

import logging
import random
import threading
from typing import Optional, Sequence

import httpx

from splunk_hec.client import (
    DEFAULT_MAX_CONTENT_LENGTH,
    DEFAULT_MAX_RETRIES,
    HECClient,
    new_channel,
)
from splunk_hec.metrics import merge_snapshots
from splunk_hec.models import Event, EventMetadata
from splunk_hec.sender import RETRY_WAIT_SECONDS
from splunk_hec.splitter import RawInput

logger = logging.getLogger(__name__)


class HECCluster:
    """Writes through one randomly chosen :class:`HECClient` per call.

    All inner clients share a single channel. Setters are serialized by a lock
    and applied to every inner client; writes pick a client without taking the
    lock, so a setter running concurrently with a write may be observed only
    partially by that write.
    """

    def __init__(
        self,
        server_urls: Sequence[str],
        token: str,
        http_client: Optional[httpx.Client] = None,
        channel: Optional[str] = None,
        keep_alive: bool = True,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
        compression: str = "",
        retry_wait: float = RETRY_WAIT_SECONDS,
    ):
        if not server_urls:
            raise ValueError("at least one server URL is required")

        http_client = http_client or httpx.Client()
        channel = channel or new_channel()
        self._clients = [
            HECClient(
                url,
                token,
                http_client=http_client,
                channel=channel,
                keep_alive=keep_alive,
                max_retries=max_retries,
                max_content_length=max_content_length,
                compression=compression,
                retry_wait=retry_wait,
            )
            for url in server_urls
        ]
        self._lock = threading.Lock()

    @property
    def clients(self) -> list[HECClient]:
        return list(self._clients)

    # ------------------------------------------------------------------
    # Configuration (serialized)
    # ------------------------------------------------------------------

    def set_http_client(self, http_client: httpx.Client) -> None:
        with self._lock:
            for client in self._clients:
                client.set_http_client(http_client)

    def set_keep_alive(self, enable: bool) -> None:
        with self._lock:
            for client in self._clients:
                client.set_keep_alive(enable)

    def set_channel(self, channel: str) -> None:
        with self._lock:
            for client in self._clients:
                client.set_channel(channel)

    def set_max_retry(self, retries: int) -> None:
        with self._lock:
            for client in self._clients:
                client.set_max_retry(retries)

    def set_max_content_length(self, size: int) -> None:
        with self._lock:
            for client in self._clients:
                client.set_max_content_length(size)

    def set_compression(self, compression: str) -> None:
        with self._lock:
            for client in self._clients:
                client.set_compression(compression)

    # ------------------------------------------------------------------
    # Writes (lock-free)
    # ------------------------------------------------------------------

    def _pick(self) -> HECClient:
        client = random.choice(self._clients)
        logger.debug("Routing write to %s", client.server_url)
        return client

    def write_event(self, event: Event) -> None:
        self._pick().write_event(event)

    def write_batch(self, events: Sequence[Event]) -> None:
        self._pick().write_batch(events)

    def write_raw(
        self, stream: RawInput, metadata: Optional[EventMetadata] = None
    ) -> None:
        self._pick().write_raw(stream, metadata)

    def metrics_snapshot(self) -> dict:
        return merge_snapshots([c.metrics.snapshot() for c in self._clients])

    def close(self) -> None:
        closed = set()
        for client in self._clients:
            http_client = client.http_client
            if id(http_client) not in closed:
                http_client.close()
                closed.add(id(http_client))
