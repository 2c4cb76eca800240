"""HTTP sender — posts request bodies with a fixed-delay, code-aware retry."""

import logging
import time
from typing import Callable, Optional

import httpx

from splunk_hec.compressor import compress_body
from splunk_hec.errors import (
    UNKNOWN_CODE,
    HECResponse,
    HECResponseError,
    HECTransportError,
    Status,
    is_retriable,
)
from splunk_hec.metrics import SendMetrics

logger = logging.getLogger(__name__)

RETRY_WAIT_SECONDS = 1.0


class HTTPSender:
    """Sends one request body to the collector, retrying transient rejections.

    Connection-level failures and undecodable responses are not retried here;
    they surface at once as :class:`HECTransportError`. Collector responses
    with a retriable code are resent after a constant *retry_wait* until
    *max_retries* is used up.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        token: str,
        keep_alive: bool = True,
        max_retries: int = 2,
        compression: str = "",
        retry_wait: float = RETRY_WAIT_SECONDS,
        metrics: Optional[SendMetrics] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.http_client = http_client
        self.token = token
        self.keep_alive = keep_alive
        self.max_retries = max_retries
        self.compression = compression
        self.retry_wait = retry_wait
        self.metrics = metrics if metrics is not None else SendMetrics()
        self._sleep = sleep

    def _headers(self, extra: dict) -> dict:
        headers = {
            "Authorization": f"Splunk {self.token}",
            "Connection": "keep-alive" if self.keep_alive else "close",
        }
        headers.update(extra)
        return headers

    def send(self, url: str, body: bytes, params: dict) -> HECResponse:
        """POST *body* to *url* and return the collector's success result.

        Raises:
            HECTransportError: The request never got a usable HTTP response.
            HECResponseError: The collector rejected the body permanently, or
                kept answering with a retriable code until retries ran out.
        """
        payload, encoding_headers = compress_body(body, self.compression)
        headers = self._headers(encoding_headers)
        max_retries = self.max_retries
        start = time.monotonic()

        for attempt in range(max_retries + 1):
            self.metrics.record_attempt()
            try:
                res = self.http_client.post(
                    url, content=payload, params=params, headers=headers
                )
            except httpx.RequestError as exc:
                self.metrics.record_failure()
                logger.error("Request to %s failed: %s", url, exc)
                raise HECTransportError(str(exc)) from exc

            response = self._response_from(res)
            if response.ok:
                elapsed_ms = (time.monotonic() - start) * 1000
                self.metrics.record_sent(len(body), elapsed_ms)
                return response

            if not is_retriable(response.code) or attempt == max_retries:
                break

            self.metrics.record_retry()
            logger.warning(
                "Collector busy (code %d: %s), retrying in %.1fs (attempt %d/%d)",
                response.code,
                response.text,
                self.retry_wait,
                attempt + 1,
                max_retries + 1,
            )
            self._sleep(self.retry_wait)

        self.metrics.record_failure()
        logger.error(
            "Collector rejected %d byte body after %d attempt(s): code %d: %s",
            len(body),
            attempt + 1,
            response.code,
            response.text,
        )
        raise HECResponseError(response)

    @staticmethod
    def _response_from(res: httpx.Response) -> HECResponse:
        """Build the result for *res*; any HTTP 200 counts as success."""
        parsed = HECResponse.parse(res.content)
        if res.status_code == httpx.codes.OK:
            if parsed is not None and parsed.ok:
                return parsed
            return HECResponse("Success", Status.SUCCESS)
        if parsed is None:
            return HECResponse(
                f"HTTP {res.status_code}: {res.reason_phrase}", UNKNOWN_CODE
            )
        return parsed
