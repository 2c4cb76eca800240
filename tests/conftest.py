"""Shared pytest fixtures for the splunk-hec test suite."""

import threading

import httpx
import pytest

from splunk_hec.client import HECClient
from splunk_hec.config import ServerConfig
from splunk_hec.errors import STATUS_TEXT, Status
from splunk_hec.sender import HTTPSender
from splunk_hec.server import HTTP_STATUS, StubCollector

TEST_TOKEN = "00000000-0000-0000-0000-000000000000"
TEST_URL = "http://hec.test:8088"


class ScriptedCollector:
    """httpx MockTransport handler answering with queued collector codes.

    Every request is recorded; once the queue is empty it answers success.
    """

    def __init__(self, codes=()):
        self.codes = list(codes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        code = self.codes.pop(0) if self.codes else Status.SUCCESS
        return httpx.Response(
            HTTP_STATUS.get(code, 400),
            json={"text": STATUS_TEXT.get(code, "Unknown error"), "code": int(code)},
        )

    @property
    def bodies(self) -> list[bytes]:
        return [r.content for r in self.requests]


@pytest.fixture()
def scripted():
    """Return a fresh ScriptedCollector."""
    return ScriptedCollector()


@pytest.fixture()
def sleeps():
    """Collects the waits requested by an HTTPSender."""
    return []


@pytest.fixture()
def make_client(scripted, sleeps):
    """Factory for an HECClient wired to the scripted mock transport."""

    def _make(**kwargs) -> HECClient:
        http_client = httpx.Client(transport=httpx.MockTransport(scripted))
        sender = HTTPSender(http_client, TEST_TOKEN, sleep=sleeps.append)
        return HECClient(TEST_URL, TEST_TOKEN, sender=sender, **kwargs)

    return _make


@pytest.fixture()
def collector():
    """Run a real StubCollector on an ephemeral port, yield it, then stop it."""
    server = StubCollector(ServerConfig(host="127.0.0.1", port=0, token=TEST_TOKEN))
    server.bind()
    thread = threading.Thread(target=server.start, daemon=True)
    thread.start()
    yield server
    server.stop()
    thread.join(timeout=5)
