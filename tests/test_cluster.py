"""Tests for the multi-endpoint HEC cluster."""

import random

import httpx
import pytest

from splunk_hec.client import HEC, HECClient
from splunk_hec.cluster import HECCluster
from splunk_hec.models import Event, EventMetadata

URLS = ["http://hec-1.test:8088", "http://hec-2.test:8088", "http://hec-3.test:8088"]


@pytest.fixture()
def cluster(scripted):
    http_client = httpx.Client(transport=httpx.MockTransport(scripted))
    c = HECCluster(URLS, "token", http_client=http_client, retry_wait=0)
    yield c
    c.close()


def test_requires_urls():
    with pytest.raises(ValueError):
        HECCluster([], "token")


def test_inner_clients_share_one_channel(cluster):
    channels = {client.channel for client in cluster.clients}
    assert len(channels) == 1
    assert [client.server_url for client in cluster.clients] == URLS


def test_implements_every_contract_operation():
    for name in dir(HEC):
        if name.startswith("_"):
            continue
        assert callable(getattr(HECCluster, name)), name
        assert callable(getattr(HECClient, name)), name


class TestSetters:
    def test_set_channel_reaches_every_client(self, cluster):
        cluster.set_channel("shared")
        assert all(client.channel == "shared" for client in cluster.clients)

    def test_set_max_content_length(self, cluster):
        cluster.set_max_content_length(123)
        assert all(client.max_content_length == 123 for client in cluster.clients)

    def test_set_http_client(self, cluster):
        other = httpx.Client()
        try:
            cluster.set_http_client(other)
            assert all(client.http_client is other for client in cluster.clients)
        finally:
            other.close()

    def test_set_compression(self, cluster, scripted):
        cluster.set_compression("gzip")
        cluster.write_event(Event(event="x"))
        assert scripted.requests[0].headers["Content-Encoding"] == "gzip"

    def test_set_keep_alive(self, cluster, scripted):
        cluster.set_keep_alive(False)
        cluster.write_event(Event(event="x"))
        assert scripted.requests[0].headers["Connection"] == "close"

    def test_set_max_retry(self, cluster):
        cluster.set_max_retry(7)
        with pytest.raises(ValueError):
            cluster.set_max_retry(-1)


class TestWrites:
    def test_each_write_goes_to_one_endpoint(self, cluster, scripted):
        random.seed(1)
        for i in range(20):
            cluster.write_event(Event(event=f"event {i}"))
        assert len(scripted.requests) == 20
        hosts = {request.url.host for request in scripted.requests}
        assert hosts <= {"hec-1.test", "hec-2.test", "hec-3.test"}
        assert len(hosts) > 1

    def test_write_batch(self, cluster, scripted):
        cluster.write_batch([Event(event="event one"), Event(event="event two")])
        assert scripted.bodies == [b'{"event":"event one"}{"event":"event two"}']
        assert len({r.url.host for r in scripted.requests}) == 1

    def test_write_raw(self, cluster, scripted):
        cluster.write_raw(b"line one\nline two\n", EventMetadata(host="web-1"))
        request = scripted.requests[0]
        assert request.url.path == "/services/collector/raw"
        assert request.url.params["host"] == "web-1"

    def test_metrics_aggregated(self, cluster):
        for i in range(5):
            cluster.write_event(Event(event=f"event {i}"))
        assert cluster.metrics_snapshot()["bodies_sent"] == 5
