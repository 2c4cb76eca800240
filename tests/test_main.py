"""Tests for the shipper entry point."""

import pytest

from main import main, parse_event_line, read_events
from splunk_hec.config import ClientConfig
from splunk_hec.errors import Status
from splunk_hec.models import Event

TOKEN = "00000000-0000-0000-0000-000000000000"


@pytest.fixture(autouse=True)
def no_proxy(monkeypatch):
    monkeypatch.setenv("NO_PROXY", "*")
    for name in ("HEC_URLS", "HEC_TOKEN", "HEC_CONFIG_PATH", "HEC_COMPRESSION"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def log_file(tmp_path):
    path = tmp_path / "app.log"
    path.write_text('first line\n\n{"event": {"user": "bob"}, "host": "web-2"}\nthird line\n')
    return path


class TestParseEventLine:
    def test_plain_line(self):
        event = parse_event_line("hello", ClientConfig(source="app"))
        assert event == Event(event="hello", source="app")

    def test_json_record_keeps_its_metadata(self):
        event = parse_event_line(
            '{"event": "x", "host": "web-2"}', ClientConfig(host="web-1", index="main")
        )
        assert event.host == "web-2"
        assert event.index == "main"

    def test_json_without_event_key_is_payload(self):
        event = parse_event_line('{"user": "bob"}', ClientConfig())
        assert event.event == '{"user": "bob"}'


def test_read_events_keeps_line_positions(log_file):
    events = read_events(str(log_file), ClientConfig(host="web-1"))
    assert [e.event for e in events] == ["first line", None, {"user": "bob"}, "third line"]
    assert events[1].is_empty()


class TestMain:
    def _argv(self, collector, log_file, *extra):
        return [
            "--url", collector.url, "--token", TOKEN, "--file", str(log_file),
            "--retry-wait", "0", *extra,
        ]

    def test_raw_mode(self, collector, log_file):
        status = main(self._argv(collector, log_file, "--source", "app"))
        assert status == 0
        received = collector.received[0]
        assert received.path == "/services/collector/raw"
        assert received.params["source"] == "app"
        assert received.lines[0] == b"first line"

    def test_batch_mode(self, collector, log_file):
        status = main(self._argv(collector, log_file, "--mode", "batch", "--host", "web-1"))
        assert status == 0
        assert collector.received[0].events == [
            {"event": "first line", "host": "web-1"},
            {"event": {"user": "bob"}, "host": "web-2"},
            {"event": "third line", "host": "web-1"},
        ]

    def test_missing_file_argument(self):
        assert main(["--token", TOKEN]) == 2

    def test_rejected_token(self, collector, log_file):
        status = main(["--url", collector.url, "--token", "wrong", "--file", str(log_file)])
        assert status == 1
        assert collector.received == []

    def test_oversize_lines(self, collector, log_file):
        status = main(self._argv(collector, log_file, "--max-content-length", "12"))
        assert status == 1
        assert [r.body for r in collector.received] == [b"first line\n\n", b"third line\n"]

    def test_server_busy_exhausts_retries(self, collector, log_file):
        collector.script(Status.SERVER_BUSY, Status.SERVER_BUSY, Status.SERVER_BUSY)
        status = main(self._argv(collector, log_file))
        assert status == 1
        assert len(collector.attempts) == 3

    def test_batch_oversize_index_is_file_line(self, collector, log_file, caplog):
        status = main(self._argv(
            collector, log_file, "--mode", "batch", "--max-content-length", "30",
        ))
        assert status == 1
        assert "Events (2) length are too long" in caplog.text
        assert [r.events for r in collector.received] == [
            [{"event": "first line"}],
            [{"event": "third line"}],
        ]
