"""Entry point for the HEC shipper — sends a log file to an HTTP Event Collector."""

import dataclasses
import json
import logging
import signal
import sys

from splunk_hec.config import ClientConfig, build_hec, load_client_config
from splunk_hec.errors import EventTooLongError, HECError
from splunk_hec.models import Event


def parse_event_line(line: str, config: ClientConfig) -> Event:
    """Turn one input line into an Event.

    JSON objects carrying an ``event`` key are taken as full records; anything
    else becomes the payload. Metadata from *config* fills fields the line
    leaves unset.
    """
    try:
        data = json.loads(line)
    except ValueError:
        data = None
    if isinstance(data, dict) and "event" in data:
        event = Event.from_dict(data)
    else:
        event = Event(event=line)

    defaults = {
        name: getattr(config, name)
        for name in ("host", "index", "source", "sourcetype")
        if getattr(config, name) is not None and getattr(event, name) is None
    }
    return dataclasses.replace(event, **defaults) if defaults else event


def read_events(path: str, config: ClientConfig) -> list[Event]:
    """Read *path* as one event per line.

    Blank lines become empty events, which are never sent, so list positions
    (and any oversize indexes) match 0-based file line numbers.
    """
    with open(path, "r", encoding="utf-8") as f:
        return [
            parse_event_line(line.strip(), config) if line.strip() else Event()
            for line in f
        ]


def ship(config: ClientConfig, hec) -> None:
    if config.mode == "batch":
        hec.write_batch(read_events(config.input_file, config))
    else:
        with open(config.input_file, "rb") as f:
            hec.write_raw(f, config.metadata)


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_client_config(argv)
    if not config.input_file:
        logger.error("No input file given (use --file)")
        return 2

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, handle_signal)

    hec = build_hec(config)
    logger.info(
        "Shipping %s in %s mode to %s (max_content_length=%d, retries=%d)",
        config.input_file,
        config.mode,
        ", ".join(config.server_urls),
        config.max_content_length,
        config.max_retries,
    )

    status = 0
    try:
        ship(config, hec)
    except EventTooLongError as exc:
        logger.warning("Skipped oversize input: %s", exc)
        status = 1
    except HECError as exc:
        logger.error("Shipping failed: %s", exc)
        status = 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        status = 130
    finally:
        logger.info("Shipper metrics: %s", hec.metrics_snapshot())
        hec.close()
    return status


if __name__ == "__main__":
    sys.exit(main())
