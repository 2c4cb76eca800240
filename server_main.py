"""Entry point for the stub HTTP Event Collector."""

import logging
import signal
import threading

from splunk_hec.config import load_server_config
from splunk_hec.server import StubCollector


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_server_config()
    collector = StubCollector(config)
    collector.bind()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        # shutdown() blocks until serve_forever returns, so call it off-thread
        threading.Thread(target=collector.stop, daemon=True).start()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.info("Starting stub collector on %s:%d", config.host, config.port)
    try:
        collector.start()
    finally:
        logger.info("Accepted %d request(s)", len(collector.received))


if __name__ == "__main__":
    main()
