"""Send metrics — thread-safe counters for collector submissions."""

import threading
import time

COUNTERS = ("requests", "retries", "bodies_sent", "bytes_sent", "failures", "too_long")


class SendMetrics:
    """Collects counters about request bodies sent to the collector."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._requests: int = 0
        self._retries: int = 0
        self._bodies_sent: int = 0
        self._bytes_sent: int = 0
        self._failures: int = 0
        self._too_long: int = 0
        self._send_times: list[float] = []
        self._start_time = time.monotonic()

    def record_attempt(self) -> None:
        with self._lock:
            self._requests += 1

    def record_retry(self) -> None:
        with self._lock:
            self._retries += 1

    def record_sent(self, bytes_sent: int, send_time_ms: float) -> None:
        """Record a body accepted by the collector.

        Args:
            bytes_sent: Uncompressed body size in bytes.
            send_time_ms: Time from first attempt to acceptance, retries included.
        """
        with self._lock:
            self._bodies_sent += 1
            self._bytes_sent += bytes_sent
            self._send_times.append(send_time_ms)

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    def record_too_long(self, count: int) -> None:
        with self._lock:
            self._too_long += count

    def snapshot(self) -> dict:
        """Return a point-in-time copy of all counters."""
        with self._lock:
            send_times = list(self._send_times)
            return {
                "requests": self._requests,
                "retries": self._retries,
                "bodies_sent": self._bodies_sent,
                "bytes_sent": self._bytes_sent,
                "failures": self._failures,
                "too_long": self._too_long,
                "avg_send_time_ms": (
                    sum(send_times) / len(send_times) if send_times else 0.0
                ),
                "max_send_time_ms": max(send_times) if send_times else 0.0,
                "uptime_seconds": time.monotonic() - self._start_time,
            }


def merge_snapshots(snapshots: list[dict]) -> dict:
    """Sum the counters of several snapshots (e.g. one per cluster member)."""
    merged = {name: 0 for name in COUNTERS}
    for snap in snapshots:
        for name in COUNTERS:
            merged[name] += snap.get(name, 0)
    return merged
