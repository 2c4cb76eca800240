"""Body splitters — pack events or raw lines into size-bounded request bodies.

Both splitters are generators: a body is only built once the caller asks for
the next one, so each body can be sent before the following one is packed.
Items that alone exceed *max_length* are never sent; their positions are
appended to the caller's *too_long* list.
"""

import io
import logging
from typing import BinaryIO, Iterable, Iterator, Union

from splunk_hec.models import Event
from splunk_hec.serializer import encode_event

logger = logging.getLogger(__name__)

LINE_TERMINATOR = b"\n"

RawInput = Union[bytes, bytearray, str, BinaryIO]


def iter_batch_bodies(
    events: Iterable[Event], max_length: int, too_long: list[int]
) -> Iterator[bytes]:
    """Yield request bodies of concatenated encoded events.

    Every non-empty event is encoded before the first body is yielded, so an
    encoding defect surfaces before anything is sent. Empty events are
    dropped without an index. An event whose encoding exceeds *max_length*
    has its 0-based position recorded in *too_long*.
    """
    encoded = [
        (index, encode_event(event))
        for index, event in enumerate(events)
        if not event.is_empty()
    ]

    buf = bytearray()
    for index, data in encoded:
        if len(data) > max_length:
            logger.warning(
                "Event %d is %d bytes, over the %d byte limit; skipping",
                index,
                len(data),
                max_length,
            )
            too_long.append(index)
            continue

        # Flush first if this event would push the body over the limit
        if len(buf) + len(data) > max_length:
            logger.debug("Flushing batch body of %d bytes", len(buf))
            yield bytes(buf)
            buf.clear()
        buf += data

    if buf:
        yield bytes(buf)


def iter_lines(stream: RawInput) -> Iterator[bytes]:
    """Yield the lines of *stream* without their LF or CRLF terminator."""
    if isinstance(stream, str):
        stream = stream.encode("utf-8")
    if isinstance(stream, (bytes, bytearray)):
        stream = io.BytesIO(stream)
    for line in stream:
        if line.endswith(LINE_TERMINATOR):
            line = line[:-1]
            # CRLF input
            if line.endswith(b"\r"):
                line = line[:-1]
        yield line


def iter_raw_bodies(
    stream: RawInput, max_length: int, too_long: list[int]
) -> Iterator[bytes]:
    """Yield request bodies of newline-terminated raw lines.

    Lines are numbered from 1, blank lines included. A line longer than
    *max_length* has its number recorded in *too_long*. A line of exactly
    *max_length* bytes is sent as a body of its own, without terminator.
    """
    buf = bytearray()
    for line_no, line in enumerate(iter_lines(stream), start=1):
        if len(line) > max_length:
            logger.warning(
                "Line %d is %d bytes, over the %d byte limit; skipping",
                line_no,
                len(line),
                max_length,
            )
            too_long.append(line_no)
            continue

        if len(buf) + len(line) + 1 > max_length:
            if buf:
                logger.debug("Flushing raw body of %d bytes", len(buf))
                yield bytes(buf)
                buf.clear()
            if len(line) + 1 > max_length:
                yield bytes(line)
                continue
        buf += line
        buf += LINE_TERMINATOR

    if buf:
        yield bytes(buf)
