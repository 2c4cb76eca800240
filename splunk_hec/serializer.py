"""Event serializer — compact JSON records for the collector endpoint."""

import json

from splunk_hec.errors import EventEncodingError
from splunk_hec.models import Event


def encode_event(event: Event) -> bytes:
    """Serialize the present fields of *event* to compact UTF-8 JSON.

    ``Event(event="event one")`` encodes to ``{"event":"event one"}``.

    Raises:
        EventEncodingError: If the payload is not JSON-encodable or contains
            NaN/Infinity.
    """
    try:
        payload = json.dumps(
            event.to_dict(),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (TypeError, ValueError) as exc:
        raise EventEncodingError(f"Cannot encode event: {exc}") from exc
    return payload.encode("utf-8")


def decode_events(body: bytes) -> list[dict]:
    """Split a batch body (concatenated JSON objects) back into dicts.

    Raises:
        ValueError: If the body is not a sequence of JSON objects.
    """
    decoder = json.JSONDecoder()
    text = body.decode("utf-8")
    events = []
    pos = 0
    while pos < len(text):
        if text[pos].isspace():
            pos += 1
            continue
        obj, pos = decoder.raw_decode(text, pos)
        if not isinstance(obj, dict):
            raise ValueError(f"Expected a JSON object, got {type(obj).__name__}")
        events.append(obj)
    return events
