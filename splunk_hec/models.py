"""Event models — structured records and raw-mode metadata."""

import datetime
from dataclasses import dataclass, fields
from typing import Any, Optional, Union

Timestamp = Union[datetime.datetime, int, float, str]

# Wire order of the optional record fields
METADATA_FIELDS = ("time", "host", "index", "source", "sourcetype", "fields")


def epoch_time(value: Timestamp) -> str:
    """Render a timestamp as epoch seconds with millisecond precision.

    Strings are assumed to be preformatted and pass through untouched.
    Naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        value = value.timestamp()
    return f"{value:.3f}"


@dataclass(frozen=True)
class Event:
    event: Any = None
    time: Optional[Timestamp] = None
    host: Optional[str] = None
    index: Optional[str] = None
    source: Optional[str] = None
    sourcetype: Optional[str] = None
    fields: Optional[dict] = None

    def is_empty(self) -> bool:
        """True when the payload is absent or blank and no metadata is set."""
        if self.event is not None:
            if not isinstance(self.event, str) or self.event.strip():
                return False
        return all(getattr(self, name) is None for name in METADATA_FIELDS)

    def to_dict(self) -> dict:
        """Return only the present fields, in wire order."""
        data = {"event": self.event}
        for name in METADATA_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            data[name] = epoch_time(value) if name == "time" else value
        return data

    @classmethod
    def from_dict(cls, d: dict) -> "Event":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass(frozen=True)
class EventMetadata:
    """Query-string annotations for raw submissions."""

    host: Optional[str] = None
    index: Optional[str] = None
    source: Optional[str] = None
    sourcetype: Optional[str] = None
    time: Optional[Timestamp] = None

    def to_params(self) -> dict:
        params = {}
        for name in ("host", "index", "source", "sourcetype"):
            value = getattr(self, name)
            if value is not None:
                params[name] = value
        if self.time is not None:
            params["time"] = epoch_time(self.time)
        return params
