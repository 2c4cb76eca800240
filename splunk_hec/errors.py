"""Collector response codes and the client's exception taxonomy."""

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional


class Status(IntEnum):
    SUCCESS = 0
    TOKEN_DISABLED = 1
    TOKEN_REQUIRED = 2
    INVALID_AUTHORIZATION = 3
    INVALID_TOKEN = 4
    NO_DATA = 5
    INVALID_DATA_FORMAT = 6
    INCORRECT_INDEX = 7
    INTERNAL_SERVER_ERROR = 8
    SERVER_BUSY = 9
    CHANNEL_MISSING = 10
    INVALID_CHANNEL = 11
    EVENT_FIELD_REQUIRED = 12
    EVENT_FIELD_BLANK = 13
    ACK_DISABLED = 14


STATUS_TEXT: dict[int, str] = {
    Status.SUCCESS: "Success",
    Status.TOKEN_DISABLED: "Token disabled",
    Status.TOKEN_REQUIRED: "Token is required",
    Status.INVALID_AUTHORIZATION: "Invalid authorization",
    Status.INVALID_TOKEN: "Invalid token",
    Status.NO_DATA: "No data",
    Status.INVALID_DATA_FORMAT: "Invalid data format",
    Status.INCORRECT_INDEX: "Incorrect index",
    Status.INTERNAL_SERVER_ERROR: "Internal server error",
    Status.SERVER_BUSY: "Server is busy",
    Status.CHANNEL_MISSING: "Data channel is missing",
    Status.INVALID_CHANNEL: "Invalid data channel",
    Status.EVENT_FIELD_REQUIRED: "Event field is required",
    Status.EVENT_FIELD_BLANK: "Event field cannot be blank",
    Status.ACK_DISABLED: "ACK is disabled",
}

# Code used when a failed response carries no parseable result
UNKNOWN_CODE = -1

_RETRIABLE = frozenset({Status.INTERNAL_SERVER_ERROR, Status.SERVER_BUSY})


def is_retriable(code: int) -> bool:
    """Only transient overload and internal errors are worth another attempt."""
    return code in _RETRIABLE


@dataclass(frozen=True)
class HECResponse:
    """Result object returned by the collector, e.g. ``{"text":"Success","code":0}``."""

    text: str
    code: int

    @property
    def ok(self) -> bool:
        return self.code == Status.SUCCESS

    @classmethod
    def parse(cls, body: bytes) -> Optional["HECResponse"]:
        """Parse a response body. Returns None when it is not a result object."""
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("code"), int):
            return None
        return cls(text=str(data.get("text", "")), code=data["code"])

    def to_json(self) -> str:
        return json.dumps({"text": self.text, "code": self.code})


class HECError(Exception):
    """Base class for every fault raised by the client."""


class EventEncodingError(HECError):
    """Raised when an event payload cannot be serialized to JSON."""


class EventTooLongError(HECError):
    """Raised when one or more events exceed the max content length.

    ``indexes`` holds 0-based positions (batch mode) or 1-based line numbers
    (raw mode). It is None for a single event.
    """

    def __init__(self, indexes: Optional[list[int]] = None):
        self.indexes = indexes
        if indexes is None:
            message = "Event length is too long"
        else:
            numbers = ", ".join(str(n) for n in indexes)
            message = f"Events ({numbers}) length are too long"
        super().__init__(message)


class HECResponseError(HECError):
    """The collector rejected a request; carries its text and code."""

    def __init__(self, response: HECResponse):
        self.response = response
        super().__init__(response.text)

    @property
    def code(self) -> int:
        return self.response.code

    @property
    def text(self) -> str:
        return self.response.text


class HECTransportError(HECError):
    """Connection-level failure below the HTTP response (DNS, TCP, TLS, timeout)."""
