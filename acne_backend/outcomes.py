"""Result types shared by the adapters and the aggregator."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class FailureKind(str, Enum):
    TIMEOUT = 'Timeout'
    HTTP_ERROR = 'HttpError'
    MALFORMED_RESPONSE = 'MalformedResponse'
    UNKNOWN = 'Unknown'


class AdapterError(Exception):
    """Raised inside an adapter when a source misbehaves in a known way."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class InvalidImageError(ValueError):
    """The inbound image could not be decoded. Fatal for the request."""


@dataclass(frozen=True)
class Success:
    value: Any
    raw_label: Optional[str] = None


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    @property
    def timed_out(self) -> bool:
        return self.kind is FailureKind.TIMEOUT


AdapterOutcome = Union[Success, Failure]
