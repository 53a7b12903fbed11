from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

NANOS_PER_MS = 1_000_000


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    TEMPORARY = "temporary"
    OTHER = "other"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True, slots=True)
class RequestDescriptor:
    url: str


@dataclass(frozen=True, slots=True)
class ResponseRecord:
    elapsed_ns: int
    status_code: int
    content_length: int
    body: bytes | None = None

    @property
    def elapsed_ms(self) -> int:
        return self.elapsed_ns // NANOS_PER_MS


@dataclass(frozen=True, slots=True)
class FailureRecord:
    error: BaseException
    elapsed_ns: int = 0
    status_code: None = None

    @property
    def elapsed_ms(self) -> int:
        return self.elapsed_ns // NANOS_PER_MS


ResultRecord = Union[ResponseRecord, FailureRecord]


@dataclass(frozen=True, slots=True)
class ErrorDescription:
    type_name: str
    message: str
    request_error: bool
    network_error: bool
    timeout: bool
    temporary: bool


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    index: int
    kind: ErrorKind
    description: ErrorDescription

    def render(self) -> str:
        if self.kind in (ErrorKind.TIMEOUT, ErrorKind.TEMPORARY):
            return f"Error {self.index} is {self.kind.value}: {self.description.message}"
        return f"Error {self.index} ({self.kind.value}): {self.description.type_name}: {self.description.message}"
