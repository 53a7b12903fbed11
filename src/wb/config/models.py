from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Verbosity(IntEnum):
    NOTHING = 0
    PERIODIC = 1
    PER_CALL = 2


@dataclass(frozen=True, slots=True)
class TargetConfig:
    url: str
    timeout_sec: float = 10.0
    connect_timeout_sec: float = 5.0
    verify_tls: bool = False

    def __post_init__(self) -> None:
        if not self.url:
            msg = "Target URL must not be empty"
            raise ValueError(msg)
        if self.timeout_sec <= 0 or self.connect_timeout_sec <= 0:
            msg = "Timeouts must be positive"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class RunConfig:
    target: TargetConfig
    concurrency: int = 1
    requests: int = 1
    verbosity: Verbosity = Verbosity.NOTHING
    reuse_client: bool = False
    report_every: int = 100
    keep_body: bool = False

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            msg = f"Concurrency must be at least 1, got {self.concurrency}"
            raise ValueError(msg)
        if self.requests < 1:
            msg = f"Request count must be at least 1, got {self.requests}"
            raise ValueError(msg)
        if self.report_every < 1:
            msg = f"Report interval must be at least 1, got {self.report_every}"
            raise ValueError(msg)

    @property
    def retain_body(self) -> bool:
        return self.keep_body or self.verbosity is Verbosity.PER_CALL
