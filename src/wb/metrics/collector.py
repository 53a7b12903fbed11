from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Mapping

import pandas as pd

from wb.config import Verbosity
from wb.metrics.classify import classify, describe_error
from wb.metrics.models import NANOS_PER_MS, ClassifiedError, FailureRecord, ResultRecord

Emit = Callable[[str], None]


@dataclass(slots=True)
class Statistics:
    """Running aggregates over result records.

    Owned by the single collecting coroutine, so ``observe`` takes no lock.
    Failures only land in ``errors``; successes only touch the latency
    aggregates and ``status_codes``.
    """

    verbosity: Verbosity = Verbosity.NOTHING
    report_every: int = 100
    emit: Emit = print
    num_calls: int = 0
    min_ns: int | None = None
    max_ns: int | None = None
    total_ns: int = 0
    status_codes: dict[int, int] = field(default_factory=dict)
    errors: list[BaseException] = field(default_factory=list)

    @property
    def observed(self) -> int:
        return self.num_calls + len(self.errors)

    def observe(self, idx: int, record: ResultRecord) -> None:
        if isinstance(record, FailureRecord):
            self.errors.append(record.error)
            if self.verbosity is Verbosity.PER_CALL:
                self.emit(f"{idx + 1:6d}: Call: {record.elapsed_ms:6d}ms|{self._running()}|Error: {record.error!r}")
            return

        elapsed = record.elapsed_ns
        self.num_calls += 1
        self.total_ns += elapsed
        self.status_codes[record.status_code] = self.status_codes.get(record.status_code, 0) + 1
        if self.num_calls == 1:
            self.min_ns = elapsed
            self.max_ns = elapsed
        elif elapsed < self.min_ns:
            self.min_ns = elapsed
        elif elapsed > self.max_ns:
            self.max_ns = elapsed

        if self.verbosity is Verbosity.PER_CALL:
            body = record.body.decode("utf-8", errors="replace") if record.body else ""
            self.emit(
                f"{idx + 1:6d}: Call: {record.elapsed_ms:6d}ms|{self._running()}"
                f"|Stat:{record.status_code:3d}|Len:{record.content_length:6d}|{body}"
            )
        elif self.verbosity is Verbosity.PERIODIC and self.num_calls % self.report_every == 0:
            self.emit(self.snapshot())

    def average_ns(self) -> float | None:
        if self.num_calls == 0:
            return None
        return self.total_ns / self.num_calls

    def min_ms(self) -> int | None:
        return None if self.min_ns is None else self.min_ns // NANOS_PER_MS

    def max_ms(self) -> int | None:
        return None if self.max_ns is None else self.max_ns // NANOS_PER_MS

    def average_ms(self) -> int | None:
        avg = self.average_ns()
        if avg is None:
            return None
        return int(avg) // NANOS_PER_MS

    def snapshot(self) -> str:
        if self.num_calls == 0:
            return f"Calls: {self.num_calls:6d}\tno successful calls"
        return (
            f"Calls: {self.num_calls:6d}\tMin: {self.min_ms():6d}ms"
            f"\tAvg: {self.average_ms():6d}ms\tMax: {self.max_ms():6d}ms"
        )

    def classified_errors(self) -> list[ClassifiedError]:
        classified: list[ClassifiedError] = []
        for i, error in enumerate(self.errors):
            description = describe_error(error)
            classified.append(ClassifiedError(index=i, kind=classify(description), description=description))
        return classified

    def final_report(self, url: str, elapsed_sec: float = 0.0) -> FinalReport:
        return FinalReport(
            url=url,
            attempted=self.observed,
            successful=self.num_calls,
            min_ms=self.min_ms(),
            avg_ms=self.average_ms(),
            max_ms=self.max_ms(),
            status_codes=dict(self.status_codes),
            errors=self.classified_errors(),
            elapsed_sec=elapsed_sec,
        )

    def _running(self) -> str:
        if self.num_calls == 0:
            return "Min:      -|Avg:      -|Max:      -"
        return f"Min: {self.min_ms():6d}ms|Avg: {self.average_ms():6d}ms|Max: {self.max_ms():6d}ms"


@dataclass(frozen=True, slots=True)
class FinalReport:
    url: str
    attempted: int
    successful: int
    min_ms: int | None
    avg_ms: int | None
    max_ms: int | None
    status_codes: Mapping[int, int]
    errors: list[ClassifiedError]
    elapsed_sec: float = 0.0

    @property
    def requests_per_sec(self) -> float:
        if self.elapsed_sec <= 0:
            return 0.0
        return self.attempted / self.elapsed_sec

    def status_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            sorted(self.status_codes.items()),
            columns=["status", "calls"],
        )
        return frame.astype({"status": "int64", "calls": "int64"})

    def render(self) -> str:
        lines = ["Result:", f"URL: {self.url}"]
        lines.append(f"Attempted: {self.attempted:6d}\tSucceeded: {self.successful:6d}\tFailed: {len(self.errors):6d}")
        if self.successful == 0:
            lines.append("Latency: no successful calls")
        else:
            lines.append(
                f"Calls: {self.successful:6d}\tMin: {self.min_ms:6d}ms\tAvg: {self.avg_ms:6d}ms\tMax: {self.max_ms:6d}ms"
            )
        lines.append(f"Elapsed: {self.elapsed_sec:.3f}s\tThroughput: {self.requests_per_sec:.1f} req/s")
        frame = self.status_frame()
        for row in frame.itertuples(index=False):
            lines.append(f"Status {row.status:3d}: {row.calls} Calls")
        for error in self.errors:
            lines.append(error.render())
        return "\n".join(lines)
