from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

import httpx

from wb.config import TargetConfig
from wb.metrics import FailureRecord, RequestDescriptor, ResponseRecord, ResultRecord

logger = logging.getLogger(__name__)


def new_client(target: TargetConfig) -> httpx.AsyncClient:
    # Certificate checks are off unless asked for: targets are test and staging hosts.
    logger.debug("Creating HTTP client (verify=%s, timeout=%ss)", target.verify_tls, target.timeout_sec)
    return httpx.AsyncClient(
        verify=target.verify_tls,
        trust_env=True,
        timeout=httpx.Timeout(target.timeout_sec, connect=target.connect_timeout_sec),
    )


@dataclass(frozen=True, slots=True)
class Fetcher:
    client: httpx.AsyncClient
    keep_body: bool = False
    deadline_sec: float | None = None

    async def fetch(self, descriptor: RequestDescriptor) -> ResultRecord:
        start = time.perf_counter_ns()
        try:
            resp = await asyncio.wait_for(self.client.get(descriptor.url), self.deadline_sec)
            body = resp.content
        except asyncio.TimeoutError:
            elapsed = time.perf_counter_ns() - start
            logger.debug("GET %s exceeded the %ss deadline", descriptor.url, self.deadline_sec)
            exc = httpx.TimeoutException(f"Request exceeded the {self.deadline_sec}s deadline")
            return FailureRecord(error=exc, elapsed_ns=elapsed)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            elapsed = time.perf_counter_ns() - start
            logger.debug("GET %s failed after %dns: %r", descriptor.url, elapsed, exc)
            return FailureRecord(error=exc, elapsed_ns=elapsed)
        elapsed = time.perf_counter_ns() - start
        return ResponseRecord(
            elapsed_ns=elapsed,
            status_code=resp.status_code,
            content_length=_content_length(resp, body),
            body=body if self.keep_body else None,
        )


def _content_length(resp: httpx.Response, body: bytes) -> int:
    # The header counts encoded bytes; the body is already decoded.
    header = resp.headers.get("content-length")
    if header is not None and not resp.headers.get("content-encoding"):
        try:
            length = int(header)
        except ValueError:
            length = -1
        if length >= 0:
            return length
    return len(body)
