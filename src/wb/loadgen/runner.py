from __future__ import annotations

import asyncio
import logging
import time
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Callable

import httpx

from wb.config import RunConfig, TargetConfig
from wb.loadgen.client import Fetcher, new_client
from wb.metrics import FailureRecord, FinalReport, RequestDescriptor, ResultRecord, Statistics
from wb.metrics.collector import Emit

logger = logging.getLogger(__name__)

ClientFactory = Callable[[TargetConfig], httpx.AsyncClient]

# One per worker, queued after the last descriptor.
_END_OF_WORK = None


@dataclass(frozen=True, slots=True)
class RunResult:
    config: RunConfig
    statistics: Statistics
    elapsed_sec: float

    def report(self) -> FinalReport:
        return self.statistics.final_report(self.config.target.url, self.elapsed_sec)


async def run_benchmark(
    config: RunConfig,
    client_factory: ClientFactory | None = None,
    emit: Emit = print,
) -> RunResult:
    factory = client_factory or new_client
    stats = Statistics(verbosity=config.verbosity, report_every=config.report_every, emit=emit)
    intake: asyncio.Queue[RequestDescriptor | None] = asyncio.Queue(maxsize=config.requests)
    outtake: asyncio.Queue[ResultRecord] = asyncio.Queue(maxsize=config.requests)
    started = time.perf_counter()

    async with AsyncExitStack() as stack:
        shared = None
        if config.reuse_client:
            shared = await stack.enter_async_context(factory(config.target))
        tasks = [
            asyncio.create_task(_worker(worker_id, config, factory, shared, intake, outtake))
            for worker_id in range(config.concurrency)
        ]
        tasks.append(asyncio.create_task(_dispatch(config, intake)))
        try:
            await _collect(stats, config.requests, outtake, tasks)
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    elapsed = time.perf_counter() - started
    logger.info(
        "Completed %d requests against %s in %.3fs (%d failed)",
        config.requests,
        config.target.url,
        elapsed,
        len(stats.errors),
    )
    return RunResult(config=config, statistics=stats, elapsed_sec=elapsed)


async def _dispatch(config: RunConfig, intake: asyncio.Queue[RequestDescriptor | None]) -> None:
    for _ in range(config.requests):
        await intake.put(RequestDescriptor(url=config.target.url))
    for _ in range(config.concurrency):
        await intake.put(_END_OF_WORK)


async def _collect(
    stats: Statistics,
    requests: int,
    outtake: asyncio.Queue[ResultRecord],
    tasks: list[asyncio.Task[None]],
) -> None:
    """Feed exactly ``requests`` results to ``stats``.

    Waits on the worker tasks alongside the queue, so a worker that dies
    raises here instead of leaving the loop waiting for a result that
    never comes.
    """
    running = set(tasks)
    getter: asyncio.Future[ResultRecord] | None = None
    idx = 0
    try:
        while idx < requests:
            if getter is None:
                getter = asyncio.ensure_future(outtake.get())
            done, _ = await asyncio.wait({getter, *running}, return_when=asyncio.FIRST_COMPLETED)
            for task in done - {getter}:
                running.discard(task)
                task.result()
            if getter in done:
                stats.observe(idx, getter.result())
                idx += 1
                getter = None
    finally:
        if getter is not None:
            getter.cancel()


async def _worker(
    worker_id: int,
    config: RunConfig,
    factory: ClientFactory,
    shared: httpx.AsyncClient | None,
    intake: asyncio.Queue[RequestDescriptor | None],
    outtake: asyncio.Queue[ResultRecord],
) -> None:
    async with AsyncExitStack() as stack:
        client = shared
        if client is None:
            client = await stack.enter_async_context(factory(config.target))
        fetcher = Fetcher(client, keep_body=config.retain_body, deadline_sec=config.target.timeout_sec)
        logger.debug("Worker %d started", worker_id)
        handled = 0
        while True:
            descriptor = await intake.get()
            if descriptor is _END_OF_WORK:
                break
            try:
                record = await fetcher.fetch(descriptor)
            except Exception as exc:
                logger.exception("Worker %d: unexpected error fetching %s", worker_id, descriptor.url)
                record = FailureRecord(error=exc)
            await outtake.put(record)
            handled += 1
        logger.debug("Worker %d finished after %d requests", worker_id, handled)
