from __future__ import annotations

from typing import Awaitable, Callable

import httpx
import pytest

from wb.config import TargetConfig

Handler = Callable[[httpx.Request], Awaitable[httpx.Response]]


class MockClientFactory:
    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.clients: list[httpx.AsyncClient] = []

    def __call__(self, target: TargetConfig) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler), timeout=target.timeout_sec)
        self.clients.append(client)
        return client


@pytest.fixture
def mock_factory() -> Callable[[Handler], MockClientFactory]:
    return MockClientFactory
