from __future__ import annotations

import pytest

from fakes import FakeBackend, make_orchestrator, make_transport


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def transport(backend: FakeBackend):
    client = make_transport(backend)
    yield client
    await client.aclose()


@pytest.fixture
async def orchestrator(backend: FakeBackend):
    session = make_orchestrator(backend)
    yield session
    await session.aclose()
