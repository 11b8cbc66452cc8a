"""Pytest configuration and fixtures."""

from datetime import datetime, time
from decimal import Decimal
from typing import AsyncGenerator

import fakeredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ecoplate.api.routes import get_engine
from ecoplate.engine import Engine, build_engine
from ecoplate.main import app
from ecoplate.models.drop import CreateDropRequest, Drop, Location
from ecoplate.state.manager import StateManager

# Saturday evening, before the default pickup window opens
NOW = datetime(2026, 10, 17, 18, 0)


class FixedClock:
    """Settable wall clock for exercising time-dependent behavior."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    """Create a clock pinned to a known evening."""
    return FixedClock()


@pytest_asyncio.fixture
async def state_manager() -> AsyncGenerator[StateManager, None]:
    """Create a state manager over an in-memory Redis."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    manager = StateManager(redis_client=client)
    yield manager
    await manager.disconnect()


@pytest.fixture
def engine(state_manager: StateManager, clock: FixedClock) -> Engine:
    """Create an engine wired over the test state manager."""
    return build_engine(state_manager, clock=clock)


@pytest_asyncio.fixture
async def test_client(engine: Engine) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client bound to the test engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# Sample data fixtures


@pytest.fixture
def sample_drop_request() -> CreateDropRequest:
    """Create a sample drop request."""
    return CreateDropRequest(
        location=Location.ANTEATERY,
        window_start=time(19, 30),
        window_end=time(20, 30),
        boxes=5,
        price_min=Decimal("3"),
        price_max=Decimal("5"),
    )


@pytest_asyncio.fixture
async def sample_drop(engine: Engine, sample_drop_request: CreateDropRequest) -> Drop:
    """Post a sample drop."""
    return await engine.inventory.create_drop(sample_drop_request)


@pytest_asyncio.fixture
async def single_box_drop(engine: Engine, sample_drop_request: CreateDropRequest) -> Drop:
    """Post a drop with exactly one box."""
    request = sample_drop_request.model_copy(update={"boxes": 1})
    return await engine.inventory.create_drop(request)
