from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from pacer.app.app import app
from pacer.app.host import ActiveRunHost
from tests._factories import FakeClock, FakeRepository, FakeSettings, FakeWeather
from tests._factories.harness import IDLE_TIMINGS

TEST_API_KEY = "test-device-key"


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def host(repository: FakeRepository, clock: FakeClock) -> ActiveRunHost:
    return ActiveRunHost(
        repository=repository,
        settings=FakeSettings(),
        weather=FakeWeather(),
        clock=clock,
        timings=IDLE_TIMINGS,
    )


@pytest.fixture
def client(host: ActiveRunHost, monkeypatch) -> Iterator[TestClient]:
    """A client for an app with authentication disabled."""
    monkeypatch.delenv("PACER_API_KEY", raising=False)
    app.state.host = host
    with TestClient(app) as client:
        yield client
    app.state.host = None


@pytest.fixture
def secured_client(host: ActiveRunHost, monkeypatch) -> Iterator[TestClient]:
    """A client for an app that requires an API key, sending no key."""
    monkeypatch.setenv("PACER_API_KEY", TEST_API_KEY)
    app.state.host = host
    with TestClient(app) as client:
        yield client
    app.state.host = None
