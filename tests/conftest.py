from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from fakes import FakeConnector, FakeScene, FixedTransform
from playersync.main import create_app
from playersync.settings import RelaySettings


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    """TestClient over a fresh app; the lifespan gives every test its own relay."""

    app = create_app(RelaySettings(path="/players", send_timeout_s=1.0))
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def scene() -> FakeScene:
    return FakeScene()


@pytest.fixture()
def transform_source() -> FixedTransform:
    return FixedTransform()


@pytest.fixture()
def connector() -> FakeConnector:
    return FakeConnector()
