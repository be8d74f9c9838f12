from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from cad.api import deps
from cad.core.config import Settings
from cad.integrations.speech import NullSpeechEngine
from cad.main import app
from cad.repositories.records import MemoryRecordStore
from cad.services.navigation import build_navigation_service
from cad.services.routing import MockRouteProvider


@pytest.fixture()
async def navigation_service():
    settings = Settings(routing_provider="mock", geocoder_api_key="", position_mode="fixed")
    service = build_navigation_service(
        settings,
        speech_engine=NullSpeechEngine(),
        route_provider=MockRouteProvider(),
    )
    yield service
    await service.aclose()


@pytest.fixture()
def record_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture()
async def app_client(navigation_service, record_store):
    async def override_navigation():
        return navigation_service

    async def override_records():
        return record_store

    app.dependency_overrides[deps.get_navigation_service] = override_navigation
    app.dependency_overrides[deps.get_records] = override_records

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
