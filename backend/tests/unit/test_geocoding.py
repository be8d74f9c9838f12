from __future__ import annotations

import httpx
import pytest
from fakeredis import aioredis
from redis.exceptions import RedisError

from cad.core.config import Settings
from cad.core.exceptions import GeocodeFailure
from cad.services.address_index import AddressIndex
from cad.services.geocoding import Geocoder

ONTARIO_HIT = {
    "place_id": "331",
    "lat": "43.0896",
    "lon": "-79.0849",
    "display_name": "Table Rock Centre, Niagara Parkway, Niagara Falls, Ontario, Canada",
}
NEW_YORK_HIT = {
    "place_id": "977",
    "lat": "43.0828",
    "lon": "-79.0742",
    "display_name": "Niagara Falls State Park, Niagara Falls, New York, United States",
}


class BrokenRedis:
    async def get(self, key: str):
        raise RedisError("down")

    async def setex(self, key: str, ttl: int, value: str) -> None:
        raise RedisError("down")


def _settings(**overrides) -> Settings:
    values = {"geocoder_api_key": "test-key", "geocoder_base_url": "https://geo.test/v1/search"}
    values.update(overrides)
    return Settings(**values)


def _json_transport(payload, status_code: int = 200, calls: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_resolve_keeps_only_region_candidates():
    calls: list[httpx.Request] = []
    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=_json_transport([NEW_YORK_HIT, ONTARIO_HIT], calls=calls))

    results = await geocoder.resolve("Table Rock")

    assert [item.id for item in results] == ["geo-331"]
    assert results[0].name == "Table Rock Centre"
    assert results[0].lat == pytest.approx(43.0896)
    assert results[0].lng == pytest.approx(-79.0849)
    assert calls[0].url.params["q"] == "table rock, Ontario, Canada"
    assert calls[0].url.params["key"] == "test-key"


@pytest.mark.asyncio
async def test_resolve_returns_empty_when_nothing_in_region():
    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=_json_transport([NEW_YORK_HIT]))
    assert await geocoder.resolve("state park") == []


@pytest.mark.asyncio
async def test_resolve_without_key_uses_local_index_and_no_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("network must not be used without an API key")

    geocoder = Geocoder(AddressIndex(), settings=_settings(geocoder_api_key=""), transport=httpx.MockTransport(handler))

    results = await geocoder.resolve("Niagra Falls")

    assert results
    assert results[0].id == "niagara-falls"


@pytest.mark.asyncio
async def test_http_error_raises_geocode_failure():
    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=_json_transport({"error": "quota"}, status_code=429))
    with pytest.raises(GeocodeFailure) as exc_info:
        await geocoder.resolve("Table Rock")
    assert exc_info.value.details["status_code"] == 429


@pytest.mark.asyncio
async def test_network_error_raises_geocode_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(GeocodeFailure):
        await geocoder.resolve("Table Rock")


@pytest.mark.asyncio
async def test_empty_payload_is_a_failure():
    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=_json_transport([]))
    with pytest.raises(GeocodeFailure):
        await geocoder.resolve("Table Rock")


@pytest.mark.asyncio
async def test_results_are_cached_in_redis():
    redis = aioredis.FakeRedis(decode_responses=True)
    calls: list[httpx.Request] = []
    geocoder = Geocoder(
        AddressIndex(),
        redis=redis,
        settings=_settings(),
        transport=_json_transport([ONTARIO_HIT], calls=calls),
    )

    first = await geocoder.resolve("Table Rock")
    second = await geocoder.resolve("  table   ROCK ")

    assert first == second
    assert len(calls) == 1
    assert await redis.ttl("geocode:search:table rock") > 0


@pytest.mark.asyncio
async def test_cache_errors_do_not_break_resolution():
    geocoder = Geocoder(AddressIndex(), redis=BrokenRedis(), settings=_settings(), transport=_json_transport([ONTARIO_HIT]))
    results = await geocoder.resolve("Table Rock")
    assert [item.id for item in results] == ["geo-331"]


@pytest.mark.asyncio
async def test_blank_text_resolves_to_nothing():
    geocoder = Geocoder(AddressIndex(), settings=_settings(), transport=_json_transport([ONTARIO_HIT]))
    assert await geocoder.resolve("   ") == []


@pytest.mark.asyncio
async def test_corrupt_cache_entry_is_treated_as_miss():
    redis = aioredis.FakeRedis(decode_responses=True)
    await redis.set("geocode:search:table rock", "{not json")
    calls: list[httpx.Request] = []
    geocoder = Geocoder(AddressIndex(), redis=redis, settings=_settings(), transport=_json_transport([ONTARIO_HIT], calls=calls))

    results = await geocoder.resolve("Table Rock")

    assert [item.id for item in results] == ["geo-331"]
    assert len(calls) == 1
    assert "geo-331" in await redis.get("geocode:search:table rock")


@pytest.mark.asyncio
async def test_cache_entry_with_wrong_shape_is_treated_as_miss():
    redis = aioredis.FakeRedis(decode_responses=True)
    await redis.set("geocode:search:table rock", '[{"unexpected": 1}]')
    geocoder = Geocoder(AddressIndex(), redis=redis, settings=_settings(), transport=_json_transport([ONTARIO_HIT]))
    assert [item.id for item in await geocoder.resolve("Table Rock")] == ["geo-331"]


@pytest.mark.asyncio
async def test_geocoder_uses_its_own_timeout():
    calls: list[httpx.Request] = []
    settings = _settings(geocoder_timeout_sec=1.5, route_request_timeout_sec=9)
    geocoder = Geocoder(AddressIndex(), settings=settings, transport=_json_transport([ONTARIO_HIT], calls=calls))

    await geocoder.resolve("Table Rock")

    assert calls[0].extensions["timeout"]["read"] == 1.5
