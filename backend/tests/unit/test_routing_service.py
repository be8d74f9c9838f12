from __future__ import annotations

import httpx
import pytest

from cad.core.exceptions import RouteFailure
from cad.models.navigation import Coordinate, RawInstruction
from cad.services.routing import MockRouteProvider, OsrmRouteProvider, RouteEngine, RouteProvider, RouteResult

ORIGIN = Coordinate(lat=43.0716, lng=-79.1010)
DESTINATION = Coordinate(lat=43.0962, lng=-79.0377)

OSRM_PAYLOAD = {
    "code": "Ok",
    "routes": [
        {
            "distance": 6120.4,
            "duration": 540.2,
            "geometry": {"type": "LineString", "coordinates": [[-79.1010, 43.0716], [-79.0700, 43.0850], [-79.0377, 43.0962]]},
            "legs": [
                {
                    "steps": [
                        {
                            "name": "Montrose Road",
                            "distance": 820.0,
                            "duration": 70.0,
                            "maneuver": {"type": "depart", "location": [-79.1010, 43.0716]},
                        },
                        {
                            "name": "Lundy's Lane",
                            "distance": 3100.0,
                            "duration": 260.0,
                            "maneuver": {"type": "turn", "modifier": "right", "location": [-79.1005, 43.0800]},
                        },
                        {
                            "name": "Portage Road",
                            "distance": 2200.4,
                            "duration": 210.2,
                            "maneuver": {"type": "roundabout", "exit": 2, "location": [-79.0800, 43.0880]},
                        },
                        {
                            "name": "",
                            "distance": 0,
                            "duration": 0,
                            "maneuver": {"type": "arrive", "location": [-79.0377, 43.0962]},
                        },
                    ]
                }
            ],
        }
    ],
}


class FakeProvider(RouteProvider):
    def __init__(self, routes: list[RouteResult]) -> None:
        self.routes = routes
        self.calls = 0

    async def get_routes(self, origin: Coordinate, destination: Coordinate) -> list[RouteResult]:
        self.calls += 1
        return self.routes


class FailingProvider(RouteProvider):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def get_routes(self, origin: Coordinate, destination: Coordinate) -> list[RouteResult]:
        raise self.exc


@pytest.mark.asyncio
async def test_osrm_provider_parses_steps_and_geometry():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=OSRM_PAYLOAD)

    provider = OsrmRouteProvider("https://osrm.test/", transport=httpx.MockTransport(handler))
    routes = await provider.get_routes(ORIGIN, DESTINATION)

    assert requests[0].url.path == "/route/v1/driving/-79.101,43.0716;-79.0377,43.0962"
    assert requests[0].url.params["geometries"] == "geojson"
    route = routes[0]
    assert route.distance_m == pytest.approx(6120.4)
    assert [step.type for step in route.instructions] == ["Head", "Right", "Roundabout", "DestinationReached"]
    assert route.instructions[0].text == "Head on Montrose Road"
    assert route.instructions[1].text == "Turn right onto Lundy's Lane"
    assert route.instructions[2].text == "Enter the roundabout and take exit 2 onto Portage Road"
    assert route.instructions[3].text == "You have arrived at your destination"
    assert route.instructions[1].location == Coordinate(lat=43.0800, lng=-79.1005)
    assert route.geometry_latlon[0] == ORIGIN
    assert len(route.geometry_latlon) == 3


@pytest.mark.asyncio
async def test_osrm_no_route_code_is_a_failure():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"code": "NoRoute", "routes": []}))
    provider = OsrmRouteProvider("https://osrm.test", transport=transport)
    with pytest.raises(RouteFailure) as exc_info:
        await provider.get_routes(ORIGIN, DESTINATION)
    assert exc_info.value.details == {"code": "NoRoute"}


@pytest.mark.asyncio
async def test_osrm_retries_then_gives_up():
    attempts: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(503, json={})

    provider = OsrmRouteProvider("https://osrm.test", retries=3, backoff=0, transport=httpx.MockTransport(handler))
    with pytest.raises(RouteFailure, match="unreachable"):
        await provider.get_routes(ORIGIN, DESTINATION)
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_osrm_recovers_after_transient_error():
    responses = iter([httpx.Response(502, json={}), httpx.Response(200, json=OSRM_PAYLOAD)])
    provider = OsrmRouteProvider(
        "https://osrm.test",
        retries=2,
        backoff=0,
        transport=httpx.MockTransport(lambda request: next(responses)),
    )
    routes = await provider.get_routes(ORIGIN, DESTINATION)
    assert len(routes[0].instructions) == 4


@pytest.mark.asyncio
async def test_engine_selects_first_route_and_notifies_listeners():
    best = RouteResult(
        instructions=[RawInstruction(text="Turn right", distance=3219, time=200, type="Right")],
        distance_m=3219,
        duration_sec=200,
        geometry_latlon=[ORIGIN, DESTINATION],
    )
    alternative = RouteResult(
        instructions=[RawInstruction(text="Turn left", distance=5000, time=400, type="Left")],
        distance_m=5000,
        duration_sec=400,
    )
    engine = RouteEngine(FakeProvider([best, alternative]))
    received: list[list[RawInstruction]] = []
    engine.subscribe(received.append)

    result = await engine.compute_route(ORIGIN, DESTINATION)

    assert result is best
    assert received == [best.instructions]


@pytest.mark.asyncio
async def test_engine_fills_missing_geometry_with_endpoints():
    route = RouteResult(
        instructions=[RawInstruction(text="Head straight", distance=10, time=1, type="Head")],
        distance_m=10,
        duration_sec=1,
    )
    result = await RouteEngine(FakeProvider([route])).compute_route(ORIGIN, DESTINATION)
    assert result.geometry_latlon == [ORIGIN, DESTINATION]


@pytest.mark.asyncio
async def test_engine_rejects_empty_routes():
    with pytest.raises(RouteFailure):
        await RouteEngine(FakeProvider([])).compute_route(ORIGIN, DESTINATION)


@pytest.mark.asyncio
async def test_engine_wraps_unexpected_provider_errors():
    with pytest.raises(RouteFailure) as exc_info:
        await RouteEngine(FailingProvider(RuntimeError("provider failed"))).compute_route(ORIGIN, DESTINATION)
    assert exc_info.value.details["error"] == "provider failed"


@pytest.mark.asyncio
async def test_mock_provider_builds_two_step_route():
    routes = await MockRouteProvider().get_routes(ORIGIN, DESTINATION)
    steps = routes[0].instructions
    assert [step.type for step in steps] == ["Head", "WaypointReached"]
    assert steps[0].distance == pytest.approx(ORIGIN.distance_to(DESTINATION))
