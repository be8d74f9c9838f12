from __future__ import annotations

import abc
import asyncio
import contextlib
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from cad.core.config import Settings
from cad.core.exceptions import RouteFailure
from cad.models.navigation import Coordinate, RawInstruction

logger = logging.getLogger(__name__)

RoutesFoundListener = Callable[[list[RawInstruction]], None]


def _safe_float(value: Any) -> float | None:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def _pair_to_coordinate(pair: Any) -> Coordinate | None:
    # GeoJSON order is [lng, lat].
    if not isinstance(pair, (list, tuple)) or len(pair) < 2:
        return None
    lng = _safe_float(pair[0])
    lat = _safe_float(pair[1])
    if lng is None or lat is None:
        return None
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return None
    return Coordinate(lat=lat, lng=lng)


@dataclass(slots=True)
class RouteResult:
    instructions: list[RawInstruction]
    distance_m: float
    duration_sec: float
    geometry_latlon: list[Coordinate] = field(default_factory=list)


class RouteProvider(abc.ABC):
    @abc.abstractmethod
    async def get_routes(self, origin: Coordinate, destination: Coordinate) -> list[RouteResult]:
        """Candidate routes, best first."""
        raise NotImplementedError


class MockRouteProvider(RouteProvider):
    speed_m_s = 13.9

    async def get_routes(self, origin: Coordinate, destination: Coordinate) -> list[RouteResult]:
        distance = origin.distance_to(destination)
        duration = distance / self.speed_m_s if distance > 0 else 0.0
        instructions = [
            RawInstruction(text="Head straight", distance=distance, time=duration, type="Head", location=origin),
            RawInstruction(
                text="You have arrived at your destination",
                distance=0,
                time=0,
                type="WaypointReached",
                location=destination,
            ),
        ]
        return [
            RouteResult(
                instructions=instructions,
                distance_m=distance,
                duration_sec=duration,
                geometry_latlon=[origin, destination],
            )
        ]


_OSRM_MODIFIER_TYPES = {
    "straight": "Straight",
    "slight right": "SlightRight",
    "right": "Right",
    "sharp right": "SharpRight",
    "slight left": "SlightLeft",
    "left": "Left",
    "sharp left": "SharpLeft",
    "uturn": "TurnAround",
}

_OSRM_MODIFIER_TEXT = {
    "Straight": "Continue straight",
    "SlightRight": "Slight right",
    "Right": "Turn right",
    "SharpRight": "Sharp right",
    "SlightLeft": "Slight left",
    "Left": "Turn left",
    "SharpLeft": "Sharp left",
    "TurnAround": "Make a U-turn",
}


class OsrmRouteProvider(RouteProvider):
    def __init__(
        self,
        base_url: str,
        *,
        timeout_sec: int = 8,
        retries: int = 3,
        backoff: float = 0.5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.retries = max(1, retries)
        self.backoff = backoff
        self.transport = transport

    @staticmethod
    def _step_type(maneuver: dict[str, Any]) -> str:
        kind = str(maneuver.get("type", ""))
        if kind == "depart":
            return "Head"
        if kind == "arrive":
            return "DestinationReached"
        if kind in {"roundabout", "rotary", "exit roundabout", "exit rotary", "roundabout turn"}:
            return "Roundabout"
        return _OSRM_MODIFIER_TYPES.get(str(maneuver.get("modifier", "")), "Straight")

    @staticmethod
    def _step_text(step_type: str, maneuver: dict[str, Any], name: str) -> str:
        if step_type == "Head":
            return f"Head on {name}" if name else "Head straight"
        if step_type == "DestinationReached":
            return "You have arrived at your destination"
        if step_type == "Roundabout":
            exit_number = maneuver.get("exit")
            text = "Enter the roundabout"
            if exit_number:
                text += f" and take exit {exit_number}"
            return f"{text} onto {name}" if name else text
        text = _OSRM_MODIFIER_TEXT.get(step_type, "Continue")
        return f"{text} onto {name}" if name else text

    @classmethod
    def _parse_route(cls, route: dict[str, Any]) -> RouteResult:
        instructions: list[RawInstruction] = []
        for leg in route.get("legs") or []:
            if not isinstance(leg, dict):
                continue
            for step in leg.get("steps") or []:
                if not isinstance(step, dict):
                    continue
                maneuver = step.get("maneuver") or {}
                step_type = cls._step_type(maneuver)
                instructions.append(
                    RawInstruction(
                        text=cls._step_text(step_type, maneuver, str(step.get("name") or "").strip()),
                        distance=_safe_float(step.get("distance")) or 0.0,
                        time=_safe_float(step.get("duration")) or 0.0,
                        type=step_type,
                        location=_pair_to_coordinate(maneuver.get("location")),
                    )
                )

        geometry = route.get("geometry")
        raw_coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        points = [point for point in (_pair_to_coordinate(item) for item in raw_coords or []) if point is not None]
        return RouteResult(
            instructions=instructions,
            distance_m=_safe_float(route.get("distance")) or 0.0,
            duration_sec=_safe_float(route.get("duration")) or 0.0,
            geometry_latlon=points,
        )

    async def get_routes(self, origin: Coordinate, destination: Coordinate) -> list[RouteResult]:
        url = f"{self.base_url}/route/v1/driving/{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        params = {
            "steps": "true",
            "overview": "full",
            "geometries": "geojson",
            "alternatives": "false",
        }

        last_error: Exception | None = None
        for attempt in range(self.retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self.transport) as client:
                    response = await client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning(
                    "OSRM route request failed",
                    extra={"attempt": attempt + 1, "retries": self.retries, "error": str(exc)},
                )
                if attempt + 1 < self.retries:
                    await asyncio.sleep(self.backoff * (2**attempt))
                continue

            if not isinstance(payload, dict) or payload.get("code") not in (None, "Ok"):
                code = payload.get("code") if isinstance(payload, dict) else None
                raise RouteFailure("Routing service found no route", details={"code": code})
            routes = payload.get("routes")
            if not isinstance(routes, list):
                return []
            return [self._parse_route(route) for route in routes if isinstance(route, dict)]
        raise RouteFailure("Routing service is unreachable", details={"error": str(last_error)})


def build_route_provider(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> RouteProvider:
    if settings.routing_provider == "mock":
        return MockRouteProvider()
    return OsrmRouteProvider(
        settings.routing_base_url,
        timeout_sec=settings.route_request_timeout_sec,
        retries=settings.route_retry_attempts,
        backoff=settings.route_retry_backoff_sec,
        transport=transport,
    )


class RouteEngine:
    def __init__(self, provider: RouteProvider) -> None:
        self.provider = provider
        self._listeners: list[RoutesFoundListener] = []

    def subscribe(self, listener: RoutesFoundListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    async def compute_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult:
        try:
            routes = await self.provider.get_routes(origin, destination)
        except RouteFailure:
            raise
        except Exception as exc:
            logger.error(
                "Route provider failed",
                extra={"provider": self.provider.__class__.__name__, "error": str(exc)},
            )
            raise RouteFailure(details={"error": str(exc)}) from exc

        if not routes or not routes[0].instructions:
            raise RouteFailure("Routing service returned no route")

        # Alternatives are never displayed.
        selected = routes[0]
        if len(selected.geometry_latlon) < 2:
            selected.geometry_latlon = [origin, destination]

        logger.info(
            "Routes found",
            extra={"candidates": len(routes), "instructions": len(selected.instructions), "distance_m": selected.distance_m},
        )
        for listener in list(self._listeners):
            try:
                listener(list(selected.instructions))
            except Exception:
                logger.exception("routes_found listener failed")
        return selected
