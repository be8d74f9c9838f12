from __future__ import annotations

import logging

import httpx
from redis.asyncio import Redis

from cad.core.config import Settings, get_settings
from cad.core.enums import MarkerRole, NavigationPhase, NoticeLevel
from cad.core.exceptions import (
    GeocodeFailure,
    NoMatchError,
    NotFoundError,
    PositionUnavailable,
    RouteFailure,
    SpeechUnavailable,
    ValidationAppError,
)
from cad.integrations.map_view import MapView, MapViewState
from cad.integrations.redis import get_redis
from cad.integrations.speech import SpeechEngine, build_speech_engine
from cad.models.navigation import (
    Coordinate,
    Location,
    NavigationInstruction,
    NavigationSession,
    NavigationState,
)
from cad.services.address_index import MIN_QUERY_LENGTH, AddressIndex
from cad.services.geocoding import Geocoder
from cad.services.instructions import normalize
from cad.services.narration import Narrator
from cad.services.positioning import PositionSource, PositionTracker, build_position_source
from cad.services.routing import RouteEngine, RouteProvider, build_route_provider

logger = logging.getLogger(__name__)


class NavigationService:
    """Destination selection, route session and narration for the GPS panel.

    Phases: no destination -> destination selected -> navigating. Every
    selection or stop bumps a generation counter so a route result that lands
    afterwards is dropped instead of reviving a session.
    """

    def __init__(
        self,
        state: NavigationState,
        address_index: AddressIndex,
        geocoder: Geocoder,
        route_engine: RouteEngine,
        narrator: Narrator,
        tracker: PositionTracker,
        map_view: MapView,
        settings: Settings | None = None,
    ) -> None:
        self.state = state
        self.address_index = address_index
        self.geocoder = geocoder
        self.route_engine = route_engine
        self.narrator = narrator
        self.tracker = tracker
        self.map_view = map_view
        self.settings = settings or get_settings()
        self._generation = 0
        self._speech_notified = False
        self._unsubscribe_position = tracker.subscribe(self._on_position)

    @property
    def generation(self) -> int:
        return self._generation

    async def search(self, query: str) -> list[Location]:
        text = query.strip()
        if len(text) < MIN_QUERY_LENGTH:
            raise NoMatchError("Query is too short", details={"query": text})

        local = self.address_index.search(text)
        if local:
            return local

        try:
            results = await self.geocoder.resolve(text)
        except GeocodeFailure as exc:
            logger.warning("Geocoding failed, falling back to local search", extra={"error": exc.message})
            results = self.address_index.search(text, threshold=self.settings.address_fallback_threshold)

        if not results:
            raise NoMatchError("Aucun résultat pour cette adresse", details={"query": text})
        return results

    def location_by_id(self, location_id: str) -> Location:
        location = self.address_index.get(location_id)
        if location is None:
            raise NotFoundError("Location not found", details={"location_id": location_id})
        return location

    async def select_query(self, query: str) -> Location:
        results = await self.search(query)
        return self.select_destination(results[0])

    def _teardown(self) -> None:
        self.narrator.stop()
        self.map_view.clear_route()
        self.state.clear_session()

    def select_destination(self, location: Location) -> Location:
        self._generation += 1
        self._teardown()
        self.state.destination = location
        self.state.phase = NavigationPhase.DESTINATION_SELECTED

        target = location.coordinate
        self.map_view.set_marker(MarkerRole.DESTINATION, target, location.name)
        position = self.tracker.current()
        if position is not None:
            self.map_view.fit_bounds(position, target)
        else:
            self.map_view.set_view(target)

        logger.info("Destination selected", extra={"location_id": location.id})
        return location

    def clear_destination(self) -> None:
        self._generation += 1
        self._teardown()
        self.state.destination = None
        self.state.phase = NavigationPhase.NO_DESTINATION
        self.map_view.remove_marker(MarkerRole.DESTINATION)
        position = self.tracker.current()
        if position is not None and self.state.auto_center:
            self.map_view.set_view(position)

    async def start_navigation(self) -> NavigationSession | None:
        destination = self.state.destination
        if destination is None:
            raise ValidationAppError("Select a destination before starting navigation")
        origin = self.tracker.current()
        if origin is None:
            raise PositionUnavailable()

        self._generation += 1
        generation = self._generation
        self._teardown()
        self.state.phase = NavigationPhase.DESTINATION_SELECTED

        try:
            route = await self.route_engine.compute_route(origin, destination.coordinate)
        except RouteFailure as exc:
            if generation != self._generation:
                logger.info("Discarding stale route failure", extra={"generation": generation, "error": exc.message})
                return None
            logger.warning("Route computation failed", extra={"error": exc.message, "location_id": destination.id})
            raise

        if generation != self._generation:
            logger.info("Discarding stale route result", extra={"generation": generation})
            return None

        instructions = normalize(route.instructions, total_distance=route.distance_m or None)
        session = NavigationSession(instructions=instructions)
        self.state.session = session
        self.state.phase = NavigationPhase.NAVIGATING

        self.map_view.set_route(route.geometry_latlon)
        self.map_view.fit_bounds(origin, destination.coordinate)
        logger.info("Navigation started", extra={"instructions": len(instructions), "location_id": destination.id})
        self._narrate(session.current)
        return session

    def stop_navigation(self) -> None:
        self._generation += 1
        self._teardown()
        # The destination stays selected; only the session goes away.
        self.state.phase = (
            NavigationPhase.DESTINATION_SELECTED if self.state.destination is not None else NavigationPhase.NO_DESTINATION
        )
        logger.info("Navigation stopped")

    def _require_session(self) -> NavigationSession:
        session = self.state.session
        if session is None or not session.is_active:
            raise ValidationAppError("Navigation is not active")
        return session

    def advance(self) -> NavigationInstruction | None:
        session = self._require_session()
        if session.advance():
            self._narrate(session.current)
        return session.current

    def repeat(self) -> NavigationInstruction | None:
        session = self._require_session()
        self._narrate(session.current)
        return session.current

    def update_position(self, coordinate: Coordinate) -> bool:
        return self.tracker.update(coordinate)

    def set_auto_center(self, enabled: bool) -> None:
        self.tracker.set_auto_center(enabled)

    def _narrate(self, instruction: NavigationInstruction | None) -> None:
        if instruction is None:
            return
        try:
            self.narrator.speak(instruction)
        except SpeechUnavailable as exc:
            if not self._speech_notified:
                self._speech_notified = True
                logger.warning("Speech unavailable, navigating silently")
                self.state.post_notice(NoticeLevel.WARNING, exc.code, "Synthèse vocale indisponible")

    def _on_position(self, coordinate: Coordinate) -> None:
        session = self.state.session
        if session is None or not session.is_active:
            return
        upcoming = session.next
        if upcoming is None or upcoming.location is None:
            return
        if coordinate.distance_to(upcoming.location) <= self.settings.proximity_advance_meters:
            session.advance()
            self._narrate(session.current)

    async def start(self) -> None:
        await self.tracker.poll_once()
        self.tracker.start()

    async def aclose(self) -> None:
        self._unsubscribe_position()
        await self.narrator.aclose()
        await self.tracker.stop()


def build_navigation_service(
    settings: Settings | None = None,
    redis: Redis | None = None,
    *,
    speech_engine: SpeechEngine | None = None,
    route_provider: RouteProvider | None = None,
    position_source: PositionSource | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NavigationService:
    settings = settings or get_settings()
    default = Coordinate(lat=settings.default_lat, lng=settings.default_lng)

    state = NavigationState(auto_center=settings.auto_center)
    map_view = MapViewState(default, settings.map_default_zoom, settings.map_command_log_size)
    address_index = AddressIndex(threshold=settings.address_search_threshold)
    geocoder = Geocoder(address_index, redis=redis, settings=settings, transport=transport)
    route_engine = RouteEngine(route_provider or build_route_provider(settings, transport=transport))
    narrator = Narrator(
        speech_engine or build_speech_engine(settings.speech_enabled, settings.speech_rate),
        locale=settings.narration_locale,
    )
    tracker = PositionTracker(
        position_source or build_position_source(settings, transport=transport),
        state,
        map_view,
        default=default,
        poll_interval_sec=settings.position_poll_interval_sec,
    )
    return NavigationService(state, address_index, geocoder, route_engine, narrator, tracker, map_view, settings)


_navigation_service: NavigationService | None = None


async def get_navigation_service() -> NavigationService:
    global _navigation_service
    if _navigation_service is None:
        _navigation_service = build_navigation_service(get_settings(), redis=await get_redis())
    return _navigation_service


async def close_navigation_service() -> None:
    global _navigation_service
    if _navigation_service is not None:
        await _navigation_service.aclose()
        _navigation_service = None
