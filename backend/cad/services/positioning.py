from __future__ import annotations

import abc
import asyncio
import contextlib
import logging
from collections.abc import Callable

import httpx

from cad.core.config import Settings
from cad.core.enums import MarkerRole, NoticeLevel
from cad.core.exceptions import PositionUnavailable
from cad.integrations.map_view import MapView
from cad.models.navigation import Coordinate, NavigationState

logger = logging.getLogger(__name__)

PositionListener = Callable[[Coordinate], None]


class PositionSource(abc.ABC):
    @abc.abstractmethod
    async def get_current_position(self) -> Coordinate:
        raise NotImplementedError


class FixedPositionSource(PositionSource):
    def __init__(self, coordinate: Coordinate) -> None:
        self.coordinate = coordinate

    async def get_current_position(self) -> Coordinate:
        return self.coordinate


class HttpPositionSource(PositionSource):
    """Reads the operator position from a JSON endpoint ({lat, lng} or {lat, lon})."""

    def __init__(
        self,
        url: str,
        *,
        max_age_sec: float = 5.0,
        high_accuracy: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.max_age_sec = max_age_sec
        self.high_accuracy = high_accuracy
        self.transport = transport

    async def get_current_position(self) -> Coordinate:
        params = {
            "high_accuracy": str(self.high_accuracy).lower(),
            "maximum_age": int(self.max_age_sec * 1000),
        }
        try:
            async with httpx.AsyncClient(timeout=self.max_age_sec, transport=self.transport) as client:
                response = await client.get(self.url, params=params)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code in {401, 403}:
                raise PositionUnavailable("Position access denied") from exc
            raise PositionUnavailable(f"Position source error: {exc.response.status_code}") from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise PositionUnavailable(f"Position source unreachable: {exc}") from exc

        if not isinstance(payload, dict):
            raise PositionUnavailable("Position source returned an invalid payload")
        try:
            lat = float(payload["lat"])
            lng = float(payload["lng"] if "lng" in payload else payload["lon"])
        except (KeyError, TypeError, ValueError) as exc:
            raise PositionUnavailable("Position source returned an invalid payload") from exc
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise PositionUnavailable("Position source returned out-of-range coordinates")
        return Coordinate(lat=lat, lng=lng)


def build_position_source(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> PositionSource:
    default = Coordinate(lat=settings.default_lat, lng=settings.default_lng)
    if settings.position_mode == "live" and settings.position_source_url:
        return HttpPositionSource(
            settings.position_source_url,
            max_age_sec=settings.position_poll_interval_sec,
            high_accuracy=settings.position_high_accuracy,
            transport=transport,
        )
    return FixedPositionSource(default)


class PositionTracker:
    def __init__(
        self,
        source: PositionSource,
        state: NavigationState,
        map_view: MapView,
        *,
        default: Coordinate,
        poll_interval_sec: float = 5.0,
    ) -> None:
        self.source = source
        self.state = state
        self.map_view = map_view
        self.default = default
        self.poll_interval_sec = poll_interval_sec
        self._listeners: list[PositionListener] = []
        self._task: asyncio.Task | None = None
        self._fallback_notified = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def auto_center(self) -> bool:
        return self.state.auto_center

    def set_auto_center(self, enabled: bool) -> None:
        self.state.auto_center = enabled
        if enabled and self.state.position is not None:
            self.map_view.set_view(self.state.position)

    def current(self) -> Coordinate | None:
        return self.state.position

    def subscribe(self, listener: PositionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, coordinate: Coordinate) -> bool:
        """Record a new position; identical coordinates are ignored."""
        if coordinate == self.state.position:
            return False

        self.state.position = coordinate
        self.map_view.set_marker(MarkerRole.USER, coordinate)
        if self.state.auto_center:
            self.map_view.set_view(coordinate)

        for listener in list(self._listeners):
            try:
                listener(coordinate)
            except Exception:
                logger.exception("Position listener failed")
        return True

    async def poll_once(self) -> Coordinate:
        try:
            coordinate = await self.source.get_current_position()
        except PositionUnavailable as exc:
            last_known = self.state.position
            if not self._fallback_notified:
                self._fallback_notified = True
                if last_known is None:
                    logger.warning("Position unavailable, using default location", extra={"error": exc.message})
                    message = "Position indisponible, utilisation de l'emplacement par défaut"
                else:
                    logger.warning("Position unavailable, keeping last known fix", extra={"error": exc.message})
                    message = "Position indisponible, dernière position conservée"
                self.state.post_notice(NoticeLevel.WARNING, exc.code, message)
            else:
                logger.debug("Position still unavailable", extra={"error": exc.message})
            if last_known is not None:
                return last_known
            coordinate = self.default
        self.update(coordinate)
        return coordinate

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Position poll failed")
            await asyncio.sleep(self.poll_interval_sec)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="position-tracker")
        logger.info("Position tracker started", extra={"source": self.source.__class__.__name__})

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Position tracker stopped")
