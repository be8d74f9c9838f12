from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from cad.core.enums import MarkerRole
from cad.models.navigation import Coordinate


class MapView(Protocol):
    def set_view(self, center: Coordinate, zoom: int | None = None) -> None: ...

    def set_marker(self, role: MarkerRole, coordinate: Coordinate, label: str | None = None) -> None: ...

    def remove_marker(self, role: MarkerRole) -> None: ...

    def set_route(self, points: list[Coordinate]) -> None: ...

    def clear_route(self) -> None: ...

    def fit_bounds(self, a: Coordinate, b: Coordinate) -> None: ...

    def snapshot(self) -> dict[str, Any]: ...


@dataclass(slots=True)
class MapCommand:
    name: str
    args: dict[str, Any]
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class Marker:
    role: MarkerRole
    coordinate: Coordinate
    label: str | None = None


class MapViewState:
    """Keeps the camera, markers and route overlay the browser map should show.

    The frontend polls the snapshot and replays it onto its Leaflet map; the
    command log lets it animate changes instead of redrawing everything.
    """

    def __init__(self, default_center: Coordinate, default_zoom: int = 15, log_size: int = 200) -> None:
        self.center = default_center
        self.zoom = default_zoom
        self.default_zoom = default_zoom
        self.bounds: tuple[Coordinate, Coordinate] | None = None
        self.markers: dict[MarkerRole, Marker] = {}
        self.route: list[Coordinate] | None = None
        self.commands: deque[MapCommand] = deque(maxlen=log_size)

    def _record(self, name: str, **args: Any) -> None:
        self.commands.append(MapCommand(name=name, args=args))

    def set_view(self, center: Coordinate, zoom: int | None = None) -> None:
        self.center = center
        self.zoom = zoom if zoom is not None else self.zoom
        self.bounds = None
        self._record("set_view", lat=center.lat, lng=center.lng, zoom=self.zoom)

    def set_marker(self, role: MarkerRole, coordinate: Coordinate, label: str | None = None) -> None:
        self.markers[role] = Marker(role=role, coordinate=coordinate, label=label)
        self._record("set_marker", role=role.value, lat=coordinate.lat, lng=coordinate.lng, label=label)

    def remove_marker(self, role: MarkerRole) -> None:
        if self.markers.pop(role, None) is not None:
            self._record("remove_marker", role=role.value)

    def set_route(self, points: list[Coordinate]) -> None:
        # Single overlay: a new line always replaces the old one.
        self.route = list(points)
        self._record("set_route", points=len(self.route))

    def clear_route(self) -> None:
        if self.route is not None:
            self.route = None
            self._record("clear_route")

    def fit_bounds(self, a: Coordinate, b: Coordinate) -> None:
        south_west = Coordinate(lat=min(a.lat, b.lat), lng=min(a.lng, b.lng))
        north_east = Coordinate(lat=max(a.lat, b.lat), lng=max(a.lng, b.lng))
        self.bounds = (south_west, north_east)
        self.center = Coordinate(lat=(a.lat + b.lat) / 2, lng=(a.lng + b.lng) / 2)
        self._record(
            "fit_bounds",
            south_west=[south_west.lat, south_west.lng],
            north_east=[north_east.lat, north_east.lng],
        )

    def count(self, name: str) -> int:
        return sum(1 for command in self.commands if command.name == name)

    def snapshot(self) -> dict[str, Any]:
        return {
            "center": {"lat": self.center.lat, "lng": self.center.lng},
            "zoom": self.zoom,
            "bounds": [[corner.lat, corner.lng] for corner in self.bounds] if self.bounds else None,
            "markers": [
                {
                    "role": marker.role.value,
                    "lat": marker.coordinate.lat,
                    "lng": marker.coordinate.lng,
                    "label": marker.label,
                }
                for marker in self.markers.values()
            ],
            "route": [[point.lat, point.lng] for point in self.route] if self.route else None,
            "commands": [
                {"name": command.name, "args": command.args, "issued_at": command.issued_at.isoformat()}
                for command in self.commands
            ],
        }
