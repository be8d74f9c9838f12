from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone

from cad.core.enums import ManeuverType, NavigationPhase, NoticeLevel


EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float

    def distance_to(self, other: Coordinate) -> float:
        """Great-circle distance in metres."""
        lat1 = math.radians(self.lat)
        lat2 = math.radians(other.lat)
        d_lat = lat2 - lat1
        d_lng = math.radians(other.lng - self.lng)

        x = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
        return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(x))


@dataclass(frozen=True, slots=True)
class Location:
    id: str
    name: str
    lat: float
    lng: float
    address: str | None = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


@dataclass(frozen=True, slots=True)
class RawInstruction:
    text: str
    distance: float
    time: float
    type: str
    location: Coordinate | None = None


@dataclass(frozen=True, slots=True)
class NavigationInstruction:
    text: str
    distance_meters: float
    duration_seconds: float
    maneuver_type: ManeuverType
    sequence_index: int
    distance_text: str = ""
    location: Coordinate | None = None

    def as_raw(self) -> RawInstruction:
        return RawInstruction(
            text=self.text,
            distance=self.distance_meters,
            time=self.duration_seconds,
            type=self.maneuver_type.value,
            location=self.location,
        )


@dataclass(slots=True)
class NavigationSession:
    instructions: list[NavigationInstruction]
    cursor_index: int = 0
    is_active: bool = True

    @property
    def current(self) -> NavigationInstruction | None:
        if not self.is_active or not self.instructions:
            return None
        return self.instructions[self.cursor_index]

    @property
    def next(self) -> NavigationInstruction | None:
        if not self.is_active or self.cursor_index + 1 >= len(self.instructions):
            return None
        return self.instructions[self.cursor_index + 1]

    def advance(self) -> bool:
        if self.next is None:
            return False
        self.cursor_index += 1
        return True

    def close(self) -> None:
        self.is_active = False
        self.instructions = []
        self.cursor_index = 0


@dataclass(frozen=True, slots=True)
class Notice:
    level: NoticeLevel
    code: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class NavigationState:
    """Navigation state shared between panels.

    The state is owned by whoever builds the service graph and handed to the
    navigation components explicitly; nothing reaches for it globally.
    """

    phase: NavigationPhase = NavigationPhase.NO_DESTINATION
    destination: Location | None = None
    session: NavigationSession | None = None
    position: Coordinate | None = None
    auto_center: bool = True
    notices: list[Notice] = field(default_factory=list)
    max_notices: int = 50

    @property
    def is_navigating(self) -> bool:
        return self.session is not None and self.session.is_active

    @property
    def instructions(self) -> list[NavigationInstruction]:
        if self.session is None:
            return []
        return self.session.instructions

    def post_notice(self, level: NoticeLevel, code: str, message: str) -> Notice:
        notice = Notice(level=level, code=code, message=message)
        self.notices.append(notice)
        if len(self.notices) > self.max_notices:
            del self.notices[: len(self.notices) - self.max_notices]
        return notice

    def clear_session(self) -> None:
        if self.session is not None:
            self.session.close()
        self.session = None
