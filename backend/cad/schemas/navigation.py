from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from cad.core.enums import ManeuverType, NarratorStatus, NavigationPhase, NoticeLevel
from cad.models.navigation import Coordinate, Location
from cad.schemas.common import BaseReadModel


class CoordinateSchema(BaseReadModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_coordinate(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class LocationSchema(BaseReadModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str | None = None

    def to_location(self) -> Location:
        return Location(id=self.id, name=self.name, lat=self.lat, lng=self.lng, address=self.address)


class DestinationRequest(BaseModel):
    location_id: str | None = None
    query: str | None = None
    location: LocationSchema | None = None

    @model_validator(mode="after")
    def exactly_one_target(self):
        provided = [value for value in (self.location_id, self.query, self.location) if value is not None]
        if len(provided) != 1:
            raise ValueError("provide exactly one of location_id, query or location")
        return self


class AutoCenterRequest(BaseModel):
    enabled: bool


class InstructionSchema(BaseReadModel):
    text: str
    distance_meters: float
    duration_seconds: float
    maneuver_type: ManeuverType
    sequence_index: int
    distance_text: str


class SessionSchema(BaseReadModel):
    is_active: bool
    cursor_index: int
    instructions: list[InstructionSchema]


class NoticeSchema(BaseReadModel):
    level: NoticeLevel
    code: str
    message: str
    created_at: datetime


class NarrationSchema(BaseModel):
    status: NarratorStatus
    utterance: str | None = None


class NavigationStateResponse(BaseModel):
    phase: NavigationPhase
    destination: LocationSchema | None = None
    position: CoordinateSchema | None = None
    auto_center: bool
    session: SessionSchema | None = None
    current_instruction: InstructionSchema | None = None
    narration: NarrationSchema
    notices: list[NoticeSchema]


class PositionUpdateResponse(BaseModel):
    recorded: bool
    position: CoordinateSchema


def dump_optional(schema: type[BaseReadModel], value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    return schema.model_validate(value).model_dump(mode="json")
