from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from cad.core.enums import DangerLevel
from cad.schemas.common import BaseReadModel


def _max_vehicle_year() -> int:
    return datetime.now(timezone.utc).year + 1


class VehicleIn(BaseModel):
    license_plate: str = Field(min_length=1, max_length=16)
    make_model: str = Field(min_length=1, max_length=120)
    year: int
    color: str = Field(min_length=1, max_length=40)

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int) -> int:
        if not 1900 <= value <= _max_vehicle_year():
            raise ValueError("invalid vehicle year")
        return value


class OptionalVehicleIn(BaseModel):
    license_plate: str = ""
    make_model: str = ""
    year: int | None = None
    color: str = ""

    @field_validator("year")
    @classmethod
    def check_year(cls, value: int | None) -> int | None:
        if value is not None and not 1900 <= value <= _max_vehicle_year():
            raise ValueError("invalid vehicle year")
        return value


class VehicleRead(BaseReadModel):
    license_plate: str
    make_model: str
    year: int | None
    color: str


class AccidentReportCreate(BaseModel):
    date_time: datetime
    location: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=10)
    weather_conditions: str = Field(min_length=1, max_length=120)
    road_conditions: str = Field(min_length=1, max_length=120)
    vehicle1: VehicleIn
    vehicle2: OptionalVehicleIn | None = None

    @model_validator(mode="after")
    def drop_empty_second_vehicle(self):
        # The form always posts a second vehicle block; it only counts once a plate is entered.
        if self.vehicle2 is not None and not self.vehicle2.license_plate.strip():
            self.vehicle2 = None
        return self


class AccidentReportRead(BaseReadModel):
    id: int
    date_time: datetime
    location: str
    description: str
    weather_conditions: str
    road_conditions: str
    vehicle1: VehicleRead
    vehicle2: VehicleRead | None
    created_at: datetime


class ViolationReportCreate(BaseModel):
    date_time: datetime
    location: str = Field(min_length=1, max_length=255)
    license_plate: str = Field(min_length=1, max_length=16)
    violation_type: str = Field(min_length=1, max_length=120)
    description: str = ""
    fine_amount: float | None = Field(default=None, ge=0)


class ViolationReportRead(BaseReadModel):
    id: int
    date_time: datetime
    location: str
    license_plate: str
    violation_type: str
    description: str
    fine_amount: float | None
    created_at: datetime


class WantedPersonCreate(BaseModel):
    model_config = {"use_enum_values": True}

    person_id: str = Field(min_length=1, max_length=32)
    name: str = Field(min_length=1, max_length=120)
    age: int = Field(ge=0, le=130)
    height: int = Field(ge=0, le=260)
    weight: int = Field(ge=0, le=400)
    last_location: str = Field(min_length=1, max_length=255)
    last_seen: datetime
    warrants: str = Field(min_length=1)
    danger_level: DangerLevel


class WantedPersonRead(BaseReadModel):
    id: int
    person_id: str
    name: str
    age: int
    height: int
    weight: int
    last_location: str
    last_seen: datetime
    warrants: str
    danger_level: str
    created_at: datetime


class WeatherUpdate(BaseModel):
    location: str = Field(min_length=1, max_length=120)
    temperature: float = Field(ge=-90, le=60)
    conditions: str = Field(min_length=1, max_length=120)


class WeatherRead(BaseReadModel):
    id: int
    location: str
    temperature: float
    conditions: str
    updated_at: datetime
