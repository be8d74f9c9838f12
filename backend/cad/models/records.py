from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Vehicle:
    license_plate: str
    make_model: str
    year: int | None
    color: str


@dataclass(slots=True)
class AccidentReport:
    id: int
    date_time: datetime
    location: str
    description: str
    weather_conditions: str
    road_conditions: str
    vehicle1: Vehicle
    vehicle2: Vehicle | None
    created_at: datetime


@dataclass(slots=True)
class ViolationReport:
    id: int
    date_time: datetime
    location: str
    license_plate: str
    violation_type: str
    description: str
    fine_amount: float | None
    created_at: datetime


@dataclass(slots=True)
class WantedPerson:
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


@dataclass(slots=True)
class Weather:
    id: int
    location: str
    temperature: float
    conditions: str
    updated_at: datetime
