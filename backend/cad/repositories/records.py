from __future__ import annotations

import itertools
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from cad.models import AccidentReport, Vehicle, ViolationReport, WantedPerson, Weather


def _now() -> datetime:
    return datetime.now(timezone.utc)


SEED_WANTED_PERSONS: tuple[dict[str, Any], ...] = (
    {
        "person_id": "TRE-78542",
        "name": "Marc Tremblay",
        "age": 34,
        "height": 183,
        "weight": 89,
        "last_location": "Niagara Falls, Ontario",
        "last_seen": datetime(2023, 4, 12, tzinfo=timezone.utc),
        "warrants": "Vol à main armée, Agression avec arme",
        "danger_level": "Dangereux",
    },
    {
        "person_id": "LAN-45123",
        "name": "Sophie Langlois",
        "age": 29,
        "height": 168,
        "weight": 62,
        "last_location": "Toronto, Ontario",
        "last_seen": datetime(2023, 5, 17, tzinfo=timezone.utc),
        "warrants": "Fraude, Faux et usage de faux",
        "danger_level": "Surveillance",
    },
)

SEED_WEATHER: tuple[dict[str, Any], ...] = (
    {"location": "Toronto, ON", "temperature": 3, "conditions": "Nuageux"},
    {"location": "Niagara Falls, ON", "temperature": 2, "conditions": "Partiellement nuageux"},
)


class MemoryRecordStore:
    """Process-local store for patrol records; everything is lost on restart."""

    def __init__(self, seed: bool = True) -> None:
        self._accidents: dict[int, AccidentReport] = {}
        self._violations: dict[int, ViolationReport] = {}
        self._wanted: dict[int, WantedPerson] = {}
        self._weather: dict[int, Weather] = {}

        self._accident_ids = itertools.count(1)
        self._violation_ids = itertools.count(1)
        self._wanted_ids = itertools.count(1)
        self._weather_ids = itertools.count(1)

        if seed:
            for person in SEED_WANTED_PERSONS:
                self._insert_wanted_person(dict(person))
            for weather in SEED_WEATHER:
                self._upsert_weather(dict(weather))

    # Accident reports

    async def create_accident_report(self, payload: dict[str, Any]) -> AccidentReport:
        vehicle2 = payload.get("vehicle2")
        report = AccidentReport(
            id=next(self._accident_ids),
            date_time=payload["date_time"],
            location=payload["location"],
            description=payload["description"],
            weather_conditions=payload["weather_conditions"],
            road_conditions=payload["road_conditions"],
            vehicle1=Vehicle(**payload["vehicle1"]),
            vehicle2=Vehicle(**vehicle2) if vehicle2 else None,
            created_at=_now(),
        )
        self._accidents[report.id] = report
        return report

    async def list_accident_reports(self) -> list[AccidentReport]:
        return list(self._accidents.values())

    async def get_accident_report(self, report_id: int) -> AccidentReport | None:
        return self._accidents.get(report_id)

    # Violation reports

    async def create_violation_report(self, payload: dict[str, Any]) -> ViolationReport:
        report = ViolationReport(id=next(self._violation_ids), created_at=_now(), **payload)
        self._violations[report.id] = report
        return report

    async def list_violation_reports(self) -> list[ViolationReport]:
        return list(self._violations.values())

    async def get_violation_report(self, report_id: int) -> ViolationReport | None:
        return self._violations.get(report_id)

    # Wanted persons

    def _insert_wanted_person(self, payload: dict[str, Any]) -> WantedPerson:
        person = WantedPerson(id=next(self._wanted_ids), created_at=_now(), **payload)
        self._wanted[person.id] = person
        return person

    async def create_wanted_person(self, payload: dict[str, Any]) -> WantedPerson:
        return self._insert_wanted_person(payload)

    async def list_wanted_persons(self) -> list[WantedPerson]:
        return list(self._wanted.values())

    async def get_wanted_person(self, record_id: int) -> WantedPerson | None:
        return self._wanted.get(record_id)

    async def get_wanted_person_by_person_id(self, person_id: str) -> WantedPerson | None:
        return next((person for person in self._wanted.values() if person.person_id == person_id), None)

    async def search_wanted_persons(self, query: str) -> list[WantedPerson]:
        needle = query.strip().lower()
        return [
            person
            for person in self._wanted.values()
            if needle in person.name.lower()
            or needle in person.person_id.lower()
            or needle in person.warrants.lower()
            or needle in person.last_location.lower()
        ]

    # Weather

    def _find_weather(self, location: str) -> Weather | None:
        return next((item for item in self._weather.values() if item.location == location), None)

    def _upsert_weather(self, payload: dict[str, Any]) -> Weather:
        existing = self._find_weather(payload["location"])
        if existing is not None:
            updated = replace(existing, **payload, updated_at=_now())
            self._weather[existing.id] = updated
            return updated
        weather = Weather(id=next(self._weather_ids), updated_at=_now(), **payload)
        self._weather[weather.id] = weather
        return weather

    async def get_weather(self, location: str) -> Weather | None:
        return self._find_weather(location)

    async def update_weather(self, payload: dict[str, Any]) -> Weather:
        return self._upsert_weather(payload)


_record_store: MemoryRecordStore | None = None


def get_record_store() -> MemoryRecordStore:
    global _record_store
    if _record_store is None:
        _record_store = MemoryRecordStore()
    return _record_store
