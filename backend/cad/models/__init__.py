from cad.models.navigation import (
    Coordinate,
    Location,
    NavigationInstruction,
    NavigationSession,
    NavigationState,
    Notice,
    RawInstruction,
)
from cad.models.records import AccidentReport, Vehicle, ViolationReport, WantedPerson, Weather

__all__ = [
    "AccidentReport",
    "Coordinate",
    "Location",
    "NavigationInstruction",
    "NavigationSession",
    "NavigationState",
    "Notice",
    "RawInstruction",
    "Vehicle",
    "ViolationReport",
    "WantedPerson",
    "Weather",
]
