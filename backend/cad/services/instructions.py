from __future__ import annotations

import math
import re
from collections.abc import Iterable

from cad.core.enums import ManeuverType
from cad.models.navigation import NavigationInstruction, RawInstruction

KM_PER_MILE = 1.60934
M_PER_FOOT = 0.3048
M_PER_YARD = 0.9144

# Distances that small on a long route were reported in miles.
MILES_SUSPECT_BELOW = 100
MILES_SUSPECT_ROUTE_OVER = 1000
METERS_PER_SUSPECT_MILE = 1609

PHRASE_TRANSLATIONS: dict[str, str] = {
    "You have arrived at your destination": "Vous êtes arrivé à destination",
    "You have reached your destination": "Vous êtes arrivé à destination",
    "Destination reached": "Destination atteinte",
    "Waypoint reached": "Point de passage atteint",
    "Enter the roundabout": "Entrez dans le rond-point",
    "Exit the roundabout": "Sortez du rond-point",
    "and take exit": "et prenez la sortie",
    "Take the exit": "Prenez la sortie",
    "Continue straight": "Continuez tout droit",
    "Go straight": "Allez tout droit",
    "Head straight": "Allez tout droit",
    "Head north": "Dirigez-vous vers le nord",
    "Head south": "Dirigez-vous vers le sud",
    "Head east": "Dirigez-vous vers l'est",
    "Head west": "Dirigez-vous vers l'ouest",
    "Head on": "Dirigez-vous sur",
    "Keep right": "Serrez à droite",
    "Keep left": "Serrez à gauche",
    "Turn right": "Tournez à droite",
    "Turn left": "Tournez à gauche",
    "Slight right": "Légèrement à droite",
    "Slight left": "Légèrement à gauche",
    "Sharp right": "Virage serré à droite",
    "Sharp left": "Virage serré à gauche",
    "Make a U-turn": "Faites demi-tour",
    "Continue": "Continuez",
    "onto": "sur",
    "toward": "vers",
}

_TYPE_ALIASES: dict[str, ManeuverType] = {
    "head": ManeuverType.STRAIGHT,
    "continue": ManeuverType.STRAIGHT,
    "newname": ManeuverType.STRAIGHT,
    "merge": ManeuverType.STRAIGHT,
    "destinationreached": ManeuverType.WAYPOINT_REACHED,
    "arrive": ManeuverType.WAYPOINT_REACHED,
    "rotary": ManeuverType.ROUNDABOUT,
}

_UNIT_PATTERN = re.compile(
    # English text: commas group thousands, only "." is a decimal mark.
    r"(?<![\d.,])(?P<value>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)\s*"
    r"(?P<unit>miles?|mi|feet|foot|ft|yards?|yds?)\b",
    flags=re.IGNORECASE,
)
_METRIC_PATTERN = re.compile(r"\d+(?:\.\d+)?\s*(?:kilomètres?|mètres?)", flags=re.IGNORECASE)
_PHRASE_PATTERN = re.compile(
    "|".join(
        rf"(?<!\w){re.escape(phrase)}(?!\w)"
        for phrase in sorted(PHRASE_TRANSLATIONS, key=len, reverse=True)
    ),
    flags=re.IGNORECASE,
)
_PHRASE_LOOKUP = {phrase.lower(): target for phrase, target in PHRASE_TRANSLATIONS.items()}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_kilometers(kilometers: float) -> str:
    return f"{kilometers:.1f} kilomètres"


def format_meters(meters: float) -> str:
    return f"{_round_half_up(meters)} mètres"


def format_distance(meters: float) -> str:
    if meters >= 1000:
        return format_kilometers(meters / 1000)
    return format_meters(meters)


def _convert_unit(match: re.Match) -> str:
    value = float(match.group("value").replace(",", ""))
    unit = match.group("unit").lower()
    if unit.startswith("mi"):
        return format_kilometers(value * KM_PER_MILE)
    if unit.startswith("f"):
        return format_meters(value * M_PER_FOOT)
    return format_meters(value * M_PER_YARD)


def convert_units(text: str) -> str:
    """Rewrite imperial distances inside free text as metric."""
    return _UNIT_PATTERN.sub(_convert_unit, text)


def _translate_phrase(match: re.Match) -> str:
    source = match.group(0)
    target = _PHRASE_LOOKUP[source.lower()]
    if source[0].isupper():
        return target[0].upper() + target[1:]
    return target[0].lower() + target[1:]


def translate(text: str) -> str:
    return _PHRASE_PATTERN.sub(_translate_phrase, text)


def parse_maneuver_type(value: str | ManeuverType) -> ManeuverType:
    if isinstance(value, ManeuverType):
        return value
    try:
        return ManeuverType(value)
    except ValueError:
        pass
    return _TYPE_ALIASES.get(str(value).replace("_", "").replace(" ", "").lower(), ManeuverType.OTHER)


def sanitize_distance(distance: float, total_distance: float) -> float:
    if distance < 0:
        return 0.0
    if distance < MILES_SUSPECT_BELOW and total_distance > MILES_SUSPECT_ROUTE_OVER:
        return distance * METERS_PER_SUSPECT_MILE
    return distance


def normalize(raw: Iterable[RawInstruction], total_distance: float | None = None) -> list[NavigationInstruction]:
    items = list(raw)
    total = total_distance if total_distance is not None else sum(max(item.distance, 0.0) for item in items)

    normalized: list[NavigationInstruction] = []
    for index, item in enumerate(items):
        distance = sanitize_distance(item.distance, total)
        distance_text = format_distance(distance)
        text = translate(convert_units(item.text.strip()))
        if distance > 0 and not _METRIC_PATTERN.search(text):
            text = f"{text} ({distance_text})"
        normalized.append(
            NavigationInstruction(
                text=text,
                distance_meters=distance,
                duration_seconds=max(item.time, 0.0),
                maneuver_type=parse_maneuver_type(item.type),
                sequence_index=index,
                distance_text=distance_text,
                location=item.location,
            )
        )
    return normalized
