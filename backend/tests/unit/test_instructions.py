from __future__ import annotations

import pytest

from cad.core.enums import ManeuverType
from cad.models.navigation import RawInstruction
from cad.services.instructions import (
    convert_units,
    format_distance,
    normalize,
    parse_maneuver_type,
    sanitize_distance,
    translate,
)


def test_miles_in_text_become_kilometers():
    result = normalize([RawInstruction(text="Continue for 2 miles", distance=3219, time=180, type="Straight")])
    assert "3.2 kilomètres" in result[0].text
    assert "mile" not in result[0].text


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("2 miles", "3.2 kilomètres"),
        ("1 mile", "1.6 kilomètres"),
        ("0.5 mi", "0.8 kilomètres"),
        ("500 feet", "152 mètres"),
        ("100 yards", "91 mètres"),
        ("10 ft", "3 mètres"),
        ("1,200 feet", "366 mètres"),
        ("2,640 yards", "2414 mètres"),
        ("1,500.5 feet", "457 mètres"),
    ],
)
def test_convert_units(text: str, expected: str):
    assert convert_units(text) == expected


def test_thousands_separator_inside_sentence():
    assert convert_units("In 1,200 feet turn right") == "In 366 mètres turn right"


def test_translation_preserves_leading_capital_and_street_names():
    assert translate("Turn right onto Lundy's Lane") == "Tournez à droite sur Lundy's Lane"
    assert translate("then turn left") == "then tournez à gauche"
    assert translate("Continue straight") == "Continuez tout droit"


def test_translation_only_matches_whole_words():
    assert translate("Continued Road") == "Continued Road"


def test_distance_phrase_is_appended_when_text_has_none():
    result = normalize([RawInstruction(text="Turn right", distance=3219, time=200, type="Right")])
    assert result[0].text == "Tournez à droite (3.2 kilomètres)"
    assert result[0].distance_text == "3.2 kilomètres"
    assert result[0].maneuver_type == ManeuverType.RIGHT


def test_zero_distance_instruction_gets_no_distance_phrase():
    result = normalize([RawInstruction(text="You have arrived at your destination", distance=0, time=0, type="arrive")])
    assert result[0].text == "Vous êtes arrivé à destination"
    assert result[0].maneuver_type == ManeuverType.WAYPOINT_REACHED


def test_sequence_indices_are_contiguous():
    raw = [RawInstruction(text=f"Step {i}", distance=100 * (i + 1), time=10, type="Straight") for i in range(5)]
    assert [item.sequence_index for item in normalize(raw)] == [0, 1, 2, 3, 4]


def test_normalize_is_idempotent_on_type_and_index():
    raw = [
        RawInstruction(text="Head on Montrose Road", distance=820, time=70, type="Head"),
        RawInstruction(text="Turn right onto Lundy's Lane", distance=3100, time=260, type="Right"),
        RawInstruction(text="Enter the roundabout", distance=2200, time=210, type="Roundabout"),
        RawInstruction(text="Somewhere", distance=50, time=5, type="Fork"),
    ]
    once = normalize(raw, total_distance=6170)
    twice = normalize([item.as_raw() for item in once], total_distance=6170)

    assert [(item.maneuver_type, item.sequence_index) for item in once] == [
        (item.maneuver_type, item.sequence_index) for item in twice
    ]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("Right", ManeuverType.RIGHT),
        ("SharpLeft", ManeuverType.SHARP_LEFT),
        ("Head", ManeuverType.STRAIGHT),
        ("DestinationReached", ManeuverType.WAYPOINT_REACHED),
        ("rotary", ManeuverType.ROUNDABOUT),
        ("Fork", ManeuverType.OTHER),
        (ManeuverType.LEFT, ManeuverType.LEFT),
    ],
)
def test_parse_maneuver_type(value, expected):
    assert parse_maneuver_type(value) == expected


def test_small_distance_on_long_route_is_read_as_miles():
    assert sanitize_distance(2, total_distance=5000) == 3218
    assert sanitize_distance(2, total_distance=500) == 2
    assert sanitize_distance(150, total_distance=5000) == 150
    assert sanitize_distance(-5, total_distance=5000) == 0.0


@pytest.mark.parametrize(
    ("meters", "expected"),
    [(3219, "3.2 kilomètres"), (1000, "1.0 kilomètres"), (999.5, "1000 mètres"), (42.4, "42 mètres")],
)
def test_format_distance(meters: float, expected: str):
    assert format_distance(meters) == expected
