from __future__ import annotations

import asyncio

import pytest

from cad.core.enums import ManeuverType, NarratorStatus
from cad.core.exceptions import SpeechUnavailable
from cad.integrations.speech import NullSpeechEngine, SpeechEngine
from cad.models.navigation import NavigationInstruction
from cad.services.narration import ARRIVED_PHRASE, Narrator, build_utterance


class FakeSpeechEngine(SpeechEngine):
    def __init__(self, voice: str | None = "fr-ca-voice") -> None:
        self.voice = voice
        self.started: list[str] = []
        self.finished: list[str] = []
        self.cancelled: list[str] = []
        self.voice_lookups = 0
        self.release = asyncio.Event()

    @property
    def available(self) -> bool:
        return True

    def select_voice(self, locale: str) -> str | None:
        self.voice_lookups += 1
        return self.voice

    async def say(self, text: str, voice: str | None = None) -> None:
        self.started.append(text)
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled.append(text)
            raise
        self.finished.append(text)


def _instruction(maneuver: ManeuverType, meters: float = 3219, text: str = "Tournez à droite", index: int = 0):
    return NavigationInstruction(
        text=text,
        distance_meters=meters,
        duration_seconds=120,
        maneuver_type=maneuver,
        sequence_index=index,
    )


@pytest.mark.parametrize(
    ("maneuver", "expected"),
    [
        (ManeuverType.RIGHT, "Dans 3.2 kilomètres, tournez à droite"),
        (ManeuverType.LEFT, "Dans 3.2 kilomètres, tournez à gauche"),
        (ManeuverType.STRAIGHT, "Continuez tout droit sur 3.2 kilomètres"),
        (ManeuverType.ROUNDABOUT, "Dans 3.2 kilomètres, prenez le rond-point"),
        (ManeuverType.WAYPOINT_REACHED, ARRIVED_PHRASE),
    ],
)
def test_build_utterance_templates(maneuver: ManeuverType, expected: str):
    assert build_utterance(_instruction(maneuver)) == expected


def test_unmapped_type_speaks_text_with_distance():
    assert build_utterance(_instruction(ManeuverType.OTHER, 450, text="Prenez la sortie")) == "Prenez la sortie, 0.5 kilomètres"


@pytest.mark.asyncio
async def test_second_speak_interrupts_the_first():
    engine = FakeSpeechEngine()
    narrator = Narrator(engine)

    narrator.speak(_instruction(ManeuverType.RIGHT, index=0))
    await asyncio.sleep(0)
    second = narrator.speak(_instruction(ManeuverType.LEFT, index=1))
    await asyncio.sleep(0)

    assert engine.cancelled == ["Dans 3.2 kilomètres, tournez à droite"]
    assert narrator.status == NarratorStatus.SPEAKING
    assert narrator.current_utterance == second

    engine.release.set()
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert engine.finished == [second]
    assert narrator.status == NarratorStatus.IDLE
    assert narrator.current_utterance is None


@pytest.mark.asyncio
async def test_stop_silences_current_utterance():
    engine = FakeSpeechEngine()
    narrator = Narrator(engine)

    narrator.speak(_instruction(ManeuverType.RIGHT))
    await asyncio.sleep(0)
    narrator.stop()
    await asyncio.sleep(0)

    assert engine.cancelled == ["Dans 3.2 kilomètres, tournez à droite"]
    assert narrator.status == NarratorStatus.IDLE


@pytest.mark.asyncio
async def test_voice_is_resolved_once():
    engine = FakeSpeechEngine(voice=None)
    narrator = Narrator(engine, locale="fr-CA")

    narrator.speak(_instruction(ManeuverType.RIGHT))
    narrator.speak(_instruction(ManeuverType.LEFT))
    await narrator.aclose()

    assert engine.voice_lookups == 1


@pytest.mark.asyncio
async def test_unavailable_engine_raises():
    narrator = Narrator(NullSpeechEngine())
    with pytest.raises(SpeechUnavailable):
        narrator.speak(_instruction(ManeuverType.RIGHT))
    assert narrator.status == NarratorStatus.IDLE
