from __future__ import annotations

import asyncio
import contextlib
import logging

from cad.core.enums import ManeuverType, NarratorStatus
from cad.core.exceptions import SpeechUnavailable
from cad.integrations.speech import SpeechEngine
from cad.models.navigation import NavigationInstruction

logger = logging.getLogger(__name__)

ARRIVED_PHRASE = "Vous êtes arrivé à destination"

UTTERANCE_TEMPLATES: dict[ManeuverType, str] = {
    ManeuverType.STRAIGHT: "Continuez tout droit sur {distance} kilomètres",
    ManeuverType.SLIGHT_RIGHT: "Dans {distance} kilomètres, tournez légèrement à droite",
    ManeuverType.RIGHT: "Dans {distance} kilomètres, tournez à droite",
    ManeuverType.SHARP_RIGHT: "Dans {distance} kilomètres, tournez fortement à droite",
    ManeuverType.SLIGHT_LEFT: "Dans {distance} kilomètres, tournez légèrement à gauche",
    ManeuverType.LEFT: "Dans {distance} kilomètres, tournez à gauche",
    ManeuverType.SHARP_LEFT: "Dans {distance} kilomètres, tournez fortement à gauche",
    ManeuverType.ROUNDABOUT: "Dans {distance} kilomètres, prenez le rond-point",
    ManeuverType.WAYPOINT_REACHED: ARRIVED_PHRASE,
}


def build_utterance(instruction: NavigationInstruction) -> str:
    if instruction.maneuver_type == ManeuverType.WAYPOINT_REACHED:
        return ARRIVED_PHRASE
    distance = f"{instruction.distance_meters / 1000:.1f}"
    template = UTTERANCE_TEMPLATES.get(instruction.maneuver_type)
    if template is None:
        return f"{instruction.text}, {distance} kilomètres"
    return template.format(distance=distance)


class Narrator:
    """Speaks one instruction at a time; a new call always interrupts the last."""

    def __init__(self, engine: SpeechEngine, locale: str = "fr-CA") -> None:
        self.engine = engine
        self.locale = locale
        self.status = NarratorStatus.IDLE
        self.current_utterance: str | None = None
        self._task: asyncio.Task | None = None
        self._voice: str | None = None
        self._voice_resolved = False

    @property
    def available(self) -> bool:
        return self.engine.available

    def _voice_for_locale(self) -> str | None:
        if not self._voice_resolved:
            self._voice = self.engine.select_voice(self.locale)
            self._voice_resolved = True
            if self._voice is None:
                logger.info("No voice for locale, using platform default", extra={"locale": self.locale})
        return self._voice

    def _cancel_current(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
        self.status = NarratorStatus.IDLE
        self.current_utterance = None

    async def _run(self, utterance: str, voice: str | None) -> None:
        try:
            await self.engine.say(utterance, voice)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Speech output failed")
        finally:
            if self._task is asyncio.current_task():
                self._task = None
                self.status = NarratorStatus.IDLE
                self.current_utterance = None

    def speak(self, instruction: NavigationInstruction) -> str:
        if not self.engine.available:
            raise SpeechUnavailable()

        self._cancel_current()
        utterance = build_utterance(instruction)
        voice = self._voice_for_locale()
        self.current_utterance = utterance
        self.status = NarratorStatus.SPEAKING
        self._task = asyncio.create_task(self._run(utterance, voice), name="narration")
        logger.debug("Speaking instruction", extra={"sequence_index": instruction.sequence_index})
        return utterance

    def stop(self) -> None:
        self._cancel_current()

    async def aclose(self) -> None:
        task = self._task
        self._cancel_current()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
