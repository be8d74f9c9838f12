from __future__ import annotations

import abc
import asyncio
import logging
import sys

import pyttsx3

logger = logging.getLogger(__name__)

# Each utterance runs in its own interpreter so that killing the process
# silences it immediately; pyttsx3 has no reliable cross-thread stop.
_SAY_SCRIPT = (
    "import sys\n"
    "import pyttsx3\n"
    "engine = pyttsx3.init()\n"
    "engine.setProperty('rate', int(sys.argv[1]))\n"
    "if sys.argv[2]:\n"
    "    engine.setProperty('voice', sys.argv[2])\n"
    "engine.say(sys.argv[3])\n"
    "engine.runAndWait()\n"
)


class SpeechEngine(abc.ABC):
    @property
    @abc.abstractmethod
    def available(self) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def select_voice(self, locale: str) -> str | None:
        """Voice id for the locale, or None for the platform default."""
        raise NotImplementedError

    @abc.abstractmethod
    async def say(self, text: str, voice: str | None = None) -> None:
        """Resolve when the utterance finishes; cancelling interrupts it."""
        raise NotImplementedError


class NullSpeechEngine(SpeechEngine):
    @property
    def available(self) -> bool:
        return False

    def select_voice(self, locale: str) -> str | None:
        return None

    async def say(self, text: str, voice: str | None = None) -> None:
        return None


def _voice_languages(voice) -> list[str]:
    languages: list[str] = []
    for item in getattr(voice, "languages", None) or []:
        if isinstance(item, bytes):
            item = item.decode("utf-8", errors="ignore")
        code = "".join(char for char in str(item) if char.isprintable()).strip().lower().replace("_", "-")
        if code:
            languages.append(code)
    return languages


class Pyttsx3SpeechEngine(SpeechEngine):
    def __init__(self, rate: int = 160) -> None:
        self.rate = rate
        self._available: bool | None = None
        self._voices: list[tuple[str, list[str], str]] = []

    def _probe(self) -> None:
        try:
            engine = pyttsx3.init()
            voices = engine.getProperty("voices") or []
            self._voices = [
                (str(voice.id), _voice_languages(voice), str(getattr(voice, "name", "") or "").lower())
                for voice in voices
            ]
            engine.stop()
            self._available = True
        except Exception as exc:
            logger.warning("Speech driver unavailable", extra={"error": str(exc)})
            self._available = False

    @property
    def available(self) -> bool:
        if self._available is None:
            self._probe()
        return bool(self._available)

    def select_voice(self, locale: str) -> str | None:
        if not self.available:
            return None
        wanted = locale.lower().replace("_", "-")
        prefix = wanted.split("-")[0]
        for voice_id, languages, _ in self._voices:
            if wanted in languages:
                return voice_id
        for voice_id, languages, name in self._voices:
            if any(code.split("-")[0] == prefix for code in languages):
                return voice_id
            if prefix == "fr" and ("french" in name or "french" in voice_id.lower()):
                return voice_id
        return None

    async def say(self, text: str, voice: str | None = None) -> None:
        process = await asyncio.create_subprocess_exec(
            sys.executable,
            "-c",
            _SAY_SCRIPT,
            str(self.rate),
            voice or "",
            text,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        try:
            returncode = await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        if returncode != 0:
            logger.warning("Speech process exited abnormally", extra={"returncode": returncode})


def build_speech_engine(enabled: bool, rate: int = 160) -> SpeechEngine:
    if not enabled:
        return NullSpeechEngine()
    return Pyttsx3SpeechEngine(rate=rate)
