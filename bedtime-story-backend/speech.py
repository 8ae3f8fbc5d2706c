"""Speech capture and playback behind small capability interfaces.

The shell only talks to SpeechInput and SpeechOutput. The default
implementations bind to on-device engines (SpeechRecognition for capture,
pyttsx3 for synthesis); the stub implementations record calls for tests and
for running without audio hardware.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

TARGET_LANGUAGE = "hi-IN"


class SpeechRecognitionFailed(Exception):
    """Speech could not be captured or understood."""


@dataclass(frozen=True)
class Voice:
    id: str
    name: str
    lang: str


@dataclass(frozen=True)
class VoiceSettings:
    lang: str = TARGET_LANGUAGE
    pitch: float = 1.1
    rate: float = 0.95
    volume: float = 1.0


def select_voice(voices: Sequence[Voice], lang: str = TARGET_LANGUAGE) -> Optional[Voice]:
    """Prefer an exact language match, then a same-language prefix match.

    Returns None when neither exists, meaning the engine's default voice.
    """
    prefix = lang.split("-")[0].lower()
    for voice in voices:
        if voice.lang == lang:
            return voice
    for voice in voices:
        if voice.lang.lower().startswith(prefix):
            return voice
    logger.warning("No %s voice found, using default voice.", lang)
    return None


class SpeechInput(ABC):
    """Speech-to-text capability."""

    @abstractmethod
    def listen(self) -> str:
        """Capture one utterance and return its transcript.

        Raises SpeechRecognitionFailed when nothing usable was heard.
        """


class SpeechOutput(ABC):
    """Text-to-speech capability."""

    @abstractmethod
    def speak(self, text: str, settings: VoiceSettings, on_end: Callable[[], None]) -> None:
        """Start speaking ``text``; call ``on_end`` when playback finishes naturally."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop any playback in progress. ``on_end`` is not called."""


class MicrophoneSpeechInput(SpeechInput):
    """Captures from the default microphone via the SpeechRecognition library."""

    def __init__(self, lang: str = TARGET_LANGUAGE, timeout: float = 10):
        import speech_recognition as sr

        self._sr = sr
        self.recognizer = sr.Recognizer()
        self.lang = lang
        self.timeout = timeout

    def listen(self) -> str:
        sr = self._sr
        try:
            with sr.Microphone() as source:
                audio = self.recognizer.listen(source, timeout=self.timeout)
            return self.recognizer.recognize_google(audio, language=self.lang)
        except (sr.WaitTimeoutError, sr.UnknownValueError, sr.RequestError) as e:
            logger.error("Speech recognition error: %s", e)
            raise SpeechRecognitionFailed(str(e)) from e


class LocalSpeechOutput(SpeechOutput):
    """On-device synthesis through pyttsx3, run on a background thread."""

    def __init__(self, stop_timeout: float = 2):
        import pyttsx3

        self.engine = pyttsx3.init()
        self.stop_timeout = stop_timeout
        self._thread: Optional[threading.Thread] = None
        self._cancelled: Optional[threading.Event] = None

    def voices(self) -> List[Voice]:
        found = []
        for v in self.engine.getProperty("voices"):
            langs = [
                lang.decode("utf-8", "ignore") if isinstance(lang, bytes) else str(lang)
                for lang in (getattr(v, "languages", None) or [])
            ]
            found.append(Voice(id=v.id, name=v.name, lang=langs[0] if langs else ""))
        return found

    def speak(self, text: str, settings: VoiceSettings, on_end: Callable[[], None]) -> None:
        self.cancel()

        voice = select_voice(self.voices(), settings.lang)
        if voice is not None:
            self.engine.setProperty("voice", voice.id)
        # pyttsx3 has no pitch control; rate is words per minute around 200
        self.engine.setProperty("rate", int(200 * settings.rate))
        self.engine.setProperty("volume", settings.volume)

        # One event per utterance so a late thread cannot end a newer one
        cancelled = threading.Event()
        self._cancelled = cancelled
        self._thread = threading.Thread(
            target=self._run, args=(text, on_end, cancelled), daemon=True
        )
        self._thread.start()

    def _run(self, text: str, on_end: Callable[[], None], cancelled: threading.Event) -> None:
        self.engine.say(text)
        self.engine.runAndWait()
        if not cancelled.is_set():
            on_end()

    def cancel(self) -> None:
        if self._cancelled is not None:
            self._cancelled.set()
        if self._thread is not None and self._thread.is_alive():
            self.engine.stop()
            self._thread.join(timeout=self.stop_timeout)
        self._thread = None
        self._cancelled = None


class StubSpeechInput(SpeechInput):
    """Returns queued transcripts; an exception in the queue is raised instead."""

    def __init__(self, transcripts=()):
        self.transcripts = list(transcripts)
        self.calls = 0

    def listen(self) -> str:
        self.calls += 1
        if not self.transcripts:
            raise SpeechRecognitionFailed("no speech")
        result = self.transcripts.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class StubSpeechOutput(SpeechOutput):
    """Records utterances. ``finish()`` simulates playback ending naturally."""

    def __init__(self):
        self.spoken: List[tuple] = []
        self.cancelled = 0
        self._on_end: Optional[Callable[[], None]] = None

    def speak(self, text: str, settings: VoiceSettings, on_end: Callable[[], None]) -> None:
        self.spoken.append((text, settings))
        self._on_end = on_end

    def cancel(self) -> None:
        self.cancelled += 1
        self._on_end = None

    def finish(self) -> None:
        on_end, self._on_end = self._on_end, None
        if on_end is not None:
            on_end()
