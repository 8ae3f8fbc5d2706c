import sys
import threading
import types
from unittest.mock import MagicMock

import pytest

from speech import (
    LocalSpeechOutput,
    SpeechRecognitionFailed,
    StubSpeechInput,
    StubSpeechOutput,
    Voice,
    VoiceSettings,
    select_voice,
)


def test_voice_settings_defaults():
    settings = VoiceSettings()
    assert (settings.lang, settings.pitch, settings.rate, settings.volume) == ("hi-IN", 1.1, 0.95, 1.0)


class TestSelectVoice:
    def test_prefers_exact_match(self):
        voices = [Voice("a", "Hindi generic", "hi"), Voice("b", "Hindi India", "hi-IN")]
        assert select_voice(voices).id == "b"

    def test_falls_back_to_prefix(self):
        voices = [Voice("a", "English", "en-US"), Voice("b", "Hindi", "hi")]
        assert select_voice(voices).id == "b"

    def test_default_voice_when_no_hindi(self, caplog):
        assert select_voice([Voice("a", "English", "en-US")]) is None
        assert "default voice" in caplog.text

    def test_empty_voice_list(self):
        assert select_voice([]) is None


class TestStubs:
    def test_input_returns_queued_transcripts(self):
        speech_input = StubSpeechInput(["एक शेर"])
        assert speech_input.listen() == "एक शेर"
        with pytest.raises(SpeechRecognitionFailed):
            speech_input.listen()

    def test_output_finish_calls_on_end_once(self):
        ended = []
        output = StubSpeechOutput()
        output.speak("text", VoiceSettings(), on_end=lambda: ended.append(True))
        output.finish()
        output.finish()
        assert ended == [True]

    def test_cancel_suppresses_on_end(self):
        ended = []
        output = StubSpeechOutput()
        output.speak("text", VoiceSettings(), on_end=lambda: ended.append(True))
        output.cancel()
        output.finish()
        assert ended == []


class TestLocalSpeechOutput:
    @pytest.fixture
    def engine(self, monkeypatch):
        engine = MagicMock()
        engine.getProperty.return_value = []
        fake_pyttsx3 = types.ModuleType("pyttsx3")
        fake_pyttsx3.init = lambda: engine
        monkeypatch.setitem(sys.modules, "pyttsx3", fake_pyttsx3)
        return engine

    def test_natural_end_calls_on_end(self, engine):
        ended = threading.Event()
        output = LocalSpeechOutput()

        output.speak("कहानी", VoiceSettings(), on_end=ended.set)

        assert ended.wait(2)
        engine.say.assert_called_once_with("कहानी")
        engine.setProperty.assert_any_call("rate", 190)

    def test_stale_thread_cannot_end_newer_utterance(self, engine):
        release, started = threading.Event(), threading.Event()
        calls = []

        def run_and_wait():
            calls.append(True)
            if len(calls) == 1:
                # Ignores engine.stop(), outliving the cancel join
                started.set()
                release.wait(5)

        engine.runAndWait.side_effect = run_and_wait
        output = LocalSpeechOutput(stop_timeout=0.05)
        first_ended, second_ended = [], threading.Event()

        output.speak("पहली", VoiceSettings(), on_end=lambda: first_ended.append(True))
        assert started.wait(2)
        stale = output._thread
        output.speak("दूसरी", VoiceSettings(), on_end=second_ended.set)
        assert second_ended.wait(2)

        release.set()
        stale.join(2)

        assert not stale.is_alive()
        assert first_ended == []
