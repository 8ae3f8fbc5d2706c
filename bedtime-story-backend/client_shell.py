#!/usr/bin/env python3
"""
Terminal client for the bedtime story relay.

Usage:
    story-shell
    story-shell --base-url http://localhost:3000 --no-speech

Inside the shell, type a topic to create a story, or use:
    :mic    capture the topic by speech
    :go     create a story for the current topic
    :play   read the story aloud (again to stop)
    :quit   leave
"""

import argparse
import logging
import re
import sys
from typing import Callable, Optional

import requests

from config import client_base_url
from logging_config import configure_logging
from speech import (
    SpeechInput,
    SpeechOutput,
    SpeechRecognitionFailed,
    StubSpeechInput,
    StubSpeechOutput,
    VoiceSettings,
)

logger = logging.getLogger(__name__)

EMPTY_PROMPT_NOTICE = "Please tell me what the story should be about!"
FAILURE_NOTICE = "Oops! I couldn't create a story right now. Please try again."
RECOGNITION_NOTICE = "I couldn't understand that. Please try again."

# Slightly above the relay's own 30s upstream bound
CLIENT_TIMEOUT_SECONDS = 35

_MARKDOWN_CHARS = re.compile(r"[*_#`]")
_LIST_NUMBERS = re.compile(r"\d+\.")


class StoryServiceError(Exception):
    """The relay could not produce a story."""


def clean_for_speech(text: str) -> str:
    """Strip markdown decoration and list numbering before synthesis."""
    text = _MARKDOWN_CHARS.sub("", text)
    text = _LIST_NUMBERS.sub("", text)
    return text.strip()


class StoryClient:
    """HTTP client for ``POST /generate-story``."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = CLIENT_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def generate_story(self, prompt: str) -> str:
        try:
            response = self.session.post(
                f"{self.base_url}/generate-story",
                json={"prompt": prompt},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StoryServiceError(str(e)) from e

        if not response.ok:
            raise StoryServiceError(
                f"Something went wrong on the server. (HTTP {response.status_code})"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise StoryServiceError(f"Invalid response from server: {e}") from e

        story = data.get("story") if isinstance(data, dict) else None
        if not isinstance(story, str):
            raise StoryServiceError("Response did not contain a story")
        return story


class StoryShell:
    """View state for one client: topic, story, loading and speaking flags."""

    def __init__(
        self,
        client: StoryClient,
        speech_input: SpeechInput,
        speech_output: SpeechOutput,
        notify: Callable[[str], None] = print,
        voice_settings: VoiceSettings = VoiceSettings(),
    ):
        self.client = client
        self.speech_input = speech_input
        self.speech_output = speech_output
        self.notify = notify
        self.voice_settings = voice_settings

        self.prompt = ""
        self.story = ""
        self.is_loading = False
        self.is_speaking = False

    def generate_story(self) -> bool:
        """Request a story for the current prompt. Returns True on success."""
        if self.is_loading:
            return False
        if not self.prompt:
            self.notify(EMPTY_PROMPT_NOTICE)
            return False

        self.is_loading = True
        self.story = ""
        try:
            self.story = self.client.generate_story(self.prompt)
            return True
        except StoryServiceError as e:
            logger.error("Failed to fetch story: %s", e)
            self.notify(FAILURE_NOTICE)
            return False
        finally:
            self.is_loading = False

    def start_recognition(self) -> Optional[str]:
        """Overwrite the prompt with a spoken transcript."""
        try:
            transcript = self.speech_input.listen()
        except SpeechRecognitionFailed as e:
            logger.error("Speech recognition error: %s", e)
            self.notify(RECOGNITION_NOTICE)
            return None
        self.prompt = transcript
        return transcript

    def toggle_playback(self) -> None:
        if self.is_speaking:
            self.speech_output.cancel()
            self.is_speaking = False
            return

        if not self.story:
            return

        text = clean_for_speech(self.story)
        self.speech_output.cancel()
        # Set first: on_end may fire before speak() returns
        self.is_speaking = True
        self.speech_output.speak(text, self.voice_settings, on_end=self._playback_ended)

    def _playback_ended(self) -> None:
        self.is_speaking = False


def build_speech(no_speech: bool):
    if no_speech:
        return StubSpeechInput(), StubSpeechOutput()

    from speech import LocalSpeechOutput, MicrophoneSpeechInput

    return MicrophoneSpeechInput(), LocalSpeechOutput()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Create Hindi bedtime stories from a topic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--base-url", default=None,
                        help="Relay address (default: $STORY_API_BASE_URL or http://localhost:3000)")
    parser.add_argument("--no-speech", action="store_true",
                        help="Disable microphone capture and speech playback")
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    args = parser.parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        speech_input, speech_output = build_speech(args.no_speech)
    except ImportError as e:
        print(f"Speech support unavailable ({e}). Install the 'speech' extra or pass --no-speech.",
              file=sys.stderr)
        return 1

    shell = StoryShell(
        StoryClient(args.base_url or client_base_url()),
        speech_input,
        speech_output,
    )

    print("Magical Bedtime Stories. Tell me a topic, and I'll weave a tale for you in Hindi!")
    while True:
        try:
            line = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            break

        if not line:
            continue
        if line == ":quit":
            break
        if line == ":play":
            shell.toggle_playback()
            print("Reading aloud..." if shell.is_speaking else "Stopped.")
            continue
        if line == ":mic":
            if shell.start_recognition() is None:
                continue
            print(f"Heard: {shell.prompt}")
            continue

        if line != ":go":
            shell.prompt = line

        print("Creating...")
        if shell.generate_story():
            print("\nYour Story!\n")
            print(shell.story)
            print()

    if shell.is_speaking:
        shell.speech_output.cancel()
    return 0


if __name__ == "__main__":
    sys.exit(main())
