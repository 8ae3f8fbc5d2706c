import logging
from typing import Any, Optional

import requests

from config import Settings
from exceptions import InvalidPromptError, UpstreamEmptyResultError
from gemini import GeminiClient, extract_story_text
from prompts import build_story_prompt
from schemas import StoryResponse

logger = logging.getLogger(__name__)


class StoryRelay:
    """Turns a topic into a story through one upstream generateContent call.

    Stateless between calls; every call issues its own upstream request.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.client = GeminiClient(settings, session=session)

    def generate_story(self, prompt: Any) -> StoryResponse:
        if not isinstance(prompt, str) or not prompt:
            raise InvalidPromptError()

        logger.info("Generating story (topic length %d)", len(prompt))
        raw = self.client.generate_content(build_story_prompt(prompt))

        story = extract_story_text(raw)
        if story is None:
            logger.error("Upstream returned no story text: %s", raw)
            raise UpstreamEmptyResultError(raw)

        return StoryResponse(story=story)
