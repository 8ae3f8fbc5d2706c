import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Optional

import requests

from config import Settings
from exceptions import UpstreamTransportError

logger = logging.getLogger(__name__)


def build_payload(prompt: str, temperature: float, max_output_tokens: int) -> dict:
    """Request body for the generateContent endpoint."""
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        },
    }


def extract_story_text(payload: Any) -> Optional[str]:
    """Return the first candidate's first text part, or None.

    Only ``candidates[0].content.parts[0].text`` is considered. Any missing
    or mis-shaped step, or an empty text, yields None.
    """
    if not isinstance(payload, dict):
        return None

    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None

    first = candidates[0]
    if not isinstance(first, dict):
        return None

    content = first.get("content")
    if not isinstance(content, dict):
        return None

    parts = content.get("parts")
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None

    text = parts[0].get("text")
    if not isinstance(text, str) or not text:
        return None
    return text


def _error_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"


class GeminiClient:
    """Thin client for a single generateContent call.

    ``settings.timeout`` bounds the whole call, body included. requests only
    bounds each connect/read phase, so the call runs on a worker thread and
    is abandoned once the deadline passes.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None,
                 max_workers: int = 16):
        self.settings = settings
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gemini")

    def _post(self, payload: dict, headers: dict) -> requests.Response:
        response = self.session.post(
            self.settings.generate_url,
            json=payload,
            headers=headers,
            timeout=self.settings.timeout,
        )
        # Read the body before the deadline is checked
        response.content
        return response

    def generate_content(self, prompt: str) -> Any:
        """POST the prompt upstream and return the decoded JSON body.

        Raises UpstreamTransportError on timeouts, connection failures,
        non-2xx responses and undecodable bodies. Never retries.
        """
        payload = build_payload(
            prompt, self.settings.temperature, self.settings.max_output_tokens
        )
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.settings.api_key,
        }

        future = self._executor.submit(self._post, payload, headers)
        try:
            response = future.result(timeout=self.settings.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise UpstreamTransportError(
                f"Upstream request exceeded the {self.settings.timeout}s deadline"
            ) from e
        except requests.Timeout as e:
            raise UpstreamTransportError(
                f"Upstream request timed out after {self.settings.timeout}s: {e}"
            ) from e
        except requests.RequestException as e:
            raise UpstreamTransportError(str(e)) from e

        if not response.ok:
            raise UpstreamTransportError(
                _error_body(response), upstream_status=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamTransportError(f"Upstream returned invalid JSON: {e}") from e
