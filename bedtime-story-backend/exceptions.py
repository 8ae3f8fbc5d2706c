"""Failure classes raised by the story relay.

Each class maps to exactly one HTTP response shape in ``main.create_app``.
"""

from typing import Any, Optional

INVALID_PROMPT_MESSAGE = "Missing or invalid prompt"
EMPTY_RESULT_MESSAGE = "No content was returned from the AI model."
INTERNAL_ERROR_MESSAGE = "Internal server error"
UNKNOWN_ERROR_DETAIL = "An unknown error occurred."


class RelayError(Exception):
    """Base class for relay failures."""

    status_code = 500


class InvalidPromptError(RelayError):
    """The caller sent no usable prompt. No upstream call is attempted."""

    status_code = 400

    def __init__(self, message: str = INVALID_PROMPT_MESSAGE):
        super().__init__(message)


class UpstreamEmptyResultError(RelayError):
    """The upstream call succeeded but carried no extractable story text."""

    status_code = 502

    def __init__(self, raw: Any):
        super().__init__(EMPTY_RESULT_MESSAGE)
        self.raw = raw


class UpstreamTransportError(RelayError):
    """Network failure, timeout, or non-success status from upstream."""

    status_code = 500

    def __init__(self, detail: Any, upstream_status: Optional[int] = None):
        # An empty JSON body ({} or []) is still the upstream's answer
        if detail is None or detail == "":
            detail = UNKNOWN_ERROR_DETAIL
        super().__init__(str(detail))
        self.detail = detail
        self.upstream_status = upstream_status


class ConfigurationError(RelayError):
    """Required configuration is missing or malformed. Fatal at startup."""
