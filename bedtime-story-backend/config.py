import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from exceptions import ConfigurationError

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_MODEL = "gemini-1.5-flash-latest"
DEFAULT_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_CLIENT_BASE_URL = "http://localhost:3000"

# Generation parameters sent with every upstream request
TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 1024
REQUEST_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class Settings:
    api_key: str
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    model: str = DEFAULT_MODEL
    api_base_url: str = DEFAULT_API_BASE_URL
    temperature: float = TEMPERATURE
    max_output_tokens: int = MAX_OUTPUT_TOKENS
    timeout: float = REQUEST_TIMEOUT_SECONDS
    log_level: str = "INFO"
    log_format: str = "text"

    def __repr__(self) -> str:
        return (
            f"Settings(api_key='***', port={self.port}, host={self.host!r}, "
            f"model={self.model!r}, api_base_url={self.api_base_url!r})"
        )

    @property
    def generate_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/models/{self.model}:generateContent"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment (and a ``.env`` file when present).

    Raises ConfigurationError when GEMINI_API_KEY is missing or PORT is not
    a number. Passing ``environ`` skips ``.env`` loading entirely.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    api_key = environ.get("GEMINI_API_KEY")
    if not api_key:
        raise ConfigurationError("Missing GEMINI_API_KEY in environment or .env file")

    raw_port = environ.get("PORT") or str(DEFAULT_PORT)
    try:
        port = int(raw_port)
    except ValueError:
        raise ConfigurationError(f"PORT must be an integer, got {raw_port!r}")

    log_level = (environ.get("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    return Settings(
        api_key=api_key,
        port=port,
        host=environ.get("HOST") or DEFAULT_HOST,
        model=environ.get("GEMINI_MODEL") or DEFAULT_MODEL,
        api_base_url=environ.get("GEMINI_API_BASE_URL") or DEFAULT_API_BASE_URL,
        log_level=log_level,
        log_format=(environ.get("LOG_FORMAT") or "text").lower(),
    )


def client_base_url(environ: Optional[Mapping[str, str]] = None) -> str:
    """Relay address used by the client shell."""
    if environ is None:
        load_dotenv()
        environ = os.environ
    return (environ.get("STORY_API_BASE_URL") or DEFAULT_CLIENT_BASE_URL).rstrip("/")
