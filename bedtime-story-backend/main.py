import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings, load_settings
from exceptions import (
    INTERNAL_ERROR_MESSAGE,
    INVALID_PROMPT_MESSAGE,
    UNKNOWN_ERROR_DETAIL,
    ConfigurationError,
    InvalidPromptError,
    RelayError,
    UpstreamEmptyResultError,
    UpstreamTransportError,
)
from logging_config import configure_logging
from relay import StoryRelay
from schemas import ErrorResponse, StoryRequest, StoryResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, **fields) -> JSONResponse:
    body = ErrorResponse(**fields).model_dump(exclude_unset=True)
    return JSONResponse(status_code=status_code, content=body)


def create_app(settings: Settings, relay: Optional[StoryRelay] = None) -> FastAPI:
    """Build the relay application around an explicit Settings value."""
    relay = relay or StoryRelay(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Server is running on port: %s", settings.port)
        yield

    app = FastAPI(title="Bedtime Story Relay", version="1.0.0", lifespan=lifespan)
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Malformed JSON, missing or non-string prompt all land here
    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return _error(InvalidPromptError.status_code, error=INVALID_PROMPT_MESSAGE)

    @app.exception_handler(InvalidPromptError)
    async def handle_invalid_prompt(request: Request, exc: InvalidPromptError):
        return _error(InvalidPromptError.status_code, error=INVALID_PROMPT_MESSAGE)

    @app.exception_handler(UpstreamEmptyResultError)
    async def handle_empty_result(request: Request, exc: UpstreamEmptyResultError):
        return _error(exc.status_code, error=str(exc), raw=exc.raw)

    @app.exception_handler(UpstreamTransportError)
    async def handle_transport_error(request: Request, exc: UpstreamTransportError):
        logger.error(
            "Server error: %s",
            exc.detail,
            extra={"upstream_status": exc.upstream_status, "error_type": type(exc).__name__},
        )
        return _error(exc.status_code, error=INTERNAL_ERROR_MESSAGE, detail=exc.detail)

    @app.post("/generate-story", response_model=StoryResponse)
    def generate_story(request: StoryRequest):
        try:
            return relay.generate_story(request.prompt)
        except RelayError:
            raise
        except Exception as e:
            logger.exception("Server error: %s", e)
            return _error(500, error=INTERNAL_ERROR_MESSAGE, detail=str(e) or UNKNOWN_ERROR_DETAIL)

    return app


def get_app() -> FastAPI:
    """App factory for ``uvicorn main:get_app --factory``.

    Fails with ConfigurationError before uvicorn binds when the key is absent.
    """
    settings = load_settings()
    configure_logging(json_format=settings.log_format == "json", level=settings.log_level)
    return create_app(settings)


def run() -> None:
    configure_logging()
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    configure_logging(json_format=settings.log_format == "json", level=settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
