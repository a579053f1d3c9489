"""RoopRas - FastAPI Application.

This module defines the FastAPI ``app`` instance, the REST routes that a
browser front-end calls, and the ``main()`` CLI function that launches the
uvicorn server.

Architecture
------------
- **Generation** is performed by a single
  :class:`~roopras.core.orchestrator.GenerationOrchestrator` stored on
  ``app.state``. It enforces one outstanding request at a time.
- **Errors** from the core are typed; each kind maps to one HTTP status and a
  ``{"kind", "message"}`` detail the front-end can show as-is.
- **Images** are returned inline as base64 and as a ready-made data URL.
  Rendering and download links are left to the front-end.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/api/health``               Liveness and version
GET       ``/api/config``               Models, aspect ratio, vocabulary
GET       ``/api/status``               Orchestrator state
POST      ``/api/generate/avatar``      Generate a random avatar
POST      ``/api/generate/transform``   Style-transform an uploaded image
POST      ``/api/prompt/preview``       Compose an avatar prompt only
========  ============================  ====================================

Usage
-----
CLI (installed entry point)::

    roopras

Direct invocation::

    python -m roopras.api.main
"""

from __future__ import annotations

import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from roopras import __version__
from roopras.api.models import GenerationResponse, PromptPreviewRequest, TransformRequestBody
from roopras.core.config import config
from roopras.core.errors import (
    ConfigurationError,
    EmptyResultError,
    GenerationInProgressError,
    InvalidInputError,
    RooprasError,
    ServiceError,
)
from roopras.core.model_adapters import model_registry
from roopras.core.models import GenerationMode, GenerationResult, InputImage
from roopras.core.orchestrator import GenerationOrchestrator
from roopras.core.prompt_builder import PromptComposer
from roopras.core.validation import decode_base64, decode_data_url

logger = logging.getLogger(__name__)

# Error kind -> HTTP status. Subclasses are matched through the MRO.
_STATUS_BY_ERROR: dict[type[RooprasError], int] = {
    InvalidInputError: 400,
    GenerationInProgressError: 409,
    ConfigurationError: 500,
    ServiceError: 502,
    EmptyResultError: 502,
}


def error_status(error: RooprasError) -> int:
    """Return the HTTP status code for a core error."""
    for cls in type(error).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the orchestrator on startup.

    No client is created here: the API key is checked on the first
    generation request so the server can start without one.
    """
    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = GenerationOrchestrator(config)
    logger.info("GenerationOrchestrator initialised.")

    yield


app = FastAPI(
    title="RoopRas",
    description="Minimalist avatar generation and photo style transforms.",
    version=__version__,
    lifespan=lifespan,
)

# Allow the front-end to be served from a different origin during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def _to_response(result: GenerationResult) -> GenerationResponse:
    return GenerationResponse(
        mode=result.mode.value,
        model_id=result.model_id,
        mime_type=result.mime_type,
        prompt=result.prompt,
        image_base64=result.to_base64(),
        data_url=result.to_data_url(),
        selections=result.metadata.get("selections", {}),
    )


def _http_error(error: RooprasError) -> HTTPException:
    return HTTPException(status_code=error_status(error), detail=error.to_dict())


def _input_from_body(body: TransformRequestBody) -> InputImage | None:
    """Decode the uploaded image, or return None when none was sent."""
    if body.image_data_url:
        return decode_data_url(body.image_data_url)
    if body.image_base64:
        return InputImage(data=decode_base64(body.image_base64), mime_type=body.mime_type or "")
    return None


@app.get("/api/health")
async def health() -> dict:
    """Return liveness status and the API version."""
    return {"status": "ok", "version": __version__}


@app.get("/api/config")
async def get_config(request: Request) -> dict:
    """Return the models, output settings and vocabulary categories."""
    orchestrator = _get_orchestrator(request)
    return {
        "version": __version__,
        "models": {
            mode.value: orchestrator.get_adapter(mode).get_model_info()
            for mode in model_registry.list_modes()
        },
        "output_mime_type": orchestrator.config.output_mime_type,
        "avatar_aspect_ratio": orchestrator.config.avatar_aspect_ratio,
        "vocabulary": orchestrator.composer.vocabulary.to_dict()["categories"],
        "api_key_configured": orchestrator.config.api_key is not None,
    }


@app.get("/api/status")
async def get_status(request: Request) -> dict:
    """Return the orchestrator's current state and last error, if any."""
    orchestrator = _get_orchestrator(request)
    last_error = orchestrator.last_error
    return {
        "state": orchestrator.state.value,
        "busy": orchestrator.is_busy,
        "last_error": last_error.to_dict() if last_error else None,
    }


@app.post("/api/generate/avatar", response_model=GenerationResponse)
async def generate_avatar(request: Request) -> GenerationResponse:
    """Generate one random minimalist avatar.

    Raises:
        HTTPException: 409 while busy, 500 without an API key, 502 when the
            service fails or returns no image.
    """
    try:
        result = await _get_orchestrator(request).generate(GenerationMode.RANDOM_AVATAR)
    except RooprasError as e:
        raise _http_error(e) from e
    return _to_response(result)


@app.post("/api/generate/transform", response_model=GenerationResponse)
async def generate_transform(body: TransformRequestBody, request: Request) -> GenerationResponse:
    """Repaint the uploaded image in the hand-painted style.

    Raises:
        HTTPException: 400 for a missing or invalid image, plus the same
            statuses as ``/api/generate/avatar``.
    """
    try:
        image = _input_from_body(body)
        result = await _get_orchestrator(request).generate(GenerationMode.STYLE_TRANSFORM, image)
    except RooprasError as e:
        raise _http_error(e) from e
    return _to_response(result)


@app.post("/api/prompt/preview")
async def preview_prompt(req: PromptPreviewRequest, request: Request) -> dict:
    """Compose a random-avatar prompt without calling the service."""
    vocabulary = _get_orchestrator(request).composer.vocabulary
    rng = random.Random(req.seed) if req.seed is not None else random.Random()
    spec = PromptComposer(vocabulary=vocabulary, rng=rng).compose(GenerationMode.RANDOM_AVATAR)
    return {"prompt": spec.text, "selections": spec.selections, "seed": req.seed}


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~roopras.core.config.config`.
    Registered as the ``roopras`` console script in ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "roopras.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
