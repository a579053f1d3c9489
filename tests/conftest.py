"""Shared pytest fixtures for RoopRas tests."""

import io
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types
from PIL import Image

from roopras.core.config import RooprasConfig
from roopras.core.models import InputImage
from roopras.core.orchestrator import GenerationOrchestrator
from roopras.core.prompt_builder import PromptComposer

_KEY_VARS = ("ROOPRAS_API_KEY", "GEMINI_API_KEY", "API_KEY")


def make_png(size: tuple[int, int] = (8, 8), color: str = "white") -> bytes:
    """Encode a small solid-colour PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_imagen_response(*images: bytes) -> types.GenerateImagesResponse:
    """Build a text-to-image response carrying the given image bytes."""
    return types.GenerateImagesResponse(
        generated_images=[
            types.GeneratedImage(image=types.Image(image_bytes=data, mime_type="image/png"))
            for data in images
        ]
    )


def make_content_response(*parts: types.Part) -> types.GenerateContentResponse:
    """Build a content-segment response with one candidate holding ``parts``."""
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def image_part(data: bytes, mime_type: str = "image/png") -> types.Part:
    return types.Part(inline_data=types.Blob(mime_type=mime_type, data=data))


def text_part(text: str) -> types.Part:
    return types.Part(text=text)


@pytest.fixture(autouse=True)
def _clear_key_env(monkeypatch):
    """Keep real API keys in the environment out of every test."""
    for var in _KEY_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def test_config() -> RooprasConfig:
    """Create a configuration with a dummy API key and no .env lookup."""
    return RooprasConfig(_env_file=None, api_key="test-key")


@pytest.fixture
def png_bytes() -> bytes:
    """Bytes of a valid 8x8 PNG."""
    return make_png()


@pytest.fixture
def input_image(png_bytes: bytes) -> InputImage:
    """A valid PNG input image for style-transform tests."""
    return InputImage(data=png_bytes, mime_type="image/png")


@pytest.fixture
def generated_bytes() -> bytes:
    """Bytes the fake endpoint returns as the generated image."""
    return make_png((16, 16), "black")


@pytest.fixture
def fake_client(generated_bytes: bytes) -> MagicMock:
    """Stand-in for ``google.genai.Client`` with successful async responses.

    ``client.aio.models.generate_images`` returns one generated image and
    ``client.aio.models.generate_content`` returns a text segment followed
    by an inline image segment.
    """
    client = MagicMock()
    client.aio.models.generate_images = AsyncMock(return_value=make_imagen_response(generated_bytes))
    client.aio.models.generate_content = AsyncMock(
        return_value=make_content_response(
            text_part("Here is your illustration."), image_part(generated_bytes)
        )
    )
    return client


@pytest.fixture
def seeded_composer() -> PromptComposer:
    """Composer with a fixed random seed."""
    return PromptComposer(rng=random.Random(1234))


@pytest.fixture
def orchestrator(test_config, fake_client, seeded_composer) -> GenerationOrchestrator:
    """Orchestrator wired to the fake client."""
    return GenerationOrchestrator(test_config, client=fake_client, composer=seeded_composer)
