"""Imagen text-to-image adapter for random avatars.

The Imagen family takes a text prompt and returns a flat list of generated
images, each exposing raw ``image_bytes``. RoopRas always requests exactly
one square PNG.

Request Shape
-------------
``client.aio.models.generate_images(model=..., prompt=..., config=...)`` with
``GenerateImagesConfig(number_of_images=1, output_mime_type="image/png",
aspect_ratio="1:1")``.

Response Shape
--------------
``response.generated_images[i].image.image_bytes``. An empty or missing list
means the model produced nothing (for example when every candidate was
filtered).
"""

import logging
from typing import Any

from google.genai import types

from roopras.core.model_adapters import ModelAdapterBase, model_registry
from roopras.core.models import GenerationMode, GenerationRequest, InputImage
from roopras.core.prompt_builder import PromptSpec

logger = logging.getLogger(__name__)


def extract_generated_image(response: Any) -> bytes | None:
    """Return the bytes of the first generated image, or None.

    Args:
        response: ``GenerateImagesResponse`` or an object of the same shape

    Returns:
        Raw image bytes of the first image, or None if the list is empty,
        missing, or the first entry carries no bytes
    """
    generated = getattr(response, "generated_images", None)
    if not generated:
        return None

    image = getattr(generated[0], "image", None)
    data = getattr(image, "image_bytes", None)
    return data or None


@model_registry.register
class ImagenAvatarAdapter(ModelAdapterBase):
    """Model adapter for Imagen random-avatar generation."""

    name = "Imagen-Avatar"
    description = "Text-to-image generation of minimalist monochrome face avatars"
    model_type = "text-to-image"
    mode = GenerationMode.RANDOM_AVATAR
    version = "1.1.0"

    @property
    def model_id(self) -> str:
        return self.config.avatar_model_id

    def build_request(
        self, prompt: PromptSpec, input_image: InputImage | None = None
    ) -> GenerationRequest:
        if input_image is not None:
            logger.debug("Ignoring input image for text-to-image request")

        return GenerationRequest(
            mode=self.mode,
            model_id=self.model_id,
            prompt=prompt.text,
            number_of_images=1,
            output_mime_type=self.config.output_mime_type,
            aspect_ratio=self.config.avatar_aspect_ratio,
        )

    async def dispatch(self, client: Any, request: GenerationRequest) -> Any:
        generate_config = types.GenerateImagesConfig(
            number_of_images=request.number_of_images,
            output_mime_type=request.output_mime_type,
            aspect_ratio=request.aspect_ratio,
        )
        logger.info(f"Requesting {request.number_of_images} image(s) from {request.model_id}")
        return await client.aio.models.generate_images(
            model=request.model_id,
            prompt=request.prompt,
            config=generate_config,
        )

    def extract_image(self, response: Any) -> bytes | None:
        return extract_generated_image(response)
