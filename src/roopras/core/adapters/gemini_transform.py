"""Gemini image+text-to-image adapter for style transforms.

Gemini image models take a list of content parts (here: the input photo as
inline data followed by the fixed instruction) and answer with candidates
whose content is a list of segments. Each segment is either text or inline
image data; the model may interleave commentary with the image.

Request Shape
-------------
``client.aio.models.generate_content(model=..., contents=[...], config=...)``
with ``GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])``.

Response Shape
--------------
``response.candidates[0].content.parts[i].inline_data``. Only the first
candidate is read. Its segments are scanned in order and the first one
carrying image data wins. The model picks the image format, so the
segment's own ``mime_type`` labels the result.
"""

import logging
from typing import Any

from google.genai import types

from roopras.core.model_adapters import ModelAdapterBase, model_registry
from roopras.core.models import GenerationMode, GenerationRequest, InputImage
from roopras.core.prompt_builder import PromptSpec

logger = logging.getLogger(__name__)


def _first_candidate_parts(response: Any) -> list:
    """Return the content segments of the first candidate, in order."""
    candidates = getattr(response, "candidates", None)
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def find_inline_image(response: Any) -> Any | None:
    """Return the first inline-data segment holding an image, or None.

    Text segments are skipped. Inline data with a non-image MIME type is
    skipped as well; inline data without a MIME type is assumed to be an
    image.

    Args:
        response: ``GenerateContentResponse`` or an object of the same shape

    Returns:
        The ``inline_data`` blob (``data`` and ``mime_type``), or None
    """
    for part in _first_candidate_parts(response):
        inline = getattr(part, "inline_data", None)
        if not getattr(inline, "data", None):
            text = getattr(part, "text", None)
            if text:
                logger.debug(f"Skipping text segment ({len(text)} chars)")
            continue

        mime_type = getattr(inline, "mime_type", None)
        if mime_type and not mime_type.startswith("image/"):
            logger.debug(f"Skipping non-image inline segment ({mime_type})")
            continue
        return inline
    return None


def extract_inline_image(response: Any) -> bytes | None:
    """Return the bytes of the first inline image segment, or None."""
    inline = find_inline_image(response)
    return inline.data if inline is not None else None


def extract_inline_mime_type(response: Any) -> str | None:
    """Return the MIME type of the first inline image segment, or None."""
    inline = find_inline_image(response)
    return getattr(inline, "mime_type", None) or None


@model_registry.register
class GeminiTransformAdapter(ModelAdapterBase):
    """Model adapter for Gemini style-transform generation."""

    name = "Gemini-Transform"
    description = "Ghibli-style repaint of an uploaded photo"
    model_type = "image-edit"
    mode = GenerationMode.STYLE_TRANSFORM
    version = "1.0.0"

    @property
    def model_id(self) -> str:
        return self.config.transform_model_id

    def build_request(
        self, prompt: PromptSpec, input_image: InputImage | None = None
    ) -> GenerationRequest:
        if input_image is None:
            raise ValueError("input_image is required for style transform")

        return GenerationRequest(
            mode=self.mode,
            model_id=self.model_id,
            prompt=prompt.text,
            input_image=input_image,
            number_of_images=1,
            output_mime_type=self.config.output_mime_type,
        )

    def build_contents(self, request: GenerationRequest) -> list:
        """Build the content parts: the input image, then the instruction."""
        image = request.input_image
        return [
            types.Part.from_bytes(data=image.data, mime_type=image.mime_type),
            types.Part.from_text(text=request.prompt),
        ]

    async def dispatch(self, client: Any, request: GenerationRequest) -> Any:
        generate_config = types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"])

        logger.info(
            f"Requesting style transform from {request.model_id} "
            f"({request.input_image.mime_type}, {len(request.input_image.data)} bytes)"
        )
        return await client.aio.models.generate_content(
            model=request.model_id,
            contents=self.build_contents(request),
            config=generate_config,
        )

    def extract_image(self, response: Any) -> bytes | None:
        return extract_inline_image(response)

    def extract_mime_type(self, response: Any) -> str | None:
        return extract_inline_mime_type(response)
