"""Pydantic request and response models for the RoopRas API.

Models
------
TransformRequestBody
    Payload for ``POST /api/generate/transform``: the uploaded image, either
    as a browser data URL or as base64 plus MIME type.
PromptPreviewRequest
    Payload for ``POST /api/prompt/preview``: optional seed.
GenerationResponse
    Response for both generation endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class TransformRequestBody(BaseModel):
    """Request body for ``POST /api/generate/transform``.

    Exactly one image source may be given. Supplying neither is allowed here
    so that the core reports it as a missing input.

    Attributes:
        image_data_url: ``data:image/...;base64,...`` string from a file picker.
        image_base64: Base64 image payload, used together with ``mime_type``.
        mime_type: Declared MIME type of ``image_base64``.
    """

    image_data_url: str | None = Field(
        default=None,
        description="Base64 data URL of the image to transform.",
    )
    image_base64: str | None = Field(
        default=None,
        description="Base64-encoded image bytes (alternative to image_data_url).",
    )
    mime_type: str | None = Field(
        default=None,
        description="MIME type of image_base64 (e.g. 'image/jpeg').",
    )

    @model_validator(mode="after")
    def _single_source(self) -> "TransformRequestBody":
        if self.image_data_url and self.image_base64:
            raise ValueError("Provide either image_data_url or image_base64, not both")
        return self


class PromptPreviewRequest(BaseModel):
    """Request body for ``POST /api/prompt/preview``.

    Attributes:
        seed: Seed for the random source. ``None`` draws a fresh prompt.
    """

    seed: int | None = Field(
        default=None,
        description="Random seed for reproducible prompt composition.",
    )


class GenerationResponse(BaseModel):
    """Response body for the generation endpoints."""

    mode: str
    model_id: str
    mime_type: str
    prompt: str
    image_base64: str
    data_url: str
    selections: dict[str, str] = Field(default_factory=dict)
