"""Data models for generation requests and results."""

import base64
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class GenerationMode(str, Enum):
    """The two supported ways of producing an avatar."""

    RANDOM_AVATAR = "random-avatar"
    STYLE_TRANSFORM = "style-transform"


class GenerationState(str, Enum):
    """Lifecycle of a single generate() call.

    ``IDLE -> COMPOSING -> DISPATCHED -> SUCCEEDED | FAILED``
    """

    IDLE = "idle"
    COMPOSING = "composing"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_busy(self) -> bool:
        """True while a request is being composed or awaited."""
        return self in (GenerationState.COMPOSING, GenerationState.DISPATCHED)


@dataclass(frozen=True)
class InputImage:
    """Raw image bytes plus their declared MIME type, as supplied by the caller."""

    data: bytes
    mime_type: str

    def __repr__(self) -> str:
        return f"InputImage(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class RandomAvatarRequest:
    """Request a randomly composed minimalist face. Carries no payload."""

    mode = GenerationMode.RANDOM_AVATAR


@dataclass(frozen=True)
class TransformRequest:
    """Request a style transform of the given image.

    ``input_image`` is typed optional so that a missing image reaches the
    orchestrator and fails there with ``MissingInputError``.
    """

    input_image: InputImage | None = None

    mode = GenerationMode.STYLE_TRANSFORM


ModeRequest = RandomAvatarRequest | TransformRequest


@dataclass(frozen=True)
class GenerationRequest:
    """Fully realized payload for the external endpoint.

    Built fresh for every call and never mutated after dispatch.

    Attributes:
        mode: Generation mode this request was built for
        model_id: Remote model identifier
        prompt: Final prompt text
        input_image: Image to transform (style-transform mode only)
        number_of_images: Always 1
        output_mime_type: Requested output format
        aspect_ratio: Requested aspect ratio, or None to let the model decide
    """

    mode: GenerationMode
    model_id: str
    prompt: str
    input_image: InputImage | None = None
    number_of_images: int = 1
    output_mime_type: str = "image/png"
    aspect_ratio: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """A successfully generated image.

    ``image_bytes`` are exactly the bytes the endpoint returned. Failures are
    never represented here; they are raised as typed errors instead.
    """

    image_bytes: bytes
    mode: GenerationMode
    model_id: str
    prompt: str
    mime_type: str = "image/png"
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_base64(self) -> str:
        """Return the image bytes as a base64 string."""
        return base64.b64encode(self.image_bytes).decode("ascii")

    def to_data_url(self) -> str:
        """Return the image as a ``data:`` URL suitable for an ``<img>`` tag."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def __repr__(self) -> str:
        return (
            f"GenerationResult(mode={self.mode.value!r}, model_id={self.model_id!r}, "
            f"mime_type={self.mime_type!r}, size={len(self.image_bytes)})"
        )
