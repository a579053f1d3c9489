"""Model adapters for the remote generation services.

Importing this package registers every adapter with ``model_registry``.
"""

from roopras.core.adapters.gemini_transform import (
    GeminiTransformAdapter,
    extract_inline_image,
    extract_inline_mime_type,
)
from roopras.core.adapters.imagen_avatar import ImagenAvatarAdapter, extract_generated_image

__all__ = [
    "GeminiTransformAdapter",
    "ImagenAvatarAdapter",
    "extract_generated_image",
    "extract_inline_image",
    "extract_inline_mime_type",
]
