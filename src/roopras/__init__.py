"""RoopRas - AI-generated minimalist avatars and style transforms."""

__version__ = "1.1.0"

from roopras.core.config import RooprasConfig, config
from roopras.core.errors import (
    ConfigurationError,
    EmptyResultError,
    GenerationInProgressError,
    InvalidInputError,
    MissingInputError,
    RooprasError,
    ServiceError,
)
from roopras.core.models import GenerationMode, GenerationResult, InputImage
from roopras.core.orchestrator import GenerationOrchestrator

__all__ = [
    "ConfigurationError",
    "EmptyResultError",
    "GenerationInProgressError",
    "GenerationMode",
    "GenerationOrchestrator",
    "GenerationResult",
    "InputImage",
    "InvalidInputError",
    "MissingInputError",
    "RooprasConfig",
    "RooprasError",
    "ServiceError",
    "config",
]
