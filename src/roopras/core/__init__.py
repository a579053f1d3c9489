"""Core functionality for avatar generation.

This module provides the core components of RoopRas:

- **PromptComposer**: Randomized avatar prompts and the fixed transform instruction
- **Model Adapters**: Per-mode request building, dispatch and image extraction
- **model_registry**: Registry mapping generation modes to adapters
- **GenerationOrchestrator**: Single-flight request lifecycle
- **RooprasConfig**: Configuration management using Pydantic Settings
- **config**: Global configuration instance (loads from environment variables)

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with ROOPRAS_ in .env files

2. **Prompt Layer** (prompt_builder.py):
   - Feature vocabulary with uniform random draws
   - Fixed style clauses per mode

3. **Model Adapter Layer** (model_adapters.py, adapters/):
   - Imagen text-to-image for random avatars
   - Gemini image+text-to-image for style transforms

4. **Orchestration Layer** (orchestrator.py):
   - Validation, dispatch, extraction and the per-request state machine

Usage Example
-------------
    import asyncio
    from roopras.core import GenerationOrchestrator, GenerationMode

    orchestrator = GenerationOrchestrator()
    result = asyncio.run(orchestrator.generate(GenerationMode.RANDOM_AVATAR))
    open("avatar.png", "wb").write(result.image_bytes)
"""

# Import adapters to ensure they're registered
from roopras.core.adapters import GeminiTransformAdapter, ImagenAvatarAdapter  # noqa: F401
from roopras.core.config import RooprasConfig, config
from roopras.core.model_adapters import ModelAdapterBase, model_registry
from roopras.core.models import (
    GenerationMode,
    GenerationResult,
    InputImage,
    RandomAvatarRequest,
    TransformRequest,
)
from roopras.core.orchestrator import GenerationOrchestrator
from roopras.core.prompt_builder import FeatureVocabulary, PromptComposer, PromptSpec

__all__ = [
    "FeatureVocabulary",
    "GenerationMode",
    "GenerationOrchestrator",
    "GenerationResult",
    "InputImage",
    "ModelAdapterBase",
    "model_registry",
    "PromptComposer",
    "PromptSpec",
    "RandomAvatarRequest",
    "RooprasConfig",
    "TransformRequest",
    "config",
]
