"""Base classes and registry for model adapters.

Each generation mode is served by a different remote model family, and the
two families differ in both request shape and response shape. An adapter
encapsulates everything model-specific for one mode:

- Building the :class:`~roopras.core.models.GenerationRequest`
- Dispatching it once through the ``google-genai`` async client
- Extracting the image bytes from the model's response

Model Types
-----------
- **text-to-image**: prompt in, flat list of generated images out
  (e.g. Imagen via ``generate_images``)
- **image-edit**: image + prompt in, list of text/inline-image content
  segments out (e.g. Gemini image models via ``generate_content``)

Adding a Model
--------------
A new mode or model family only needs a new adapter class registered with
``model_registry``; the orchestrator looks adapters up by mode and never
branches on the model type.

    >>> from roopras.core.model_adapters import model_registry
    >>> from roopras.core.config import config
    >>> from roopras.core.models import GenerationMode
    >>> adapter = model_registry.instantiate_for_mode(GenerationMode.RANDOM_AVATAR, config)
    >>> adapter.model_id
    'imagen-4.0-generate-001'
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Literal

from .config import RooprasConfig
from .models import GenerationMode, GenerationRequest, InputImage
from .prompt_builder import PromptSpec

logger = logging.getLogger(__name__)


class ModelAdapterBase(ABC):
    """Abstract base class for all model adapters.

    Attributes
    ----------
    name : str
        Human-readable adapter name
    description : str
        Brief description of what the model does
    model_type : str
        Kind of generation the model performs
    mode : GenerationMode
        Generation mode this adapter serves
    config : RooprasConfig
        Configuration object containing model settings

    Notes
    -----
    - Adapters hold no per-request state; one instance can serve any number
      of sequential requests
    - ``dispatch`` must call the endpoint exactly once and must not retry
    - ``extract_image`` returns None when the response has no image; the
      orchestrator turns that into ``EmptyResultError``
    - ``extract_mime_type`` is optional; override it when the response
      labels its own image format
    """

    name: str = "Base Model Adapter"
    description: str = "Base class for model adapters"
    model_type: Literal["text-to-image", "image-edit"] = "text-to-image"
    mode: GenerationMode = GenerationMode.RANDOM_AVATAR
    version: str = "0.1.0"

    def __init__(self, config: RooprasConfig) -> None:
        """Initialize the model adapter.

        Args:
            config: Configuration object containing model settings
        """
        self.config = config
        logger.info(f"Initialized {self.name} adapter ({self.model_id})")

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Remote model identifier used for requests."""

    @abstractmethod
    def build_request(
        self, prompt: PromptSpec, input_image: InputImage | None = None
    ) -> GenerationRequest:
        """Build the request payload for this model.

        Args:
            prompt: Resolved prompt for this adapter's mode
            input_image: Validated input image, when the mode needs one

        Returns
        -------
        GenerationRequest
            Immutable request ready for dispatch
        """

    @abstractmethod
    async def dispatch(self, client: Any, request: GenerationRequest) -> Any:
        """Send the request to the endpoint exactly once.

        Args:
            client: ``google.genai.Client`` (or a stand-in with the same shape)
            request: Request built by :meth:`build_request`

        Returns
        -------
        Any
            The raw SDK response object
        """

    @abstractmethod
    def extract_image(self, response: Any) -> bytes | None:
        """Return the generated image bytes, or None if there are none."""

    def extract_mime_type(self, response: Any) -> str | None:
        """Return the MIME type the response reports for its image.

        None means the response does not say; the orchestrator then labels
        the result with the requested ``output_mime_type``.
        """
        return None

    def get_model_info(self) -> dict[str, Any]:
        """Get information about this model adapter."""
        return {
            "name": self.name,
            "description": self.description,
            "model_type": self.model_type,
            "mode": self.mode.value,
            "model_id": self.model_id,
            "version": self.version,
        }


class ModelRegistry:
    """Registry for managing available model adapters.

    Adapters are registered by name and indexed by the mode they serve. The
    most recently registered adapter for a mode wins.
    """

    def __init__(self) -> None:
        """Initialize the model registry."""
        self._adapters: dict[str, type[ModelAdapterBase]] = {}
        self._by_mode: dict[GenerationMode, str] = {}

    def register(self, adapter_class: type[ModelAdapterBase]) -> type[ModelAdapterBase]:
        """Register a model adapter class.

        Returns the class so the method can be used as a decorator.
        """
        adapter_name = adapter_class.name

        if adapter_name in self._adapters:
            logger.warning(f"Model adapter '{adapter_name}' is already registered, overwriting")

        self._adapters[adapter_name] = adapter_class
        self._by_mode[adapter_class.mode] = adapter_name
        logger.debug(f"Registered model adapter: {adapter_name} for {adapter_class.mode.value}")
        return adapter_class

    def instantiate(self, adapter_name: str, config: RooprasConfig) -> ModelAdapterBase:
        """Create an instance of a registered model adapter.

        Raises
        ------
        KeyError
            If adapter_name is not registered
        """
        if adapter_name not in self._adapters:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Model adapter '{adapter_name}' not found. Available adapters: {available}"
            )
        return self._adapters[adapter_name](config=config)

    def instantiate_for_mode(self, mode: GenerationMode, config: RooprasConfig) -> ModelAdapterBase:
        """Create an instance of the adapter serving ``mode``.

        Raises
        ------
        KeyError
            If no adapter serves the mode
        """
        if mode not in self._by_mode:
            raise KeyError(f"No model adapter registered for mode '{mode.value}'")
        return self.instantiate(self._by_mode[mode], config)

    def get_adapter_class(self, adapter_name: str) -> type[ModelAdapterBase] | None:
        """Get the adapter class for a given name."""
        return self._adapters.get(adapter_name)

    def list_available(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def list_modes(self) -> list[GenerationMode]:
        """List the modes that have an adapter."""
        return list(self._by_mode.keys())

    def get_adapter_info(self, adapter_name: str) -> dict[str, Any] | None:
        """Get information about a registered adapter, or None if unknown."""
        if adapter_name not in self._adapters:
            return None

        adapter_class = self._adapters[adapter_name]
        return {
            "name": adapter_class.name,
            "description": adapter_class.description,
            "model_type": adapter_class.model_type,
            "mode": adapter_class.mode.value,
            "version": adapter_class.version,
        }


# Global model registry instance
model_registry = ModelRegistry()
