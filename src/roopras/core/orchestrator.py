"""Single-request generation lifecycle.

:class:`GenerationOrchestrator` is the one entry point callers use to turn a
mode selection (and, for style transforms, an uploaded image) into image
bytes. One call runs through these steps:

1. Validate preconditions for the mode (input image present and decodable)
2. Resolve the API client (``ConfigurationError`` if no key is configured)
3. Compose the prompt with :class:`~roopras.core.prompt_builder.PromptComposer`
4. Build the request with the mode's model adapter
5. Dispatch it to the endpoint exactly once
6. Extract the image bytes with the adapter's extractor

State Machine
-------------
``IDLE -> COMPOSING -> DISPATCHED -> SUCCEEDED | FAILED``

Each call starts from ``IDLE``. The orchestrator enforces single-flight: a
call made while another is composing or dispatched is rejected with
``GenerationInProgressError`` and does not touch the outstanding request.
No retries and no partial results: each call ends in exactly one
:class:`~roopras.core.models.GenerationResult` or one typed error.

Usage Example
-------------
    >>> import asyncio
    >>> from roopras.core.orchestrator import GenerationOrchestrator
    >>> from roopras.core.models import GenerationMode
    >>> orchestrator = GenerationOrchestrator()
    >>> result = asyncio.run(orchestrator.generate(GenerationMode.RANDOM_AVATAR))
    >>> result.mime_type
    'image/png'
"""

import logging
import time
from typing import Any

from google import genai
from google.genai import types

from .config import RooprasConfig
from .config import config as default_config
from .errors import (
    EmptyResultError,
    GenerationInProgressError,
    InvalidInputError,
    RooprasError,
    ServiceError,
)
from .model_adapters import ModelAdapterBase, ModelRegistry, model_registry
from .models import (
    GenerationMode,
    GenerationResult,
    GenerationState,
    InputImage,
    ModeRequest,
    RandomAvatarRequest,
    TransformRequest,
)
from .prompt_builder import FeatureVocabulary, PromptComposer
from .validation import validate_input_image

logger = logging.getLogger(__name__)


def as_mode_request(
    mode: GenerationMode | ModeRequest | str, input_image: InputImage | None = None
) -> ModeRequest:
    """Normalize a mode selector into its tagged request variant.

    Args:
        mode: ``GenerationMode``, its string value, or an already built variant
        input_image: Image for style-transform mode

    Returns:
        ``RandomAvatarRequest`` or ``TransformRequest``

    Raises:
        InvalidInputError: If the mode is not recognized
    """
    if isinstance(mode, (RandomAvatarRequest, TransformRequest)):
        return mode

    try:
        mode = GenerationMode(mode)
    except ValueError as e:
        raise InvalidInputError(f"Unknown generation mode: {mode!r}") from e
    if mode is GenerationMode.RANDOM_AVATAR:
        return RandomAvatarRequest()
    return TransformRequest(input_image=input_image)


class GenerationOrchestrator:
    """Own the lifecycle of one generation request at a time.

    Attributes
    ----------
    config : RooprasConfig
        Configuration used for the client and the adapters
    composer : PromptComposer
        Prompt source; inject one with a seeded random source for tests
    state : GenerationState
        State of the current (or most recent) call
    last_error : RooprasError | None
        Error of the most recent failed call, cleared when a new call starts

    Notes
    -----
    - The SDK client is created on first use from ``config.require_api_key()``
      unless one is passed in
    - Adapters are instantiated once per mode and reused
    """

    def __init__(
        self,
        config: RooprasConfig | None = None,
        client: Any | None = None,
        composer: PromptComposer | None = None,
        registry: ModelRegistry | None = None,
    ) -> None:
        self.config = config or default_config
        if composer is None:
            vocabulary = None
            if self.config.vocabulary_file is not None:
                vocabulary = FeatureVocabulary.from_file(self.config.vocabulary_file)
            composer = PromptComposer(vocabulary=vocabulary)
        self.composer = composer
        self._client = client
        self._registry = registry or model_registry
        self._adapters: dict[GenerationMode, ModelAdapterBase] = {}
        self._state = GenerationState.IDLE
        self.last_error: RooprasError | None = None

    @property
    def state(self) -> GenerationState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state.is_busy

    def get_client(self) -> Any:
        """Return the SDK client, creating it from the configured key if needed.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if self._client is None:
            api_key = self.config.require_api_key()
            http_options = None
            if self.config.request_timeout_ms is not None:
                http_options = types.HttpOptions(timeout=self.config.request_timeout_ms)
            self._client = genai.Client(api_key=api_key, http_options=http_options)
            logger.info("Created generative-image client")
        return self._client

    def get_adapter(self, mode: GenerationMode) -> ModelAdapterBase:
        """Return the adapter serving ``mode``, instantiating it on first use."""
        if mode not in self._adapters:
            self._adapters[mode] = self._registry.instantiate_for_mode(mode, self.config)
        return self._adapters[mode]

    async def generate(
        self,
        mode: GenerationMode | ModeRequest | str,
        input_image: InputImage | None = None,
    ) -> GenerationResult:
        """Generate one image for the given mode.

        Args:
            mode: Mode selector or tagged request variant
            input_image: Image to transform (style-transform mode only)

        Returns:
            GenerationResult holding the bytes exactly as the endpoint returned them

        Raises:
            GenerationInProgressError: If a call is already outstanding
            MissingInputError: If style transform is requested without an image
            InvalidInputError: If the mode is unknown or the input image is not a decodable image
            ConfigurationError: If no API key is configured
            ServiceError: If the endpoint call fails
            EmptyResultError: If the endpoint returns no image
        """
        if self._state.is_busy:
            raise GenerationInProgressError(
                "A generation is already in progress. Wait for it to finish."
            )

        self._state = GenerationState.COMPOSING
        self.last_error = None
        try:
            result = await self._run(as_mode_request(mode, input_image))
        except RooprasError as e:
            self._state = GenerationState.FAILED
            self.last_error = e
            logger.error(f"Generation failed ({e.kind}): {e.message}")
            raise
        except BaseException:
            self._state = GenerationState.FAILED
            raise

        self._state = GenerationState.SUCCEEDED
        return result

    async def _run(self, request: ModeRequest) -> GenerationResult:
        mode = request.mode
        image = None
        if isinstance(request, TransformRequest):
            image = validate_input_image(request.input_image, self.config.max_input_bytes)

        client = self.get_client()
        adapter = self.get_adapter(mode)

        prompt = self.composer.compose(mode, image)
        logger.info(f"Prompt ({mode.value}): {prompt.text}")
        generation_request = adapter.build_request(prompt, image)

        self._state = GenerationState.DISPATCHED
        start_time = time.time()
        try:
            response = await adapter.dispatch(client, generation_request)
        except Exception as e:
            raise ServiceError(f"Failed to generate image: {e}", cause=e) from e
        elapsed = time.time() - start_time

        data = adapter.extract_image(response)
        if not data:
            raise EmptyResultError("No image was returned. Please try again.")
        mime_type = adapter.extract_mime_type(response) or generation_request.output_mime_type

        logger.info(
            f"Generated image with {generation_request.model_id} in {elapsed:.2f}s ({len(data)} bytes)"
        )
        return GenerationResult(
            image_bytes=data,
            mode=mode,
            model_id=generation_request.model_id,
            prompt=generation_request.prompt,
            mime_type=mime_type,
            metadata={"selections": dict(prompt.selections), "elapsed_seconds": elapsed},
        )
