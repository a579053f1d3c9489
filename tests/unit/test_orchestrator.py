"""Unit tests for GenerationOrchestrator.

The SDK client is always a mock. Tests are coroutines run by pytest-asyncio.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import (
    image_part,
    make_content_response,
    make_imagen_response,
    make_png,
    text_part,
)

from roopras.core.config import RooprasConfig
from roopras.core.errors import (
    ConfigurationError,
    EmptyResultError,
    GenerationInProgressError,
    InvalidInputError,
    MissingInputError,
    ServiceError,
)
from roopras.core.models import (
    GenerationMode,
    GenerationResult,
    GenerationState,
    InputImage,
    RandomAvatarRequest,
    TransformRequest,
)
from roopras.core.orchestrator import GenerationOrchestrator, as_mode_request
from roopras.core.prompt_builder import AVATAR_STYLE_CLAUSES, TRANSFORM_INSTRUCTION


def _no_network(client: MagicMock) -> None:
    client.aio.models.generate_images.assert_not_called()
    client.aio.models.generate_content.assert_not_called()


class TestAsModeRequest:
    """Tests for mode normalization."""

    def test_avatar_enum(self):
        assert as_mode_request(GenerationMode.RANDOM_AVATAR) == RandomAvatarRequest()

    def test_transform_string(self, input_image):
        request = as_mode_request("style-transform", input_image)
        assert request == TransformRequest(input_image=input_image)

    def test_variant_passthrough(self, input_image):
        request = TransformRequest(input_image=input_image)
        assert as_mode_request(request) is request

    def test_unknown(self):
        with pytest.raises(InvalidInputError, match="Unknown generation mode"):
            as_mode_request("sketch")


class TestRandomAvatarGeneration:
    """Tests for random-avatar mode."""

    async def test_returns_endpoint_bytes_unmodified(self, orchestrator, generated_bytes):
        result = await orchestrator.generate(GenerationMode.RANDOM_AVATAR)

        assert isinstance(result, GenerationResult)
        assert result.image_bytes == generated_bytes
        assert result.mode is GenerationMode.RANDOM_AVATAR
        assert result.model_id == "imagen-4.0-generate-001"
        assert result.mime_type == "image/png"
        assert result.prompt.endswith(AVATAR_STYLE_CLAUSES)
        assert set(result.metadata["selections"]) == {"head", "eyes", "mouth", "accessory", "flourish"}

    async def test_dispatches_exactly_once(self, orchestrator, fake_client):
        await orchestrator.generate(GenerationMode.RANDOM_AVATAR)

        fake_client.aio.models.generate_images.assert_awaited_once()
        fake_client.aio.models.generate_content.assert_not_called()

    async def test_prompt_sent_matches_result(self, orchestrator, fake_client):
        result = await orchestrator.generate(RandomAvatarRequest())
        sent = fake_client.aio.models.generate_images.call_args.kwargs["prompt"]
        assert sent == result.prompt

    async def test_empty_image_list(self, orchestrator, fake_client):
        fake_client.aio.models.generate_images.return_value = make_imagen_response()

        with pytest.raises(EmptyResultError):
            await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
        assert orchestrator.state is GenerationState.FAILED

    async def test_takes_first_of_several(self, orchestrator, fake_client):
        fake_client.aio.models.generate_images.return_value = make_imagen_response(b"a", b"b")
        result = await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
        assert result.image_bytes == b"a"

    async def test_input_image_not_required(self, orchestrator):
        result = await orchestrator.generate(GenerationMode.RANDOM_AVATAR, None)
        assert result.image_bytes


class TestStyleTransformGeneration:
    """Tests for style-transform mode."""

    async def test_returns_inline_image(
        self, orchestrator, fake_client, input_image, generated_bytes
    ):
        result = await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)

        assert result.image_bytes == generated_bytes
        assert result.mode is GenerationMode.STYLE_TRANSFORM
        assert result.prompt == TRANSFORM_INSTRUCTION
        assert result.model_id == "gemini-2.5-flash-image"
        fake_client.aio.models.generate_content.assert_awaited_once()
        fake_client.aio.models.generate_images.assert_not_called()

    async def test_sends_input_image(self, orchestrator, fake_client, input_image):
        await orchestrator.generate(TransformRequest(input_image=input_image))

        contents = fake_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert contents[0].inline_data.data == input_image.data

    async def test_result_labelled_with_returned_mime_type(
        self, orchestrator, fake_client, input_image
    ):
        """A JPEG segment is reported as JPEG, not the configured PNG."""
        jpeg = b"\xff\xd8\xff\xe0jpeg-bytes"
        fake_client.aio.models.generate_content.return_value = make_content_response(
            text_part("Done."), image_part(jpeg, mime_type="image/jpeg")
        )

        result = await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)

        assert result.image_bytes == jpeg
        assert result.mime_type == "image/jpeg"
        assert result.to_data_url().startswith("data:image/jpeg;base64,")

    async def test_unlabelled_segment_uses_requested_type(
        self, orchestrator, fake_client, input_image
    ):
        fake_client.aio.models.generate_content.return_value = make_content_response(
            image_part(b"img", mime_type=None)
        )
        result = await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)
        assert result.mime_type == "image/png"

    async def test_missing_input_no_network(self, orchestrator, fake_client):
        with pytest.raises(MissingInputError):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM)
        _no_network(fake_client)

    async def test_non_image_mime_no_network(self, orchestrator, fake_client, png_bytes):
        image = InputImage(data=png_bytes, mime_type="application/octet-stream")

        with pytest.raises(InvalidInputError) as exc_info:
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, image)

        assert not isinstance(exc_info.value, MissingInputError)
        _no_network(fake_client)

    async def test_undecodable_input_no_network(self, orchestrator, fake_client):
        image = InputImage(data=b"garbage", mime_type="image/png")
        with pytest.raises(InvalidInputError):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, image)
        _no_network(fake_client)

    async def test_oversized_input_no_network(self, fake_client):
        cfg = RooprasConfig(_env_file=None, api_key="k", max_input_bytes=10)
        orchestrator = GenerationOrchestrator(cfg, client=fake_client)
        image = InputImage(data=make_png(), mime_type="image/png")

        with pytest.raises(InvalidInputError, match="too large"):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, image)
        _no_network(fake_client)

    async def test_text_only_response(self, orchestrator, fake_client, input_image):
        fake_client.aio.models.generate_content.return_value = make_content_response(
            text_part("I can only describe it.")
        )
        with pytest.raises(EmptyResultError):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)

    async def test_first_image_segment_wins(self, orchestrator, fake_client, input_image):
        fake_client.aio.models.generate_content.return_value = make_content_response(
            text_part("Here"), image_part(b"first"), image_part(b"second")
        )
        result = await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)
        assert result.image_bytes == b"first"


class TestFailures:
    """Tests for configuration and service failures."""

    async def test_service_error_wraps_cause(self, orchestrator, fake_client):
        cause = RuntimeError("quota exhausted")
        fake_client.aio.models.generate_images.side_effect = cause

        with pytest.raises(ServiceError) as exc_info:
            await orchestrator.generate(GenerationMode.RANDOM_AVATAR)

        error = exc_info.value
        assert "quota exhausted" in error.message
        assert error.cause is cause
        assert error.__cause__ is cause
        assert orchestrator.last_error is error
        assert orchestrator.state is GenerationState.FAILED

    async def test_service_error_transform(self, orchestrator, fake_client, input_image):
        fake_client.aio.models.generate_content.side_effect = ConnectionError("reset by peer")

        with pytest.raises(ServiceError, match="reset by peer"):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM, input_image)

    async def test_no_retry_after_failure(self, orchestrator, fake_client):
        fake_client.aio.models.generate_images.side_effect = RuntimeError("boom")
        with pytest.raises(ServiceError):
            await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
        assert fake_client.aio.models.generate_images.await_count == 1

    async def test_unknown_mode_is_typed(self, orchestrator, fake_client):
        """An unknown mode fails as invalid input and is recorded."""
        with pytest.raises(InvalidInputError) as exc_info:
            await orchestrator.generate("sketch")

        assert orchestrator.last_error is exc_info.value
        assert orchestrator.state is GenerationState.FAILED
        _no_network(fake_client)

    async def test_missing_api_key_before_request(self):
        cfg = RooprasConfig(_env_file=None)
        orchestrator = GenerationOrchestrator(cfg)

        with patch("roopras.core.orchestrator.genai.Client") as client_cls:
            with pytest.raises(ConfigurationError):
                await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
            client_cls.assert_not_called()

    def test_client_created_from_key(self):
        cfg = RooprasConfig(_env_file=None, api_key="secret", request_timeout_ms=5000)
        orchestrator = GenerationOrchestrator(cfg)

        with patch("roopras.core.orchestrator.genai.Client") as client_cls:
            client = orchestrator.get_client()
            assert orchestrator.get_client() is client

        client_cls.assert_called_once()
        kwargs = client_cls.call_args.kwargs
        assert kwargs["api_key"] == "secret"
        assert kwargs["http_options"].timeout == 5000

    async def test_input_checked_before_api_key(self):
        """Caller errors are reported before configuration errors."""
        orchestrator = GenerationOrchestrator(RooprasConfig(_env_file=None))
        with pytest.raises(MissingInputError):
            await orchestrator.generate(GenerationMode.STYLE_TRANSFORM)


class TestStateMachine:
    """Tests for the per-request state machine and single-flight guard."""

    def test_initial_state(self, orchestrator):
        assert orchestrator.state is GenerationState.IDLE
        assert not orchestrator.is_busy
        assert orchestrator.last_error is None

    async def test_success_state(self, orchestrator):
        await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
        assert orchestrator.state is GenerationState.SUCCEEDED

    async def test_recovers_after_failure(self, orchestrator, fake_client, generated_bytes):
        fake_client.aio.models.generate_images.return_value = make_imagen_response()
        with pytest.raises(EmptyResultError):
            await orchestrator.generate(GenerationMode.RANDOM_AVATAR)

        fake_client.aio.models.generate_images.return_value = make_imagen_response(generated_bytes)
        result = await orchestrator.generate(GenerationMode.RANDOM_AVATAR)

        assert result.image_bytes == generated_bytes
        assert orchestrator.state is GenerationState.SUCCEEDED
        assert orchestrator.last_error is None

    async def test_overlapping_call_rejected(self, orchestrator, fake_client, generated_bytes):
        gate = asyncio.Event()
        states = []

        async def slow_generate(**kwargs):
            states.append(orchestrator.state)
            await gate.wait()
            return make_imagen_response(generated_bytes)

        fake_client.aio.models.generate_images = AsyncMock(side_effect=slow_generate)

        first = asyncio.create_task(orchestrator.generate(GenerationMode.RANDOM_AVATAR))
        for _ in range(5):
            await asyncio.sleep(0)

        assert orchestrator.is_busy
        with pytest.raises(GenerationInProgressError):
            await orchestrator.generate(GenerationMode.RANDOM_AVATAR)
        assert orchestrator.last_error is None

        gate.set()
        result = await first

        assert result.image_bytes == generated_bytes
        assert states == [GenerationState.DISPATCHED]
        assert fake_client.aio.models.generate_images.await_count == 1
        assert orchestrator.state is GenerationState.SUCCEEDED

    async def test_cancellation_marks_failed(self, orchestrator, fake_client):
        async def never(**kwargs):
            await asyncio.Event().wait()

        fake_client.aio.models.generate_images = AsyncMock(side_effect=never)
        task = asyncio.create_task(orchestrator.generate(GenerationMode.RANDOM_AVATAR))
        for _ in range(5):
            await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert orchestrator.state is GenerationState.FAILED
        assert not orchestrator.is_busy
