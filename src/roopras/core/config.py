"""Configuration management for RoopRas.

Configuration is loaded with Pydantic Settings. Values come from environment
variables with the ``ROOPRAS_`` prefix, then from a ``.env`` file in the
working directory, then from the defaults declared on :class:`RooprasConfig`.

The API key is the one exception to the prefix rule: it is also read from the
plain ``GEMINI_API_KEY`` or ``API_KEY`` variables so an existing Gemini setup
works unchanged.

Example .env file:
    ROOPRAS_API_KEY=your-key-here
    ROOPRAS_AVATAR_MODEL_ID=imagen-4.0-generate-001
    ROOPRAS_TRANSFORM_MODEL_ID=gemini-2.5-flash-image
    ROOPRAS_LOG_LEVEL=DEBUG

Global Configuration Instance
------------------------------
A global ``config`` instance is created at import time and is the single
source of truth for the application. A missing API key does not fail at
import; it fails with :class:`~roopras.core.errors.ConfigurationError` when
:meth:`RooprasConfig.require_api_key` is called, which happens before any
request is dispatched.

Usage Example
-------------
    from roopras.core.config import config

    print(config.avatar_model_id)
    key = config.require_api_key()
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError


class RooprasConfig(BaseSettings):
    """Main configuration for RoopRas.

    Attributes
    ----------
    Credentials:
        api_key : SecretStr | None
            Key for the generative-image service.

    Model Settings:
        avatar_model_id : str
            Text-to-image model used for random avatars
        transform_model_id : str
            Image+text-to-image model used for style transforms
        output_mime_type : str
            Requested output format for avatar generation
        avatar_aspect_ratio : str
            Requested aspect ratio for avatar generation
        request_timeout_ms : int | None
            HTTP timeout handed to the SDK client (None keeps the SDK default)

    Prompt Settings:
        vocabulary_file : Path | None
            JSON feature vocabulary to use instead of the built-in one

    Input Settings:
        max_input_bytes : int
            Largest accepted input image for style transforms

    Server Settings:
        server_host : str
            Bind address for the API server
        server_port : int
            Port for the API server (1024-65535)
        log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR"]
            Level for the ``roopras`` logger

    Examples
    --------
        >>> cfg = RooprasConfig(api_key="test-key", server_port=9000)
        >>> cfg.require_api_key()
        'test-key'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ROOPRAS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("ROOPRAS_API_KEY", "GEMINI_API_KEY", "API_KEY"),
        description="API key for the generative-image service",
    )

    avatar_model_id: str = Field(
        default="imagen-4.0-generate-001",
        description="Text-to-image model for random avatars",
    )
    transform_model_id: str = Field(
        default="gemini-2.5-flash-image",
        description="Image+text-to-image model for style transforms",
    )
    output_mime_type: str = Field(
        default="image/png",
        description="Output format requested for avatar generation",
    )
    avatar_aspect_ratio: str = Field(
        default="1:1",
        description="Aspect ratio requested for avatar generation",
    )
    request_timeout_ms: int | None = Field(
        default=None,
        description="HTTP timeout for the SDK client in milliseconds",
        ge=1,
    )

    vocabulary_file: Path | None = Field(
        default=None,
        description="JSON file replacing the built-in avatar feature vocabulary",
    )

    max_input_bytes: int = Field(
        default=20 * 1024 * 1024,
        description="Maximum accepted input image size in bytes",
        ge=1,
    )

    server_host: str = Field(
        default="127.0.0.1",
        description="Server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for the roopras logger",
    )

    def require_api_key(self) -> str:
        """Return the API key, or fail before any request is attempted.

        Returns:
            The plain API key string

        Raises:
            ConfigurationError: If no key is configured or the key is blank
        """
        if self.api_key is None:
            raise ConfigurationError(
                "API key is not set. Set ROOPRAS_API_KEY (or GEMINI_API_KEY) in the environment."
            )
        key = self.api_key.get_secret_value().strip()
        if not key:
            raise ConfigurationError("API key is empty. Provide a valid ROOPRAS_API_KEY.")
        return key


# Global configuration instance, loaded from ROOPRAS_* variables and .env.
config = RooprasConfig()
