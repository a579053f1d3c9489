"""Typed errors raised by the RoopRas generation core.

Every failure surfaced to a caller is one of the classes below. Callers are
expected to branch on the class (or on :attr:`RooprasError.kind`) and show
:attr:`RooprasError.message`; nothing else about the error needs inspecting.

Error Taxonomy
--------------
=============================  ================  ==============================
Error                          kind              Meaning
=============================  ================  ==============================
``ConfigurationError``         ``configuration`` Missing or invalid API key
``InvalidInputError``          ``invalid_input`` Input image is not usable
``MissingInputError``          ``missing_input`` Transform mode without image
``ServiceError``               ``service``       Endpoint or transport failure
``EmptyResultError``           ``empty_result``  Endpoint returned no image
``GenerationInProgressError``  ``busy``          Overlapping generate() call
=============================  ================  ==============================

No error here is retried automatically.
"""

from __future__ import annotations


class RooprasError(Exception):
    """Base class for all RoopRas errors.

    Attributes:
        message: Human-readable description, safe to show to the user.
        kind: Stable machine-readable identifier for the error class.
    """

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Return the ``{"kind", "message"}`` pair used by the API layer."""
        return {"kind": self.kind, "message": self.message}


class ConfigurationError(RooprasError):
    """The API key is missing or unusable. Fatal, not retryable."""

    kind = "configuration"


class InvalidInputError(RooprasError):
    """The caller supplied an input image that cannot be used."""

    kind = "invalid_input"


class MissingInputError(InvalidInputError):
    """Style-transform mode was requested without an input image."""

    kind = "missing_input"


class ServiceError(RooprasError):
    """The generation endpoint call failed.

    The underlying exception is kept on :attr:`cause` and is also chained as
    ``__cause__`` by the raising code.
    """

    kind = "service"

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class EmptyResultError(RooprasError):
    """The endpoint answered but the response carried no image."""

    kind = "empty_result"


class GenerationInProgressError(RooprasError):
    """A generation is already outstanding on this orchestrator."""

    kind = "busy"
