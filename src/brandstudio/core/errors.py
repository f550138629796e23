"""Exception hierarchy for Brand Studio.

Every error raised on purpose by the package derives from
:class:`BrandStudioError`.  The API layer maps the branches of this tree
onto HTTP status codes; library callers can catch the branch they care
about.

::

    BrandStudioError
    ├── ValidationError
    ├── NotFoundError
    ├── AnalysisError
    ├── GenerationError
    │   ├── ModelRefusalError
    │   └── NoImageGeneratedError
    └── StorageError
        ├── StorageQuotaExceededError
        └── StorageFullError
"""

from __future__ import annotations


class BrandStudioError(Exception):
    """Base class for all Brand Studio errors."""


class ValidationError(BrandStudioError):
    """User-friendly validation error.

    The message is intended to be displayed directly to the user.
    """


class NotFoundError(BrandStudioError):
    """A profile or gallery image does not exist."""


class AnalysisError(BrandStudioError):
    """Reference photos could not be turned into a description."""


class GenerationError(BrandStudioError):
    """Image generation did not produce an image."""


class ModelRefusalError(GenerationError):
    """The image model answered with text instead of an image.

    Attributes:
        refusal_text: The text returned by the model, verbatim.
    """

    def __init__(self, refusal_text: str) -> None:
        self.refusal_text = refusal_text
        super().__init__(f"Model refused image generation: {refusal_text}")


class NoImageGeneratedError(GenerationError):
    """The response carried neither an image nor any text."""

    def __init__(self, message: str = "No image generated. Please try a different prompt.") -> None:
        super().__init__(message)


class StorageError(BrandStudioError):
    """Base class for persistence failures."""


class StorageQuotaExceededError(StorageError):
    """A single write exceeded the storage quota.

    Recoverable: the repository retries once with a reduced payload.
    """


class StorageFullError(StorageError):
    """The reduced-payload write also failed.  Terminal, not retried."""

    def __init__(
        self,
        message: str = (
            "Storage full. Your settings cannot be saved anymore. "
            "Please clear browser data or remove some photos."
        ),
    ) -> None:
        super().__init__(message)
