from __future__ import annotations


class ImageToolError(Exception):
    """Base class for errors surfaced to tool callers.

    ``kind`` is the machine-readable category reported alongside the message.
    """

    kind = "ImageToolError"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgumentError(ImageToolError):
    """Raised before any API call when the arguments cannot be honoured."""

    kind = "InvalidArgument"


class GenerationFailedError(ImageToolError):
    """Raised when the API answered but returned no image part."""

    kind = "GenerationFailed"


class UpstreamError(ImageToolError):
    """Raised when the image API call fails, or reading or writing an image file does."""

    kind = "UpstreamFailure"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)

    @classmethod
    def wrap(cls, exc: BaseException) -> "UpstreamError":
        detail = str(exc) or exc.__class__.__name__
        return cls(f"Error generating image: {detail}", cause=exc)


class UnknownToolError(ImageToolError):
    kind = "UnknownTool"
