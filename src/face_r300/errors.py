"""Error types raised while creating and comparing R300 face templates."""

from __future__ import annotations


class FaceRecognitionError(Exception):
    """Base class for failures in the face template pipeline."""

    default_message = "Face recognition failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class FaceDetectionFailure(FaceRecognitionError):
    """Re-detection could not match every original face to exactly one detection."""

    default_message = "Face detection failed"


class FaceAlignmentFailure(FaceRecognitionError):
    """A face could not be warped into the canonical template geometry."""

    default_message = "Face alignment failed"


class ImageEncodingFailure(FaceRecognitionError):
    """An aligned face image could not be serialized to JPEG."""

    default_message = "Image encoding failed"


class FaceTemplateExtractionFailed(FaceRecognitionError):
    """The embedding backend did not return usable templates."""

    default_message = "Face template extraction failed"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TemplateDimensionMismatch(FaceRecognitionError, ValueError):
    """Two templates with different vector lengths were compared."""

    default_message = "Face templates have different dimensions"

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"Expected a template with {expected} values, got {actual}")
        self.expected = expected
        self.actual = actual


class FaceRecognitionInitializationError(Exception):
    """Base class for configuration problems detected at construction time."""


class MissingAPIKeyError(FaceRecognitionInitializationError):
    def __init__(self) -> None:
        super().__init__("Missing API key (set FACE_R300_API_KEY or pass api_key)")


class MissingServerURLError(FaceRecognitionInitializationError):
    def __init__(self) -> None:
        super().__init__("Missing server URL (set FACE_R300_SERVER_URL or pass url)")


class InvalidServerURLError(FaceRecognitionInitializationError):
    def __init__(self, url: str) -> None:
        super().__init__(f"Server URL {url!r} is invalid")
        self.url = url
