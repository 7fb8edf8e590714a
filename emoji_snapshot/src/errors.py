"""
Error taxonomy for the capture cycle and model loading.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Failure causes surfaced to the user, each with its message."""

    MODEL_LOAD_FAILED = "Failed to load emotion detection models. Please refresh the page."
    CAMERA_NOT_READY = "Camera not ready. Please wait or refresh the page."
    CAPTURE_FAILED = "Failed to capture image. Please try again."
    DECODE_FAILED = "Failed to read the captured image. Please try again."
    NO_FACE_DETECTED = "No face detected. Please face the camera and try again."
    SCORING_FAILED = "Failed to analyze facial expressions. Please try again."

    @property
    def message(self) -> str:
        return self.value


class CaptureError(Exception):
    """A capture cycle step failed; carries the user-facing kind."""

    def __init__(self, kind: ErrorKind, detail: Optional[str] = None):
        super().__init__(detail or kind.message)
        self.kind = kind


class ImageDecodeError(ValueError):
    """Captured bytes could not be decoded into an image."""


class ModelLoadError(RuntimeError):
    """A model artifact could not be fetched or loaded."""

    def __init__(self, artifact: str, reason: str):
        super().__init__(f"Could not load {artifact}: {reason}")
        self.artifact = artifact
