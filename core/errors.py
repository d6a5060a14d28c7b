"""
Error types raised by the capture/detect/render pipeline.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class InvalidConfigurationError(PipelineError):
    """Unknown source kind or otherwise unusable configuration."""


class UnsupportedPlatformError(PipelineError):
    """No camera backend is known for the host platform."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"Camera capture is not supported on platform {platform!r}")
        self.platform = platform


class ResourceLoadError(PipelineError):
    """Classifier artifact missing or malformed."""


class SourceOpenError(PipelineError):
    """The capture backend could not open the video source."""


class AlreadyOpenError(SourceOpenError):
    """open() called on a grabber that already holds a capture."""


class GrabError(PipelineError):
    """A frame could not be read from an open source."""


class EndOfStreamError(GrabError):
    """The source has no more frames (end of file)."""
