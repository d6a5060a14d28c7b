"""
Frame grabber: owns one OpenCV capture bound to a VideoSource.
Open once, grab frames, close (idempotent).
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import cv2
import numpy as np

from core.camera_list import find_camera_index
from core.errors import AlreadyOpenError, EndOfStreamError, GrabError, SourceOpenError
from core.models import CaptureSession, VideoSource

logger = logging.getLogger(__name__)

# Device format hint -> OpenCV capture API
FORMAT_BACKENDS: dict[str, int] = {
    "dshow": cv2.CAP_DSHOW,
    "video4linux2": cv2.CAP_V4L2,
    "v4l2": cv2.CAP_V4L2,
    "avfoundation": cv2.CAP_AVFOUNDATION,
}

CaptureFactory = Callable[..., Any]


def is_network_locator(locator: str) -> bool:
    return "://" in locator


class FrameGrabber:
    """Single capture handle. Not thread-safe; the pipeline worker is its only user."""

    def __init__(
        self,
        capture_factory: CaptureFactory = cv2.VideoCapture,
        stream_timeout_ms: int = 5000,
    ) -> None:
        self._capture_factory = capture_factory
        self._stream_timeout_ms = stream_timeout_ms
        self._cap: Any | None = None
        self._session: CaptureSession | None = None

    def open(
        self, source: VideoSource, width: int, height: int, fps: float
    ) -> CaptureSession:
        """Open the source and request resolution/frame rate (advisory)."""
        if self._cap is not None:
            raise AlreadyOpenError(
                f"Capture already open on {self._session.source.locator if self._session else '?'}"
            )
        target, api = self._backend_target(source)
        if is_network_locator(source.locator) and source.format_hint is None:
            params = [
                cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, self._stream_timeout_ms,
                cv2.CAP_PROP_READ_TIMEOUT_MSEC, self._stream_timeout_ms,
            ]
            cap = self._capture_factory(target, api, params)
        else:
            cap = self._capture_factory(target, api)
        if not cap.isOpened():
            cap.release()
            raise SourceOpenError(f"Could not open video source {source.locator!r}")
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        cap.set(cv2.CAP_PROP_FPS, fps)
        self._cap = cap
        self._session = CaptureSession(source, width, height, fps)
        actual_w, actual_h = self.get_size()
        logger.info(
            "Opened %s (backend hint %s), requested %dx%d@%.0f, got %dx%d@%.1f",
            source.locator, source.format_hint or "auto", width, height, fps,
            actual_w, actual_h, self.get_fps(),
        )
        return self._session

    def _backend_target(self, source: VideoSource) -> tuple[int | str, int]:
        """Translate (locator, format hint) into what cv2.VideoCapture takes."""
        hint = source.format_hint
        if hint is None:
            return source.locator, cv2.CAP_ANY
        api = FORMAT_BACKENDS.get(hint.lower())
        if api is None:
            raise SourceOpenError(f"Unknown capture backend hint {hint!r}")
        locator = source.locator
        if hint.lower() == "dshow":
            # DirectShow names look like "video=Integrated Camera"
            name = locator.split("=", 1)[1] if locator.startswith("video=") else locator
            if name.isdigit():
                return int(name), api
            index = find_camera_index(name)
            if index is None:
                raise SourceOpenError(f"No DirectShow camera named {name!r}")
            return index, api
        if hint.lower() == "avfoundation":
            try:
                return int(locator), api
            except ValueError:
                raise SourceOpenError(
                    f"AVFoundation expects a numeric device index, got {locator!r}"
                ) from None
        return locator, api

    def grab_one(self) -> np.ndarray:
        """Read the next frame. Raises GrabError (EndOfStreamError at end of file)."""
        if self._cap is None:
            raise GrabError("Capture is not open")
        try:
            ok, frame = self._cap.read()
        except cv2.error as e:
            raise GrabError(f"Backend read failed: {e}") from e
        if ok and frame is not None and frame.size > 0:
            return frame
        if self._at_end_of_file():
            raise EndOfStreamError(f"End of stream: {self._session.source.locator}")
        raise GrabError("Failed to read frame from source")

    def _at_end_of_file(self) -> bool:
        if self._cap is None or self._session is None:
            return False
        if is_network_locator(self._session.source.locator) or self._session.source.format_hint:
            return False
        total = self._cap.get(cv2.CAP_PROP_FRAME_COUNT)
        pos = self._cap.get(cv2.CAP_PROP_POS_FRAMES)
        return total > 0 and pos >= total

    def close(self) -> None:
        """Release the current source. Safe to call repeatedly."""
        cap, self._cap = self._cap, None
        session, self._session = self._session, None
        if cap is None:
            return
        cap.release()
        logger.info("Released %s", session.source.locator if session else "capture")

    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    @property
    def session(self) -> CaptureSession | None:
        return self._session

    def get_fps(self) -> float:
        """Reported source FPS, falling back to the requested rate."""
        if self._cap is None:
            return 30.0
        fps = self._cap.get(cv2.CAP_PROP_FPS)
        if fps and fps > 0:
            return float(fps)
        return self._session.fps if self._session else 30.0

    def get_size(self) -> tuple[int, int]:
        """(width, height) of the stream."""
        if self._cap is None:
            return 0, 0
        w = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        h = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return w, h

    def __enter__(self) -> FrameGrabber:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
