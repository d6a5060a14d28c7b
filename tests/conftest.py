from __future__ import annotations

import threading
from typing import Any

import cv2
import numpy as np
import pytest

from core.capture import FrameGrabber
from core.config import PipelineConfig
from core.models import BoundingBox, PipelineState, PublishedFrame
from detectors.base import FaceDetectorBase


def blank_frame(width: int = 640, height: int = 480) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


class FakeCapture:
    """Stands in for cv2.VideoCapture. Serves `frames` frames, optionally failing at read `fail_at`."""

    def __init__(
        self,
        target: Any,
        api: int = cv2.CAP_ANY,
        params: list[int] | None = None,
        *,
        frames: int = 1000,
        fail_at: int | None = None,
        opened: bool = True,
        frame_count: int = 0,
    ) -> None:
        self.target = target
        self.api = api
        self.params = params
        self.frames = frames
        self.fail_at = fail_at
        self.opened = opened
        self.frame_count = frame_count
        self.reads = 0
        self.release_count = 0
        self.props: dict[int, float] = {}

    def isOpened(self) -> bool:
        return self.opened and self.release_count == 0

    def read(self) -> tuple[bool, np.ndarray | None]:
        index = self.reads
        self.reads += 1
        if self.fail_at is not None and index == self.fail_at:
            return False, None
        if index >= self.frames:
            return False, None
        return True, blank_frame()

    def set(self, prop: int, value: float) -> bool:
        self.props[prop] = value
        return True

    def get(self, prop: int) -> float:
        if prop == cv2.CAP_PROP_FRAME_COUNT:
            return float(self.frame_count)
        if prop == cv2.CAP_PROP_POS_FRAMES:
            return float(min(self.reads, self.frames))
        return float(self.props.get(prop, 0.0))

    def release(self) -> None:
        self.release_count += 1


class FakeCaptureFactory:
    """Callable passed as FrameGrabber(capture_factory=...). Records every capture it creates."""

    def __init__(self, **capture_kwargs: Any) -> None:
        self.capture_kwargs = capture_kwargs
        self.created: list[FakeCapture] = []

    def __call__(self, target: Any, api: int = cv2.CAP_ANY, params: list[int] | None = None) -> FakeCapture:
        cap = FakeCapture(target, api, params, **self.capture_kwargs)
        self.created.append(cap)
        return cap

    @property
    def last(self) -> FakeCapture:
        return self.created[-1]


class CountingGrabber(FrameGrabber):
    """FrameGrabber that counts open/close calls."""

    def __init__(self, factory: FakeCaptureFactory) -> None:
        super().__init__(capture_factory=factory)
        self.open_calls = 0
        self.close_calls = 0

    def open(self, *args: Any, **kwargs: Any):
        self.open_calls += 1
        return super().open(*args, **kwargs)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class FakeDetector(FaceDetectorBase):
    def __init__(self, boxes: list[BoundingBox] | None = None) -> None:
        self.boxes = boxes or []
        self.calls = 0
        self.closed = False

    def detect(self, frame: np.ndarray) -> list[BoundingBox]:
        self.calls += 1
        return list(self.boxes)

    def close(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self) -> None:
        self.frames: list[PublishedFrame] = []
        self._lock = threading.Lock()
        self.threads: set[str] = set()

    def present(self, frame: PublishedFrame) -> None:
        with self._lock:
            self.frames.append(frame)
            self.threads.add(threading.current_thread().name)


class StateRecorder:
    def __init__(self) -> None:
        self.states: list[PipelineState] = []
        self.errors: list[Exception] = []

    def on_state(self, state: PipelineState) -> None:
        self.states.append(state)

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)


@pytest.fixture
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        video_file=str(tmp_path / "clip.avi"),
        tick_interval_ms=1,
        stop_timeout_s=2.0,
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def recorder() -> StateRecorder:
    return StateRecorder()
