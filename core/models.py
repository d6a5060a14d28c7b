"""
Shared data models and the unified results schema published with every frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

# Type alias for the unified results dict shown in the Results panel
UnifiedResults = dict[str, Any]

PIPELINE_NAME = "face_detector"


class SourceKind(str, Enum):
    FILE = "file"
    CAMERA = "camera"
    STREAM = "stream"


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass(frozen=True)
class VideoSource:
    """Where to read frames from. format_hint names a capture backend, None = auto."""

    locator: str
    format_hint: str | None = None


@dataclass(frozen=True)
class CaptureSession:
    source: VideoSource
    width: int
    height: int
    fps: float


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    def clamp(self, frame_width: int, frame_height: int) -> BoundingBox | None:
        """Clip the box to the frame. Returns None if nothing is left."""
        x1 = min(max(self.x, 0), frame_width)
        y1 = min(max(self.y, 0), frame_height)
        x2 = min(max(self.x + self.width, 0), frame_width)
        y2 = min(max(self.y + self.height, 0), frame_height)
        if x2 <= x1 or y2 <= y1:
            return None
        return BoundingBox(x1, y1, x2 - x1, y2 - y1)

    def inside(self, frame_width: int, frame_height: int) -> bool:
        return (
            0 <= self.x <= self.x + self.width <= frame_width
            and 0 <= self.y <= self.y + self.height <= frame_height
        )

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Detection:
    box: BoundingBox
    label: str


def label_detections(boxes: list[BoundingBox]) -> tuple[Detection, ...]:
    """Attach "Face N" labels in detector order (1-based)."""
    return tuple(Detection(box, f"Face {i + 1}") for i, box in enumerate(boxes))


def frame_size(frame: np.ndarray) -> tuple[int, int]:
    """(width, height) of a frame."""
    h, w = frame.shape[:2]
    return int(w), int(h)


def pixel_format(frame: np.ndarray) -> str:
    return "gray" if frame.ndim == 2 or frame.shape[2] == 1 else "bgr"


@dataclass(frozen=True)
class PublishedFrame:
    """Annotated frame plus its detections, as handed to the display sink."""

    image: np.ndarray
    detections: tuple[Detection, ...]
    index: int
    timestamp_s: float
    fps: float = 0.0
    latency_ms: float = 0.0
    rolling_avg_ms: float = 0.0
    detection_enabled: bool = True

    def to_results(self) -> UnifiedResults:
        return unified_results_schema(
            PIPELINE_NAME,
            self.timestamp_s,
            detections=[
                {"label": d.label, "bbox": d.box.as_dict()} for d in self.detections
            ],
            metadata={
                "frame_index": self.index,
                "num_faces": len(self.detections),
                "detection_enabled": self.detection_enabled,
            },
        )


def unified_results_schema(
    pipeline: str,
    timestamp_s: float,
    detections: list[Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> UnifiedResults:
    """Build a results dict that conforms to the unified schema."""
    return {
        "pipeline": pipeline,
        "timestamp_s": timestamp_s,
        "detections": detections if detections is not None else [],
        "metadata": metadata if metadata is not None else {},
    }
