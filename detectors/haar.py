"""
Haar-cascade face detector (OpenCV CascadeClassifier).
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from core.config import DEFAULT_CLASSIFIER
from core.errors import ResourceLoadError
from core.model_loader import get_classifier_path
from core.models import BoundingBox, frame_size
from detectors.base import FaceDetectorBase

logger = logging.getLogger(__name__)

# Fixed detection parameters
SCALE_FACTOR = 1.1
MIN_NEIGHBORS = 3
MIN_SIZE = (30, 30)


class HaarCascadeDetector(FaceDetectorBase):
    def __init__(self, classifier: cv2.CascadeClassifier) -> None:
        self._classifier: cv2.CascadeClassifier | None = classifier

    def detect(self, frame: np.ndarray) -> list[BoundingBox]:
        if self._classifier is None or frame is None or frame.size == 0:
            return []
        if frame.ndim == 3 and frame.shape[2] == 3:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        elif frame.ndim == 3 and frame.shape[2] == 4:
            gray = cv2.cvtColor(frame, cv2.COLOR_BGRA2GRAY)
        else:
            gray = frame.reshape(frame.shape[:2])
        # Histogram equalization improves detection under uneven lighting
        gray = cv2.equalizeHist(gray)
        faces = self._classifier.detectMultiScale(
            gray,
            scaleFactor=SCALE_FACTOR,
            minNeighbors=MIN_NEIGHBORS,
            minSize=MIN_SIZE,
        )
        width, height = frame_size(frame)
        boxes: list[BoundingBox] = []
        for (x, y, w, h) in faces:
            box = BoundingBox(int(x), int(y), int(w), int(h)).clamp(width, height)
            if box is None:
                logger.debug("Dropped out-of-frame detection (%d, %d, %d, %d)", x, y, w, h)
                continue
            boxes.append(box)
        return boxes

    def close(self) -> None:
        self._classifier = None


def load_detector(
    path: str | Path | None = None, name: str = DEFAULT_CLASSIFIER
) -> HaarCascadeDetector:
    """Load a cascade from path, or look up the named cascade (frontal face by default)."""
    resolved = Path(path) if path is not None else get_classifier_path(name)
    if not resolved.is_file():
        raise ResourceLoadError(f"Classifier file not found: {resolved}")
    try:
        classifier = cv2.CascadeClassifier(str(resolved))
    except (cv2.error, SystemError) as e:
        raise ResourceLoadError(f"Could not parse classifier {resolved}: {e}") from e
    if classifier.empty():
        raise ResourceLoadError(f"Could not load classifier from {resolved}")
    logger.info("Loaded face classifier %s", resolved)
    return HaarCascadeDetector(classifier)
