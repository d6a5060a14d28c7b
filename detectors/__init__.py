# Detectors: face detector interface and the Haar-cascade implementation

from detectors.base import FaceDetectorBase
from detectors.haar import HaarCascadeDetector, load_detector

__all__ = ["FaceDetectorBase", "HaarCascadeDetector", "load_detector"]
