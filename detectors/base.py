"""
Base interface every face detector must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import numpy as np

    from core.models import BoundingBox


class FaceDetectorBase(ABC):
    """Stateless between calls once loaded. Not safe for concurrent calls on one instance."""

    @abstractmethod
    def detect(self, frame: np.ndarray) -> list[BoundingBox]:
        """
        Return face boxes in detection order. Every box lies inside the frame:
        0 <= x <= x + width <= frame width, same for y/height.
        """
        ...

    def close(self) -> None:
        """Release resources held by the loaded model."""
