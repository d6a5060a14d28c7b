"""
Draws detections onto frames and hands annotated frames to a display sink.
"""

from __future__ import annotations

from typing import Protocol, Sequence

import cv2
import numpy as np

from core.models import Detection, PublishedFrame, pixel_format

BOX_COLOR = (0, 255, 0)  # BGR
BOX_THICKNESS = 3
LABEL_FONT = cv2.FONT_HERSHEY_SIMPLEX
LABEL_SCALE = 0.8
LABEL_OFFSET = 5


class DisplaySink(Protocol):
    """Receives published frames. present() must return quickly (no blocking on the UI)."""

    def present(self, frame: PublishedFrame) -> None: ...


def label_origin(det: Detection) -> tuple[int, int]:
    """Text baseline for a label: above the box, or just inside its top edge when there is no room."""
    (_, text_h), _ = cv2.getTextSize(det.label, LABEL_FONT, LABEL_SCALE, 1)
    box = det.box
    if box.y - LABEL_OFFSET >= text_h:
        return box.x, box.y - LABEL_OFFSET
    return box.x + LABEL_OFFSET, box.y + text_h + LABEL_OFFSET


class Renderer:
    def annotate(self, frame: np.ndarray, detections: Sequence[Detection]) -> np.ndarray:
        """Return a BGR copy of frame with a box and label per detection."""
        if pixel_format(frame) == "gray":
            annotated = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGR)
        else:
            annotated = frame.copy()
        for det in detections:
            box = det.box
            cv2.rectangle(
                annotated,
                (box.x, box.y),
                (box.x + box.width, box.y + box.height),
                BOX_COLOR,
                BOX_THICKNESS,
                cv2.LINE_AA,
            )
            cv2.putText(
                annotated,
                det.label,
                label_origin(det),
                LABEL_FONT,
                LABEL_SCALE,
                BOX_COLOR,
            )
        return annotated

    def publish(self, frame: PublishedFrame, sink: DisplaySink) -> None:
        # Published snapshots are shared with the UI thread
        frame.image.flags.writeable = False
        sink.present(frame)
