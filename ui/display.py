"""
Bridge between the pipeline worker thread and the Qt GUI thread.
Emitting a signal from the worker queues delivery on the GUI thread, so present()
returns immediately.
"""

from __future__ import annotations

import numpy as np
from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from core.models import PipelineState, PublishedFrame


class QtPipelineBridge(QObject):
    """Display sink and listener target for PipelineController."""

    # Emit PublishedFrame
    frame_ready = Signal(object)
    # Emit error message
    error_occurred = Signal(str)
    # Emit PipelineState value ("idle", "running", "stopping")
    state_changed = Signal(str)

    def present(self, frame: PublishedFrame) -> None:
        self.frame_ready.emit(frame)

    def report_error(self, error: Exception) -> None:
        self.error_occurred.emit(f"{type(error).__name__}: {error}")

    def report_state(self, state: PipelineState) -> None:
        self.state_changed.emit(state.value)


def bgr_to_qimage(frame: np.ndarray) -> QImage:
    """Copy a BGR (or grayscale) uint8 frame into a QImage that owns its pixels."""
    h, w = frame.shape[:2]
    # Published frames are read-only; hand Qt a private buffer
    buf = np.ascontiguousarray(frame).tobytes()
    if frame.ndim == 2:
        img = QImage(buf, w, h, w, QImage.Format.Format_Grayscale8)
    else:
        img = QImage(buf, w, h, 3 * w, QImage.Format.Format_BGR888)
    # QImage only references buf until copied
    return img.copy()
