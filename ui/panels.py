"""
Right-side panels: Results (JSON), Logs, Performance. Plus a logging handler
that feeds the Logs panel.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import (
    QLabel,
    QPlainTextEdit,
    QVBoxLayout,
    QWidget,
)


def _pretty_json(obj: Any) -> str:
    """Pretty-print dict/list for display."""
    try:
        return json.dumps(obj, indent=2, default=str)
    except (TypeError, ValueError):
        return str(obj)


class ResultsPanel(QWidget):
    """Shows the detections of the last published frame as JSON."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setPlaceholderText("Detections will appear here while capture is running.")
        layout.addWidget(self._text, stretch=1)

    def update_results(self, results: dict[str, Any] | None) -> None:
        self._text.setPlainText("" if results is None else _pretty_json(results))


class LogsPanel(QWidget):
    """Shows application log messages and errors."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._text = QPlainTextEdit(self)
        self._text.setReadOnly(True)
        self._text.setMaximumBlockCount(2000)
        layout.addWidget(self._text)

    def append(self, message: str) -> None:
        self._text.appendPlainText(message)
        # Auto-scroll to bottom
        scrollbar = self._text.verticalScrollBar()
        scrollbar.setValue(scrollbar.maximum())

    def clear(self) -> None:
        self._text.clear()


class PerformancePanel(QWidget):
    """Shows FPS, per-frame latency (ms), rolling average and face count."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        self._fps_label = QLabel()
        self._latency_label = QLabel()
        self._rolling_label = QLabel()
        self._faces_label = QLabel()
        for w in (self._fps_label, self._latency_label, self._rolling_label, self._faces_label):
            layout.addWidget(w)
        layout.addStretch()
        self.reset()

    def update_metrics(
        self, fps: float, latency_ms: float, rolling_avg_ms: float, faces: int
    ) -> None:
        self._fps_label.setText(f"FPS: {fps:.1f}")
        self._latency_label.setText(f"Latency (ms): {latency_ms:.1f}")
        self._rolling_label.setText(f"Rolling avg (ms): {rolling_avg_ms:.1f}")
        self._faces_label.setText(f"Faces: {faces}")

    def reset(self) -> None:
        self._fps_label.setText("FPS: —")
        self._latency_label.setText("Latency (ms): —")
        self._rolling_label.setText("Rolling avg (ms): —")
        self._faces_label.setText("Faces: —")


class _LogEmitter(QObject):
    message = Signal(str)


class QtLogHandler(logging.Handler):
    """Forwards log records to a LogsPanel; safe to use from worker threads."""

    def __init__(self, panel: LogsPanel, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._emitter = _LogEmitter()
        self._emitter.message.connect(panel.append)
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._emitter.message.emit(self.format(record))
        except Exception:  # noqa: BLE001
            self.handleError(record)
