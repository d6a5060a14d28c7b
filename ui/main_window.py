"""
Main window: left sidebar (source kind, start/stop), center video, right tabs.
"""

from __future__ import annotations

import logging

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from core.config import PipelineConfig
from core.controller import PipelineController
from core.errors import PipelineError
from core.models import PipelineState, PublishedFrame, SourceKind
from detectors.base import FaceDetectorBase
from ui.display import QtPipelineBridge, bgr_to_qimage
from ui.panels import LogsPanel, PerformancePanel, QtLogHandler, ResultsPanel

logger = logging.getLogger(__name__)

_SOURCE_LABELS = {
    SourceKind.FILE: "Video file",
    SourceKind.CAMERA: "Camera",
    SourceKind.STREAM: "Network stream",
}


class MainWindow(QWidget):
    """Video view with Start/Stop; closing the window disposes the pipeline."""

    def __init__(
        self,
        config: PipelineConfig,
        detector: FaceDetectorBase | None,
        detector_error: str | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Face Viewer")
        self._config = config
        self._bridge = QtPipelineBridge(self)
        self._controller = PipelineController(
            config,
            sink=self._bridge,
            detector=detector,
            on_error=self._bridge.report_error,
            on_state_changed=self._bridge.report_state,
        )

        layout = QHBoxLayout(self)
        # --- Left sidebar ---
        sidebar = QWidget()
        sidebar_layout = QVBoxLayout(sidebar)
        sidebar_layout.addWidget(QLabel("Input"))
        self._source_combo = QComboBox()
        for kind, label in _SOURCE_LABELS.items():
            self._source_combo.addItem(label, kind.value)
        self._source_combo.setCurrentIndex(self._source_combo.findData(config.source_kind.value))
        sidebar_layout.addWidget(self._source_combo)
        self._start_stop_btn = QPushButton("Start")
        self._start_stop_btn.clicked.connect(self._on_start_stop)
        sidebar_layout.addWidget(self._start_stop_btn)
        self._detector_label = QLabel(
            "Detection: on" if detector is not None else "Detection: unavailable"
        )
        sidebar_layout.addWidget(self._detector_label)
        sidebar_layout.addStretch()
        layout.addWidget(sidebar)

        # --- Center: video ---
        self._video_label = QLabel()
        self._video_label.setMinimumSize(config.width, config.height)
        self._video_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._video_label.setStyleSheet("background-color: #1e1e1e; color: #888;")
        self._video_label.setText("No video")
        layout.addWidget(self._video_label, stretch=1)

        # --- Right: tabs ---
        tabs = QTabWidget()
        self._results_panel = ResultsPanel()
        tabs.addTab(self._results_panel, "Results")
        self._logs_panel = LogsPanel()
        tabs.addTab(self._logs_panel, "Logs")
        self._performance_panel = PerformancePanel()
        tabs.addTab(self._performance_panel, "Performance")
        layout.addWidget(tabs)

        self._log_handler = QtLogHandler(self._logs_panel)
        logging.getLogger().addHandler(self._log_handler)

        self._bridge.frame_ready.connect(self._on_frame_ready)
        self._bridge.error_occurred.connect(self._on_pipeline_error)
        self._bridge.state_changed.connect(self._on_state_changed)

        if detector_error:
            self._logs_panel.append(f"Face classifier unavailable: {detector_error}")
            self._logs_panel.append("Running in display-only mode.")
        self.resize(1200, 700)

    def start_capture(self) -> None:
        kind = self._source_combo.currentData()
        try:
            self._controller.start(kind)
        except PipelineError as e:
            logger.error("Could not start %s capture: %s", kind, e)

    def _on_start_stop(self) -> None:
        if self._controller.state is PipelineState.IDLE:
            self.start_capture()
        else:
            self._controller.stop()

    @Slot(object)
    def _on_frame_ready(self, frame: PublishedFrame) -> None:
        self._results_panel.update_results(frame.to_results())
        self._performance_panel.update_metrics(
            frame.fps, frame.latency_ms, frame.rolling_avg_ms, len(frame.detections)
        )
        pixmap = QPixmap.fromImage(bgr_to_qimage(frame.image))
        self._video_label.setPixmap(pixmap.scaled(
            self._video_label.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        ))

    @Slot(str)
    def _on_pipeline_error(self, message: str) -> None:
        self._logs_panel.append(f"Capture ended with error: {message}")

    @Slot(str)
    def _on_state_changed(self, state: str) -> None:
        running = state != PipelineState.IDLE.value
        self._start_stop_btn.setText("Stop" if running else "Start")
        self._source_combo.setEnabled(not running)
        if not running:
            self._performance_panel.reset()

    def closeEvent(self, event) -> None:
        self._controller.dispose()
        logging.getLogger().removeHandler(self._log_handler)
        event.accept()
