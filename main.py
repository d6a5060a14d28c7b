"""
Face Viewer: entry point.
Run: python main.py [--source file|camera|stream] [--file PATH] [--url URL] [--headless]
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Sequence

# Keep Qt's own debug chatter out of the console
os.environ.setdefault("QT_LOGGING_RULES", "*.debug=false;qt.qpa.*=false")

from core.config import PipelineConfig
from core.controller import PipelineController
from core.errors import PipelineError, ResourceLoadError
from core.log import configure_logging, set_backend_logging
from core.models import PublishedFrame, SourceKind
from detectors import FaceDetectorBase, load_detector

logger = logging.getLogger("face_viewer")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live face detection viewer")
    parser.add_argument("--source", choices=[k.value for k in SourceKind], help="video source kind")
    parser.add_argument("--file", dest="video_file", help="video file for --source file")
    parser.add_argument("--url", dest="stream_url", help="stream URL for --source stream")
    parser.add_argument("--camera-name", help="DirectShow camera name (Windows)")
    parser.add_argument("--camera-device", help="V4L2 device path (Linux)")
    parser.add_argument("--camera-index", type=int, help="AVFoundation device index (macOS)")
    parser.add_argument("--classifier", dest="classifier_path", help="Haar cascade XML file")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument(
        "--backend-log", action="store_true", default=None,
        help="show OpenCV/FFmpeg backend log output",
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="run without a window and log detections until the source ends",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    return PipelineConfig.from_env().with_overrides(
        source_kind=args.source,
        video_file=args.video_file,
        stream_url=args.stream_url,
        camera_name=args.camera_name,
        camera_device=args.camera_device,
        camera_index=args.camera_index,
        classifier_path=args.classifier_path,
        log_level=args.log_level,
        backend_log=args.backend_log,
    )


def load_face_detector(config: PipelineConfig) -> tuple[FaceDetectorBase | None, str | None]:
    """Load the classifier; on failure return (None, message) and keep running without detection."""
    try:
        return load_detector(config.classifier_path, config.classifier_name), None
    except ResourceLoadError as e:
        logger.error("Face classifier unavailable, detection disabled: %s", e)
        return None, str(e)


class LoggingSink:
    """Display sink for --headless: logs each frame's detections."""

    def present(self, frame: PublishedFrame) -> None:
        if frame.detections:
            logger.info(
                "frame %d: %s",
                frame.index,
                ", ".join(f"{d.label} at {d.box.as_dict()}" for d in frame.detections),
            )
        else:
            logger.debug("frame %d: no faces", frame.index)


def run_headless(config: PipelineConfig, detector: FaceDetectorBase | None) -> int:
    errors: list[Exception] = []
    controller = PipelineController(
        config, sink=LoggingSink(), detector=detector, on_error=errors.append
    )
    try:
        controller.start()
    except PipelineError as e:
        logger.error("Could not start capture: %s", e)
        return 1
    try:
        while not controller.wait_until_idle(0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        controller.dispose()
    logger.info("Processed %d frames", controller.frames_processed)
    return 1 if errors else 0


def run_gui(config: PipelineConfig, detector: FaceDetectorBase | None, detector_error: str | None) -> int:
    from PySide6.QtWidgets import QApplication

    from ui.main_window import MainWindow

    app = QApplication(sys.argv[:1])
    window = MainWindow(config, detector, detector_error)
    window.show()
    window.start_capture()
    return app.exec()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
    except PipelineError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)
    set_backend_logging(config.backend_log)
    detector, detector_error = load_face_detector(config)
    if args.headless:
        return run_headless(config, detector)
    return run_gui(config, detector, detector_error)


if __name__ == "__main__":
    sys.exit(main())
