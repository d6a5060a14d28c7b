"""
Startup configuration. Fixed once the pipeline is constructed.

Defaults can be overridden with FACEVIEW_* environment variables
(see PipelineConfig.from_env) and then by command-line flags in main.py.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from core.errors import InvalidConfigurationError
from core.models import SourceKind

_PROJECT_DIR = Path(__file__).resolve().parent.parent

# Sample clip shipped next to the project (resources/test.mp4)
DEFAULT_VIDEO_FILE = str(_PROJECT_DIR / "resources" / "test.mp4")
DEFAULT_STREAM_URL = "rtmp://127.0.0.1:9090/live/stream"
DEFAULT_CLASSIFIER = "haarcascade_frontalface_default.xml"

_ENV_PREFIX = "FACEVIEW_"


@dataclass(frozen=True)
class PipelineConfig:
    source_kind: SourceKind = SourceKind.FILE
    video_file: str = DEFAULT_VIDEO_FILE
    stream_url: str = DEFAULT_STREAM_URL
    # Per-platform camera selection
    camera_name: str = "Integrated Camera"  # Windows, DirectShow device name
    camera_device: str = "/dev/video0"  # Linux, V4L2 device path
    camera_index: int = 0  # macOS, AVFoundation index
    width: int = 640
    height: int = 480
    fps: float = 30.0
    tick_interval_ms: int = 30
    stop_timeout_s: float = 1.0
    stream_timeout_ms: int = 5000
    classifier_name: str = DEFAULT_CLASSIFIER
    classifier_path: str | None = None
    log_level: str = "INFO"
    backend_log: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "source_kind", parse_source_kind(self.source_kind))
        if self.width <= 0 or self.height <= 0:
            raise InvalidConfigurationError(
                f"Resolution must be positive, got {self.width}x{self.height}"
            )
        if self.fps <= 0:
            raise InvalidConfigurationError(f"Frame rate must be positive, got {self.fps}")
        if self.tick_interval_ms <= 0:
            raise InvalidConfigurationError(
                f"Tick interval must be positive, got {self.tick_interval_ms} ms"
            )
        if self.stop_timeout_s < 0:
            raise InvalidConfigurationError("Stop timeout cannot be negative")

    @property
    def tick_interval_s(self) -> float:
        return self.tick_interval_ms / 1000.0

    def with_overrides(self, **overrides: Any) -> PipelineConfig:
        """Copy with the given fields replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PipelineConfig:
        """Build a config from FACEVIEW_<FIELD> variables (e.g. FACEVIEW_SOURCE_KIND=camera)."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            values[f.name] = _coerce(f.name, f.type, raw)
        return cls(**values)


def parse_source_kind(kind: SourceKind | str) -> SourceKind:
    if isinstance(kind, SourceKind):
        return kind
    try:
        return SourceKind(str(kind).strip().lower())
    except ValueError:
        known = ", ".join(k.value for k in SourceKind)
        raise InvalidConfigurationError(
            f"Unknown video source kind {kind!r}. Known: {known}"
        ) from None


def _coerce(name: str, type_name: Any, raw: str) -> Any:
    """Convert an environment string to the field's type (annotations are strings here)."""
    type_str = str(type_name)
    try:
        if type_str == "bool":
            return raw.strip().lower() in {"1", "true", "yes", "on"}
        if type_str == "int":
            return int(raw)
        if type_str == "float":
            return float(raw)
    except ValueError:
        raise InvalidConfigurationError(
            f"Invalid value for {_ENV_PREFIX}{name.upper()}: {raw!r}"
        ) from None
    return raw
