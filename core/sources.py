"""
Video source resolution: (source kind, platform, config) -> VideoSource.

Camera selection is table-driven; supporting a new platform means adding a
PLATFORM_CAMERAS entry.
"""

from __future__ import annotations

import sys
from enum import Enum
from typing import Callable

from core.config import PipelineConfig, parse_source_kind
from core.errors import InvalidConfigurationError, UnsupportedPlatformError
from core.models import SourceKind, VideoSource


class PlatformId(str, Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"


# Camera locator and capture backend per platform.
# Backend hints are FFmpeg-style device format names, mapped to OpenCV APIs in core.capture.
PLATFORM_CAMERAS: dict[PlatformId, Callable[[PipelineConfig], VideoSource]] = {
    PlatformId.WINDOWS: lambda cfg: VideoSource(f"video={cfg.camera_name}", "dshow"),
    PlatformId.LINUX: lambda cfg: VideoSource(cfg.camera_device, "video4linux2"),
    PlatformId.MACOS: lambda cfg: VideoSource(str(cfg.camera_index), "avfoundation"),
}


def platform_id(sys_platform: str | None = None) -> PlatformId | str:
    """Map a sys.platform value to PlatformId; unknown platforms are returned unchanged."""
    name = sys.platform if sys_platform is None else sys_platform
    if isinstance(name, PlatformId):
        return name
    lowered = name.lower()
    if lowered in ("win32", "cygwin", "windows"):
        return PlatformId.WINDOWS
    if lowered.startswith("linux"):
        return PlatformId.LINUX
    if lowered in ("darwin", "macos"):
        return PlatformId.MACOS
    return name


def resolve_source(
    kind: SourceKind | str,
    platform: PlatformId | str,
    config: PipelineConfig,
) -> VideoSource:
    """Pick the concrete source for a kind. Pure: no I/O."""
    kind = parse_source_kind(kind)
    if kind is SourceKind.FILE:
        return VideoSource(config.video_file, None)
    if kind is SourceKind.STREAM:
        return VideoSource(config.stream_url, None)
    if kind is SourceKind.CAMERA:
        pid = platform_id(platform)
        factory = PLATFORM_CAMERAS.get(pid) if isinstance(pid, PlatformId) else None
        if factory is None:
            raise UnsupportedPlatformError(str(platform))
        return factory(config)
    raise InvalidConfigurationError(f"Unhandled video source kind {kind!r}")
