# Core: sources, capture, rendering, scheduling, pipeline controller

from core.capture import FrameGrabber
from core.config import PipelineConfig
from core.controller import PipelineController
from core.models import PipelineState, SourceKind, VideoSource
from core.sources import resolve_source

__all__ = [
    "FrameGrabber",
    "PipelineConfig",
    "PipelineController",
    "PipelineState",
    "SourceKind",
    "VideoSource",
    "resolve_source",
]
