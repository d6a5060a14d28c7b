import pytest

from core.config import DEFAULT_VIDEO_FILE, PipelineConfig, parse_source_kind
from core.errors import InvalidConfigurationError
from core.models import SourceKind


def test_defaults():
    cfg = PipelineConfig()
    assert cfg.source_kind is SourceKind.FILE
    assert (cfg.width, cfg.height, cfg.fps) == (640, 480, 30.0)
    assert cfg.tick_interval_ms == 30
    assert cfg.tick_interval_s == pytest.approx(0.03)
    assert cfg.video_file == DEFAULT_VIDEO_FILE


def test_source_kind_string_is_parsed():
    assert PipelineConfig(source_kind="camera").source_kind is SourceKind.CAMERA


def test_unknown_source_kind_rejected():
    with pytest.raises(InvalidConfigurationError):
        PipelineConfig(source_kind="satellite")
    with pytest.raises(InvalidConfigurationError):
        parse_source_kind("")


@pytest.mark.parametrize(
    "overrides",
    [{"width": 0}, {"height": -1}, {"fps": 0}, {"tick_interval_ms": 0}, {"stop_timeout_s": -1}],
)
def test_invalid_numbers_rejected(overrides):
    with pytest.raises(InvalidConfigurationError):
        PipelineConfig(**overrides)


def test_from_env():
    cfg = PipelineConfig.from_env(
        {
            "FACEVIEW_SOURCE_KIND": "stream",
            "FACEVIEW_STREAM_URL": "rtsp://cam.local:554/live",
            "FACEVIEW_CAMERA_INDEX": "2",
            "FACEVIEW_FPS": "15",
            "FACEVIEW_BACKEND_LOG": "yes",
            "FACEVIEW_WIDTH": "",
            "UNRELATED": "x",
        }
    )
    assert cfg.source_kind is SourceKind.STREAM
    assert cfg.stream_url == "rtsp://cam.local:554/live"
    assert cfg.camera_index == 2
    assert cfg.fps == 15.0
    assert cfg.backend_log is True
    assert cfg.width == 640


def test_from_env_bad_number():
    with pytest.raises(InvalidConfigurationError, match="FACEVIEW_CAMERA_INDEX"):
        PipelineConfig.from_env({"FACEVIEW_CAMERA_INDEX": "front"})


def test_with_overrides_skips_none():
    cfg = PipelineConfig().with_overrides(video_file=None, stream_url="rtmp://h:1/x", source_kind="stream")
    assert cfg.video_file == DEFAULT_VIDEO_FILE
    assert cfg.stream_url == "rtmp://h:1/x"
    assert cfg.source_kind is SourceKind.STREAM
