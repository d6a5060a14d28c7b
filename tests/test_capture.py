import cv2
import pytest

from conftest import FakeCaptureFactory
from core import capture as capture_module
from core.capture import FrameGrabber
from core.errors import AlreadyOpenError, EndOfStreamError, GrabError, SourceOpenError
from core.models import VideoSource


def test_open_file_applies_resolution_and_rate():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory)
    session = grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    cap = factory.last
    assert cap.target == "clip.mp4"
    assert cap.api == cv2.CAP_ANY
    assert cap.params is None
    assert cap.props[cv2.CAP_PROP_FRAME_WIDTH] == 640
    assert cap.props[cv2.CAP_PROP_FRAME_HEIGHT] == 480
    assert cap.props[cv2.CAP_PROP_FPS] == 30
    assert session.width == 640 and session.fps == 30
    assert grabber.session == session
    assert grabber.is_opened()


def test_open_twice_fails():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    with pytest.raises(AlreadyOpenError):
        grabber.open(VideoSource("other.mp4"), 640, 480, 30)
    assert len(factory.created) == 1


def test_open_failure_releases_and_raises():
    factory = FakeCaptureFactory(opened=False)
    grabber = FrameGrabber(capture_factory=factory)
    with pytest.raises(SourceOpenError):
        grabber.open(VideoSource("missing.mp4"), 640, 480, 30)
    assert factory.last.release_count == 1
    assert not grabber.is_opened()
    assert grabber.session is None


def test_stream_opens_with_timeouts():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory, stream_timeout_ms=1500)
    grabber.open(VideoSource("rtmp://127.0.0.1:9090/live/stream"), 640, 480, 30)
    assert factory.last.params == [
        cv2.CAP_PROP_OPEN_TIMEOUT_MSEC, 1500,
        cv2.CAP_PROP_READ_TIMEOUT_MSEC, 1500,
    ]


def test_v4l2_hint():
    factory = FakeCaptureFactory()
    FrameGrabber(capture_factory=factory).open(
        VideoSource("/dev/video0", "video4linux2"), 640, 480, 30
    )
    assert factory.last.target == "/dev/video0"
    assert factory.last.api == cv2.CAP_V4L2


def test_avfoundation_index():
    factory = FakeCaptureFactory()
    FrameGrabber(capture_factory=factory).open(VideoSource("0", "avfoundation"), 640, 480, 30)
    assert factory.last.target == 0
    assert factory.last.api == cv2.CAP_AVFOUNDATION


def test_avfoundation_rejects_non_numeric():
    grabber = FrameGrabber(capture_factory=FakeCaptureFactory())
    with pytest.raises(SourceOpenError):
        grabber.open(VideoSource("FaceTime HD", "avfoundation"), 640, 480, 30)


def test_dshow_name_resolved_to_index(monkeypatch):
    monkeypatch.setattr(
        capture_module, "find_camera_index", lambda name: 2 if name == "Integrated Camera" else None
    )
    factory = FakeCaptureFactory()
    FrameGrabber(capture_factory=factory).open(
        VideoSource("video=Integrated Camera", "dshow"), 640, 480, 30
    )
    assert factory.last.target == 2
    assert factory.last.api == cv2.CAP_DSHOW


def test_dshow_unknown_name(monkeypatch):
    monkeypatch.setattr(capture_module, "find_camera_index", lambda name: None)
    factory = FakeCaptureFactory()
    with pytest.raises(SourceOpenError, match="Integrated Camera"):
        FrameGrabber(capture_factory=factory).open(
            VideoSource("video=Integrated Camera", "dshow"), 640, 480, 30
        )
    assert factory.created == []


def test_unknown_hint():
    with pytest.raises(SourceOpenError):
        FrameGrabber(capture_factory=FakeCaptureFactory()).open(
            VideoSource("x", "gdigrab"), 640, 480, 30
        )


def test_grab_frames_then_end_of_stream():
    factory = FakeCaptureFactory(frames=2, frame_count=2)
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    assert grabber.grab_one().shape == (480, 640, 3)
    assert grabber.grab_one().shape == (480, 640, 3)
    with pytest.raises(EndOfStreamError):
        grabber.grab_one()


def test_read_failure_is_grab_error():
    factory = FakeCaptureFactory(fail_at=0)
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    with pytest.raises(GrabError) as exc_info:
        grabber.grab_one()
    assert not isinstance(exc_info.value, EndOfStreamError)


def test_stream_read_failure_is_never_end_of_stream():
    factory = FakeCaptureFactory(frames=0, frame_count=0)
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("rtsp://cam/live"), 640, 480, 30)
    with pytest.raises(GrabError) as exc_info:
        grabber.grab_one()
    assert not isinstance(exc_info.value, EndOfStreamError)


def test_grab_when_closed():
    with pytest.raises(GrabError):
        FrameGrabber(capture_factory=FakeCaptureFactory()).grab_one()


def test_close_is_idempotent():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory)
    grabber.close()
    grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    grabber.close()
    grabber.close()
    assert factory.last.release_count == 1
    assert grabber.session is None
    assert grabber.get_size() == (0, 0)


def test_reopen_after_close():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("a.mp4"), 640, 480, 30)
    grabber.close()
    grabber.open(VideoSource("b.mp4"), 640, 480, 30)
    assert len(factory.created) == 2


def test_context_manager_closes():
    factory = FakeCaptureFactory()
    with FrameGrabber(capture_factory=factory) as grabber:
        grabber.open(VideoSource("clip.mp4"), 640, 480, 30)
    assert factory.last.release_count == 1


def test_fps_falls_back_to_requested():
    factory = FakeCaptureFactory()
    grabber = FrameGrabber(capture_factory=factory)
    grabber.open(VideoSource("clip.mp4"), 640, 480, 25)
    factory.last.props[cv2.CAP_PROP_FPS] = 0
    assert grabber.get_fps() == 25
