import threading

import pytest

from core.recognition import EnrollmentLoader, MatchResult
from core.session import AttendanceSession, SessionPhase
from core.vision import StreamState, VideoStream
from helpers import FakeCamera, StubBackend, detection, vec


class CountingEnroller(EnrollmentLoader):
    def __init__(self, backend):
        super().__init__(backend, image_loader=lambda ref: ref, max_workers=2)
        self.calls = 0

    def enroll(self, roster):
        self.calls += 1
        return super().enroll(roster)


def _session(roster, backend, stream, **kwargs):
    enroller = CountingEnroller(backend)
    session = AttendanceSession(
        roster=roster,
        backend=backend,
        stream=stream,
        enroller=enroller,
        interval_ms=60_000,
        **kwargs,
    )
    return session, enroller


@pytest.fixture
def session(roster, backend, stream):
    session, _ = _session(roster, backend, stream)
    yield session
    session.stop()


def test_setup_reaches_ready(session, backend, camera):
    phases = []
    session.add_phase_listener(lambda phase, message: phases.append(phase))

    assert session.setup() is True

    assert session.phase is SessionPhase.READY
    assert phases == [
        SessionPhase.LOADING_MODELS,
        SessionPhase.STARTING_CAMERA,
        SessionPhase.ENROLLING,
        SessionPhase.READY,
    ]
    assert backend.loaded
    assert camera.start_count == 1
    assert session.enrolled_labels == ["Ashri Singh", "Sumit Sinha"]
    assert session.loop is not None and session.loop.running
    status = session.status()
    assert status["ready"] is True
    assert status["message"] == "Ready!"
    assert status["stream"] == "playing"


def test_no_learned_faces_is_terminal(roster, stream):
    backend = StubBackend(references={"ashri.jpg": None, "sumit.jpg": OSError("gone")})
    session, _ = _session(roster, backend, stream)

    assert session.setup() is False

    assert session.phase is SessionPhase.NO_IDENTITIES
    assert session.status()["message"] == "Error: No student faces learned."
    assert session.loop is None
    assert backend.detect_calls == 0
    assert session.setup() is False
    session.stop()


def test_model_failure_never_opens_camera(roster, camera, stream):
    backend = StubBackend(load_ok=False)
    session, _ = _session(roster, backend, stream)

    assert session.setup() is False

    assert session.phase is SessionPhase.SETUP_FAILED
    assert camera.start_count == 0
    assert session.status()["error"] == "Could not load recognition models"


def test_camera_failure_releases_listeners(roster, backend):
    stream = VideoStream(FakeCamera(fail_open=True))
    session, enroller = _session(roster, backend, stream)

    assert session.setup() is False

    assert session.phase is SessionPhase.SETUP_FAILED
    assert session.status()["message"] == "Webcam error. Please allow camera access."
    assert stream.listener_count("play") == 0
    assert stream.listener_count("ended") == 0
    assert enroller.calls == 0
    assert session.loop is None


def test_stop_keeps_attendance(session, stream, camera):
    session.setup()
    session.tracker.apply(MatchResult("Ashri Singh", 0.3))
    loop = session.loop

    session.stop()

    assert session.phase is SessionPhase.STOPPED
    assert loop.cancelled
    assert session.loop is None
    assert stream.state is StreamState.ENDED
    assert camera.stop_count == 1
    assert stream.listener_count("play") == 0
    assert session.tracker.is_present("Ashri Singh")
    assert not session.tracker.is_present("Sumit Sinha")


def test_stop_twice_is_harmless(session, camera):
    session.setup()
    session.stop()
    session.stop()

    assert camera.stop_count == 1


def test_resume_reuses_enrollment_and_replaces_loop(roster, backend, stream, camera):
    session, enroller = _session(roster, backend, stream)
    try:
        session.setup()
        first_loop = session.loop

        session.pause()
        assert stream.paused
        session.resume()

        assert enroller.calls == 1
        assert camera.start_count == 1
        assert first_loop.cancelled
        assert session.loop is not first_loop
        assert session.loop.running
        assert session.is_ready
    finally:
        session.stop()


def test_stream_end_cancels_sampling(session, stream):
    session.setup()
    loop = session.loop

    stream.end()

    assert loop.cancelled
    assert session.loop is None
    status = session.status()
    assert session.phase is SessionPhase.ENDED
    assert status["ready"] is False
    assert status["message"] == "Webcam stream ended."


def test_setup_again_after_stop(roster, backend, stream, camera):
    session, enroller = _session(roster, backend, stream)
    try:
        session.setup()
        session.stop()

        assert session.setup() is True
        assert camera.start_count == 2
        assert enroller.calls == 1
    finally:
        session.stop()


def test_context_manager_stops_session(roster, backend, stream):
    session, _ = _session(roster, backend, stream)

    with session as active:
        assert active.is_ready

    assert session.phase is SessionPhase.STOPPED


def test_resume_after_stream_end_restarts_sampling(session, stream, camera):
    session.setup()
    stream.end()

    assert session.resume() is True

    assert session.is_ready
    assert camera.start_count == 2
    assert session.loop is not None and session.loop.running


def test_resume_before_start_does_not_open_camera(roster, backend, stream, camera):
    session, _ = _session(roster, backend, stream)
    try:
        assert session.resume() is False
        assert session.pause() is False
        assert camera.start_count == 0

        assert session.setup() is True
        assert session.loop is not None
    finally:
        session.stop()


def test_setup_on_already_playing_stream(roster, backend, stream, camera):
    stream.play()
    session, _ = _session(roster, backend, stream)
    try:
        assert session.setup() is True

        assert session.phase is SessionPhase.READY
        assert camera.start_count == 1
    finally:
        session.stop()


def test_resume_after_stop_keeps_camera_closed(session, camera):
    session.setup()
    session.stop()

    assert session.resume() is False

    assert not camera.is_open()
    assert camera.start_count == 1
    assert session.phase is SessionPhase.STOPPED


def test_stop_releases_camera_after_running_pass(roster, stream, camera):
    backend = StubBackend(
        references={"ashri.jpg": vec(0.0, 0.0, 0.0), "sumit.jpg": vec(1.0, 1.0, 1.0)},
        detections=[detection(vec(0.0, 0.0, 0.0))],
    )
    backend.detect_gate = threading.Event()
    session, _ = _session(roster, backend, stream)
    session.setup()
    # the scheduler fires the first pass immediately and blocks in detection
    assert backend.detect_started.wait(timeout=3)

    stopper = threading.Thread(target=session.stop)
    stopper.start()
    stopper.join(timeout=0.2)

    assert stopper.is_alive()
    assert camera.stop_count == 0
    backend.detect_gate.set()
    stopper.join(timeout=3)
    assert camera.stop_count == 1
    assert backend.in_flight == 0
    assert session.tracker.snapshot().present_count == 0
