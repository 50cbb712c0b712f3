import pytest

from core.recognition import EnrollmentLoader, Identity
from core.vision import VideoStream
from helpers import FakeCamera, StubBackend, vec


@pytest.fixture
def roster():
    return [
        Identity(name="Ashri Singh", image_ref="ashri.jpg", student_id="S1"),
        Identity(name="Sumit Sinha", image_ref="sumit.jpg", student_id="S2"),
    ]


@pytest.fixture
def backend():
    return StubBackend(references={
        "ashri.jpg": vec(0.0, 0.0, 0.0),
        "sumit.jpg": vec(1.0, 1.0, 1.0),
    })


@pytest.fixture
def camera():
    return FakeCamera()


@pytest.fixture
def stream(camera):
    return VideoStream(camera)


@pytest.fixture
def enroller(backend):
    return EnrollmentLoader(backend, image_loader=lambda ref: ref, max_workers=2)
