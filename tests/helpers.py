import threading

import numpy as np

from core.recognition import BoundingBox, Detection
from core.recognition.backend import RecognitionBackend
from core.vision import CameraError


class StubBackend(RecognitionBackend):
    """Recognition backend driven by plain dictionaries.

    ``references`` maps an image ref to its embedding (None = no face,
    Exception instance = raise). ``detections`` is returned by every
    ``detect_all`` call.
    """

    name = "stub"

    def __init__(self, references=None, detections=None, load_ok=True):
        self.references = dict(references or {})
        self.detections = list(detections or [])
        self.load_ok = load_ok
        self.loaded = False
        self.detect_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.detect_error = None
        self.detect_gate = None
        self.detect_started = threading.Event()
        self._lock = threading.Lock()

    def load_models(self):
        self.loaded = self.load_ok
        return self.load_ok

    def embed(self, image):
        value = self.references[image]
        if isinstance(value, Exception):
            raise value
        return value

    def detect_all(self, image):
        with self._lock:
            self.detect_calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.detect_started.set()
        try:
            if self.detect_gate is not None:
                self.detect_gate.wait(timeout=5)
            if self.detect_error is not None:
                raise self.detect_error
            return list(self.detections)
        finally:
            with self._lock:
                self.in_flight -= 1


class FakeCamera:
    def __init__(self, width=640, height=480, fail_open=False):
        self.width = width
        self.height = height
        self.fail_open = fail_open
        self.opened = False
        self.start_count = 0
        self.stop_count = 0

    def start(self):
        if self.fail_open:
            raise CameraError("Cannot open camera index 0")
        self.opened = True
        self.start_count += 1

    def stop(self):
        self.opened = False
        self.stop_count += 1

    def is_open(self):
        return self.opened

    def read(self):
        if not self.opened:
            raise CameraError("Camera is not running")
        return np.zeros((self.height, self.width, 3), dtype=np.uint8)

    def frame_size(self):
        return (self.width, self.height)


def vec(*values):
    return np.array(values, dtype=np.float64)


def detection(embedding, x=10, y=10, w=40, h=40):
    return Detection(box=BoundingBox(x, y, w, h), embedding=np.asarray(embedding, dtype=np.float64))


