"""
Recognition backends and outbound integrations.

Heavy libraries (dlib, TensorFlow) are imported only when a backend loads
its models, not when this package is imported.
"""

from .face_recognition_backend import FaceRecognitionBackend
from .deepface_backend import DeepFaceBackend
from .attendance_sync import AttendanceSync

BACKENDS = {
    FaceRecognitionBackend.name: FaceRecognitionBackend,
    DeepFaceBackend.name: DeepFaceBackend,
}


def create_backend(name: str, **options):
    """Tạo backend nhận diện theo tên cấu hình (RECOGNITION_BACKEND)."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown recognition backend: {name} (choose from {sorted(BACKENDS)})")
    return backend_cls(**options)


__all__ = [
    'FaceRecognitionBackend',
    'DeepFaceBackend',
    'AttendanceSync',
    'BACKENDS',
    'create_backend',
]
