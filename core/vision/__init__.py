from .camera_manager import CameraConfig, CameraError, CameraManager, DefaultCameraProvider
from .stream import StreamState, VideoStream
from .pipeline import VisionFrame, VisionPipeline, scale_detections

__all__ = [
    'CameraConfig',
    'CameraError',
    'CameraManager',
    'DefaultCameraProvider',
    'StreamState',
    'VideoStream',
    'VisionFrame',
    'VisionPipeline',
    'scale_detections',
]
