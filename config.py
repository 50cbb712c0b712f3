# config.py - Configuration and constants for the attendance system

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Flask app configuration
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
FLASK_HOST = os.getenv('FLASK_HOST', '0.0.0.0')
FLASK_PORT = int(os.getenv('FLASK_PORT', '5000'))
FLASK_DEBUG = os.getenv('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes')

# Bắt đầu phiên điểm danh ngay khi khởi động
AUTO_START_SESSION = os.getenv('AUTO_START_SESSION', '0') == '1'

# Camera configuration
CAMERA_INDEX = int(os.getenv('CAMERA_INDEX', '0'))
CAMERA_WIDTH = int(os.getenv('CAMERA_WIDTH', '640'))
CAMERA_HEIGHT = int(os.getenv('CAMERA_HEIGHT', '480'))
CAMERA_WARMUP_FRAMES = int(os.getenv('CAMERA_WARMUP_FRAMES', '3'))
CAMERA_BUFFER_SIZE = int(os.getenv('CAMERA_BUFFER_SIZE', '2'))

# Display size used for the annotated feed; 0 = use the camera's own size
DISPLAY_WIDTH = int(os.getenv('DISPLAY_WIDTH', '0'))
DISPLAY_HEIGHT = int(os.getenv('DISPLAY_HEIGHT', '0'))

# Frames are downscaled before detection for speed
DETECTION_SCALE = float(os.getenv('DETECTION_SCALE', '0.5'))
SAMPLING_INTERVAL_MS = max(20, int(os.getenv('SAMPLING_INTERVAL_MS', '200')))

# Face recognition configuration
RECOGNITION_BACKEND = os.getenv('RECOGNITION_BACKEND', 'face_recognition')
FACE_DISTANCE_THRESHOLD = float(os.getenv('FACE_DISTANCE_THRESHOLD', '0.6'))
FACE_DETECTION_MODEL = os.getenv('FACE_DETECTION_MODEL', 'hog')
FACE_UPSAMPLE_TIMES = int(os.getenv('FACE_UPSAMPLE_TIMES', '1'))
# Số lần lấy mẫu lại khi tính embedding ảnh mẫu (cao hơn = chính xác hơn nhưng chậm)
FACE_NUM_JITTERS = max(1, int(os.getenv('FACE_NUM_JITTERS', '1')))
DEEPFACE_MODEL_NAME = os.getenv('DEEPFACE_MODEL_NAME', 'Facenet512')
DEEPFACE_DETECTOR_BACKEND = os.getenv('DEEPFACE_DETECTOR_BACKEND', 'opencv')

# Roster / enrollment
DATA_DIR = Path(os.getenv('DATA_DIR', 'data'))
FACES_DIR = Path(os.getenv('FACES_DIR', str(DATA_DIR / 'faces')))
ROSTER_FILE = os.getenv('ROSTER_FILE', str(DATA_DIR / 'roster.json'))
ALLOWED_EXTENSIONS = {
    ext.strip().lower().lstrip('.')
    for ext in os.getenv('ALLOWED_EXTENSIONS', 'jpg,jpeg,png').split(',')
    if ext.strip()
}
# dlib / TensorFlow models are not documented as thread-safe: embed one image at a time
ENROLLMENT_WORKERS = max(1, int(os.getenv('ENROLLMENT_WORKERS', '1')))
IMAGE_FETCH_TIMEOUT = float(os.getenv('IMAGE_FETCH_TIMEOUT', '15'))

# Report
REPORT_TIMESTAMP_FORMAT = os.getenv('REPORT_TIMESTAMP_FORMAT', '%Y-%m-%d %H:%M:%S')

# Remote attendance backend (để trống = không đồng bộ)
ATTENDANCE_API_URL = os.getenv('ATTENDANCE_API_URL', '')
ATTENDANCE_API_TIMEOUT = float(os.getenv('ATTENDANCE_API_TIMEOUT', '2.0'))

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR', 'logs')
