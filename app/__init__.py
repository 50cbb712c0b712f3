"""
App package initialization
Khởi tạo Flask application và các dịch vụ điểm danh
"""
import atexit
import threading
from functools import partial
from pathlib import Path

from flask import Flask

import config
from logging_config import setup_logging
from app import globals as app_globals
from app.models import EventBroadcaster
from core.attendance import AttendanceTracker
from core.recognition import (
    EnrollmentLoader,
    load_image,
    load_roster,
    roster_from_faces_dir,
    validate_roster,
)
from core.session import AttendanceSession
from core.vision import CameraConfig, CameraManager, VideoStream
from services import AttendanceSync, create_backend


def _load_roster(app):
    """Ưu tiên file roster JSON, nếu không có thì duyệt thư mục ảnh mẫu"""
    roster_file = Path(app.config['ROSTER_FILE'])
    if roster_file.exists():
        roster = load_roster(roster_file)
        app.logger.info(f"[STARTUP] Roster loaded from {roster_file}: {len(roster)} students")
        return roster

    roster = roster_from_faces_dir(app.config['FACES_DIR'], extensions=app.config['ALLOWED_EXTENSIONS'])
    if roster:
        app.logger.info(f"[STARTUP] Roster built from {app.config['FACES_DIR']}: {len(roster)} students")
    else:
        app.logger.warning("[STARTUP] ⚠️ Roster is empty (no roster file, no face images)")
    return roster


def _init_backend(app):
    """Khởi tạo backend nhận diện theo cấu hình"""
    name = app.config['RECOGNITION_BACKEND']
    if name == 'deepface':
        options = {
            'model_name': app.config['DEEPFACE_MODEL_NAME'],
            'detector_backend': app.config['DEEPFACE_DETECTOR_BACKEND'],
        }
    else:
        options = {
            'detection_model': app.config['FACE_DETECTION_MODEL'],
            'upsample_times': app.config['FACE_UPSAMPLE_TIMES'],
            'num_jitters': app.config['FACE_NUM_JITTERS'],
        }
    return create_backend(name, **options)


def _init_stream(app):
    camera = CameraManager(CameraConfig(
        index=app.config['CAMERA_INDEX'],
        width=app.config['CAMERA_WIDTH'],
        height=app.config['CAMERA_HEIGHT'],
        warmup_frames=app.config['CAMERA_WARMUP_FRAMES'],
        buffer_size=app.config['CAMERA_BUFFER_SIZE'],
    ))
    return VideoStream(camera, logger=app.logger)


# Chỉ một hook atexit cho cả tiến trình; app mới thay thế app cũ
_shutdown_hook = None
_atexit_registered = False


def _run_shutdown_hook():
    hook = _shutdown_hook
    if hook is not None:
        hook()


def _set_shutdown_hook(hook):
    global _shutdown_hook, _atexit_registered
    previous, _shutdown_hook = _shutdown_hook, hook
    if previous is not None:
        # app_globals đã trỏ sang app mới: giải phóng camera của app cũ
        previous()
    if not _atexit_registered:
        atexit.register(_run_shutdown_hook)
        _atexit_registered = True


def create_app(config_overrides=None, *, backend=None, stream=None, roster=None):
    """Factory function để tạo Flask application"""
    app = Flask(__name__)
    app.config.from_object(config)
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app, log_level=app.config['LOG_LEVEL'], log_dir=app.config['LOG_DIR'])

    # =============================================================================
    # INITIALIZE SERVICES
    # =============================================================================

    # 1. Roster
    roster = validate_roster(roster) if roster is not None else _load_roster(app)

    # 2. Recognition backend + camera stream
    if backend is None:
        backend = _init_backend(app)
    if stream is None:
        stream = _init_stream(app)
    app.logger.info(f"[STARTUP] ✅ Recognition backend: {backend.name}")

    # 3. AttendanceTracker + listeners
    tracker = AttendanceTracker([identity.name for identity in roster], logger=app.logger)
    broadcaster = EventBroadcaster(logger=app.logger)
    tracker.add_listener(broadcaster.broadcast_attendance_update)

    sync = None
    if app.config['ATTENDANCE_API_URL']:
        sync = AttendanceSync(
            app.config['ATTENDANCE_API_URL'],
            student_ids={identity.name: identity.remote_id for identity in roster},
            timeout=app.config['ATTENDANCE_API_TIMEOUT'],
        )
        tracker.add_listener(sync.submit)
        app.logger.info(f"[STARTUP] ✅ Attendance sync enabled: {sync.endpoint}")

    # 4. AttendanceSession
    enroller = EnrollmentLoader(
        backend,
        image_loader=partial(
            load_image,
            base_dir=app.config['FACES_DIR'],
            timeout=app.config['IMAGE_FETCH_TIMEOUT'],
        ),
        max_workers=app.config['ENROLLMENT_WORKERS'],
        logger=app.logger,
    )
    display_size = None
    if app.config['DISPLAY_WIDTH'] > 0 and app.config['DISPLAY_HEIGHT'] > 0:
        display_size = (app.config['DISPLAY_WIDTH'], app.config['DISPLAY_HEIGHT'])

    session = AttendanceSession(
        roster=roster,
        backend=backend,
        stream=stream,
        tracker=tracker,
        enroller=enroller,
        distance_threshold=app.config['FACE_DISTANCE_THRESHOLD'],
        interval_ms=app.config['SAMPLING_INTERVAL_MS'],
        detection_scale=app.config['DETECTION_SCALE'],
        display_size=display_size,
        logger=app.logger,
    )
    session.add_phase_listener(
        lambda phase, message: broadcaster.broadcast_session_update(phase.value, message)
    )

    app_globals.roster = roster
    app_globals.attendance_session = session
    app_globals.attendance_tracker = tracker
    app_globals.event_broadcaster = broadcaster
    app_globals.attendance_sync = sync
    app.logger.info("[STARTUP] ✅ All services initialized successfully")

    def _shutdown():
        session.stop()
        broadcaster.cleanup()
        if sync is not None:
            sync.close(wait=False)

    app.extensions['attendance_shutdown'] = _shutdown
    _set_shutdown_hook(_shutdown)

    from app.routes import register_blueprints
    register_blueprints(app)

    if app.config['AUTO_START_SESSION']:
        threading.Thread(target=session.setup, name='session-setup', daemon=True).start()

    return app
