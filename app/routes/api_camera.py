"""
API routes for camera and video feed
Video MJPEG có vẽ khung nhận diện
"""
import time

from flask import Blueprint, Response, jsonify, stream_with_context

from app import globals as app_globals
from core.vision import VisionPipeline

camera_api_bp = Blueprint('camera_api', __name__)

FEED_INTERVAL_SECONDS = 0.1


def _mjpeg_part(jpeg: bytes) -> bytes:
    return b'--frame\r\nContent-Type: image/jpeg\r\n\r\n' + jpeg + b'\r\n'


def generate_frames():
    session = app_globals.attendance_session
    placeholder, placeholder_message = None, None
    while True:
        jpeg = session.latest_frame()
        if jpeg is None:
            # Chưa có khung hình: hiển thị trạng thái phiên
            message = session.status()['message']
            if message != placeholder_message:
                placeholder, placeholder_message = VisionPipeline.placeholder(message), message
            jpeg = placeholder
        if jpeg is not None:
            yield _mjpeg_part(jpeg)
        time.sleep(FEED_INTERVAL_SECONDS)


@camera_api_bp.route('/video_feed')
def video_feed():
    """Video feed cho camera"""
    return Response(
        stream_with_context(generate_frames()),
        mimetype='multipart/x-mixed-replace; boundary=frame'
    )


@camera_api_bp.route('/api/camera/status', methods=['GET'])
def camera_status():
    session = app_globals.attendance_session
    stream = session.stream
    size = stream.dimensions()
    return jsonify({
        'success': True,
        'state': stream.state.value,
        'resolution': f"{size[0]}x{size[1]}" if size else None,
        'has_frame': session.latest_frame() is not None,
    })
