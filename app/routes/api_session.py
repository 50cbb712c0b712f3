"""
API routes for the attendance session
Bắt đầu / dừng / tạm dừng phiên điểm danh
"""
import threading

from flask import Blueprint, current_app, jsonify, request

from app import globals as app_globals
from app.utils import parse_bool
from core.vision import CameraError

session_api_bp = Blueprint('session_api', __name__, url_prefix='/api/session')


@session_api_bp.route('/status', methods=['GET'])
def api_session_status():
    session = app_globals.attendance_session
    return jsonify({'success': True, 'session': session.status()})


@session_api_bp.route('/start', methods=['POST'])
def api_session_start():
    """Khởi động phiên; mặc định chạy nền vì tải model và học khuôn mặt mất vài giây."""
    session = app_globals.attendance_session
    if parse_bool(request.args.get('wait'), default=False):
        session.setup()
        status = session.status()
        code = 200 if status['ready'] else 409
        return jsonify({'success': status['ready'], 'session': status}), code

    threading.Thread(target=session.setup, name='session-setup', daemon=True).start()
    return jsonify({'success': True, 'session': session.status()}), 202


@session_api_bp.route('/stop', methods=['POST'])
def api_session_stop():
    session = app_globals.attendance_session
    session.stop()
    return jsonify({'success': True, 'session': session.status()})


@session_api_bp.route('/pause', methods=['POST'])
def api_session_pause():
    session = app_globals.attendance_session
    if not session.pause():
        return jsonify({'success': False, 'message': 'Phiên điểm danh chưa bắt đầu', 'session': session.status()}), 409
    return jsonify({'success': True, 'session': session.status()})


@session_api_bp.route('/resume', methods=['POST'])
def api_session_resume():
    session = app_globals.attendance_session
    try:
        resumed = session.resume()
    except CameraError as exc:
        current_app.logger.error("[Session] Cannot resume camera: %s", exc)
        return jsonify({'success': False, 'message': 'Không thể mở lại camera'}), 503
    if not resumed:
        return jsonify({'success': False, 'message': 'Phiên điểm danh chưa bắt đầu', 'session': session.status()}), 409
    return jsonify({'success': True, 'session': session.status()})
