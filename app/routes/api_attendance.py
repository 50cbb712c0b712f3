"""
API routes for attendance
Danh sách điểm danh và xuất báo cáo CSV
"""
from flask import Blueprint, Response, current_app, jsonify

from logging_config import attendance_logger
from app import globals as app_globals
from core.attendance import REPORT_FILENAME, REPORT_MIMETYPE, render_csv

attendance_api_bp = Blueprint('attendance_api', __name__, url_prefix='/api/attendance')


@attendance_api_bp.route('', methods=['GET'])
def api_attendance_roll():
    snapshot = app_globals.attendance_tracker.snapshot()
    return jsonify({'success': True, **snapshot.to_dict()})


@attendance_api_bp.route('/<path:name>', methods=['GET'])
def api_attendance_student(name):
    entry = app_globals.attendance_tracker.get(name)
    if entry is None:
        return jsonify({'success': False, 'message': 'Không tìm thấy sinh viên'}), 404
    return jsonify({'success': True, 'student': entry.to_dict()})


@attendance_api_bp.route('/report', methods=['GET'])
def api_attendance_report():
    """Tải báo cáo điểm danh dạng CSV"""
    snapshot = app_globals.attendance_tracker.snapshot()
    csv_text = render_csv(
        snapshot,
        roster=[identity.name for identity in app_globals.roster],
        timestamp_format=current_app.config['REPORT_TIMESTAMP_FORMAT'],
    )
    attendance_logger.log_report_exported(len(snapshot), 'download')
    return Response(
        csv_text,
        mimetype=REPORT_MIMETYPE,
        headers={'Content-Disposition': f'attachment; filename={REPORT_FILENAME}'},
    )
