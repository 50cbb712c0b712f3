"""
Global service references
Được gán trong app/__init__.py khi create_app() chạy
"""

roster = []
attendance_session = None
attendance_tracker = None
event_broadcaster = None
attendance_sync = None
