"""
Routes package
Đăng ký tất cả các blueprints
"""
from .main import main_bp
from .api_session import session_api_bp
from .api_attendance import attendance_api_bp
from .api_events import events_api_bp
from .api_camera import camera_api_bp


def register_blueprints(app):
    """Đăng ký tất cả các blueprints với Flask app."""
    app.register_blueprint(main_bp)
    app.register_blueprint(session_api_bp)
    app.register_blueprint(attendance_api_bp)
    app.register_blueprint(events_api_bp)
    app.register_blueprint(camera_api_bp)

    app.logger.info("✅ Đã đăng ký tất cả blueprints")
