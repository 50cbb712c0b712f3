"""
Cấu hình logging cho hệ thống điểm danh
"""

import logging
import logging.handlers
from datetime import datetime
from pathlib import Path


def setup_logging(app, log_level='INFO', log_dir='logs', max_log_size=10*1024*1024, backup_count=5):
    """
    Thiết lập logging cho ứng dụng Flask

    Args:
        app: Flask app instance
        log_level: Mức độ log (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Thư mục chứa file log
        max_log_size: Kích thước tối đa của file log (bytes)
        backup_count: Số lượng file log backup
    """

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = getattr(logging, str(log_level).upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler với rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / 'attendance_system.log',
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # Handler cho file lỗi
    error_handler = logging.handlers.RotatingFileHandler(
        log_dir / 'errors.log',
        maxBytes=max_log_size,
        backupCount=backup_count,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Xóa handlers cũ nếu có
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.addHandler(error_handler)

    logging.getLogger('recognition').setLevel(log_level)
    logging.getLogger('attendance').setLevel(log_level)
    # APScheduler báo mỗi lần bỏ qua tick ở mức WARNING, quá ồn với chu kỳ 200ms
    logging.getLogger('apscheduler').setLevel(logging.ERROR)

    app.logger.setLevel(log_level)

    app.logger.info("=" * 50)
    app.logger.info("ATTENDANCE SYSTEM STARTUP")
    app.logger.info(f"Timestamp: {datetime.now().isoformat()}")
    app.logger.info(f"Log Level: {logging.getLevelName(log_level)}")
    app.logger.info(f"Log Directory: {log_dir.absolute()}")
    app.logger.info("=" * 50)


class RecognitionLogger:
    """Logger chuyên dụng cho face recognition"""

    def __init__(self):
        self.logger = logging.getLogger('recognition')

    def log_faces_detected(self, face_count, frame_size):
        """Log phát hiện khuôn mặt"""
        self.logger.debug(f"Faces detected - Count: {face_count}, Frame: {frame_size}")

    def log_face_matched(self, label, distance):
        self.logger.debug(f"Face matched - Label: {label}, Distance: {distance:.3f}")

    def log_enrollment(self, learned, roster_size):
        """Log kết quả học khuôn mặt"""
        if learned:
            self.logger.info(f"Enrollment finished - Learned: {learned}/{roster_size}")
        else:
            self.logger.error(f"Enrollment failed - No faces learned out of {roster_size}")

    def log_recognition_error(self, error_message):
        """Log lỗi nhận diện"""
        self.logger.error(f"Recognition error - {error_message}")


class AttendanceLogger:
    """Logger chuyên dụng cho các sự kiện điểm danh"""

    def __init__(self):
        self.logger = logging.getLogger('attendance')

    def log_marked_present(self, name, timestamp):
        """Log điểm danh"""
        self.logger.info(f"Attendance marked - Name: {name}, At: {timestamp.isoformat()}")

    def log_report_exported(self, rows, destination):
        self.logger.info(f"Report exported - Rows: {rows}, Destination: {destination}")

    def log_sync_failed(self, name, error_message):
        self.logger.warning(f"Attendance sync failed - Name: {name}, Error: {error_message}")


# Các instance logger toàn cục
recognition_logger = RecognitionLogger()
attendance_logger = AttendanceLogger()
