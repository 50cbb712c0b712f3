from .tracker import (
    AttendanceEntry,
    AttendanceSnapshot,
    AttendanceStatus,
    AttendanceTracker,
)
from .report import (
    ABSENT_TIMESTAMP,
    REPORT_FILENAME,
    REPORT_HEADER,
    REPORT_MIMETYPE,
    render_csv,
    write_report,
)

__all__ = [
    'AttendanceEntry',
    'AttendanceSnapshot',
    'AttendanceStatus',
    'AttendanceTracker',
    'ABSENT_TIMESTAMP',
    'REPORT_FILENAME',
    'REPORT_HEADER',
    'REPORT_MIMETYPE',
    'render_csv',
    'write_report',
]
