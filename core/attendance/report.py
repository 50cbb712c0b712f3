"""CSV attendance report."""
from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Optional, Sequence

from logging_config import attendance_logger
from .tracker import AttendanceSnapshot

REPORT_FILENAME = "attendance_report.csv"
REPORT_MIMETYPE = "text/csv"
REPORT_HEADER = "Student Name,Status,Timestamp"
ABSENT_TIMESTAMP = "N/A"
DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def render_csv(
    snapshot: AttendanceSnapshot,
    roster: Optional[Sequence[str]] = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> str:
    """One quoted row per roster student, in roster order.

    ``roster`` defaults to the snapshot's own order; names missing from the
    snapshot are reported as absent.
    """
    names = list(roster) if roster is not None else [entry.identity for entry in snapshot]
    state = snapshot.as_mapping()

    buffer = io.StringIO()
    buffer.write(REPORT_HEADER + "\n")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for name in names:
        entry = state.get(name)
        if entry is not None and entry.is_present:
            status = "Present"
            timestamp = entry.timestamp.strftime(timestamp_format) if entry.timestamp else ABSENT_TIMESTAMP
        else:
            status = "Absent"
            timestamp = ABSENT_TIMESTAMP
        writer.writerow([name, status, timestamp])
    return buffer.getvalue()


def write_report(
    snapshot: AttendanceSnapshot,
    filepath,
    roster: Optional[Sequence[str]] = None,
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
) -> Path:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    content = render_csv(snapshot, roster=roster, timestamp_format=timestamp_format)
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        f.write(content)
    rows = len(roster) if roster is not None else len(snapshot)
    attendance_logger.log_report_exported(rows, filepath)
    return filepath
