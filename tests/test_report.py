import csv
import io
from datetime import datetime

from core.attendance import (
    ABSENT_TIMESTAMP,
    REPORT_HEADER,
    AttendanceTracker,
    render_csv,
    write_report,
)
from core.recognition import MatchResult


def _tracker(names, present=()):
    tracker = AttendanceTracker(names, clock=lambda: datetime(2024, 1, 1, 9, 0, 0))
    for name in present:
        tracker.apply(MatchResult(name, 0.2))
    return tracker


def test_render_exact_output():
    snapshot = _tracker(["A", "B"], present=["A"]).snapshot()

    assert render_csv(snapshot) == (
        'Student Name,Status,Timestamp\n'
        '"A","Present","2024-01-01 09:00:00"\n'
        '"B","Absent","N/A"\n'
    )


def test_every_roster_student_has_one_row_in_order():
    names = ["Zed", "Ashri Singh", "Mona"]
    snapshot = _tracker(names, present=["Mona"]).snapshot()

    lines = render_csv(snapshot).splitlines()

    assert lines[0] == REPORT_HEADER
    rows = list(csv.reader(io.StringIO("\n".join(lines[1:]))))
    assert [row[0] for row in rows] == names
    assert rows[0][1:] == ["Absent", ABSENT_TIMESTAMP]
    assert rows[2][1] == "Present"


def test_empty_roster_is_header_only():
    assert render_csv(AttendanceTracker([]).snapshot()) == REPORT_HEADER + "\n"


def test_names_with_commas_and_quotes_are_escaped():
    name = 'Sinha, "Sumit"'
    snapshot = _tracker([name], present=[name]).snapshot()

    rows = list(csv.reader(io.StringIO(render_csv(snapshot))))

    assert rows[1] == [name, "Present", "2024-01-01 09:00:00"]


def test_explicit_roster_reports_missing_names_absent():
    snapshot = _tracker(["A"], present=["A"]).snapshot()

    rows = list(csv.reader(io.StringIO(render_csv(snapshot, roster=["A", "B"]))))

    assert rows[1:] == [["A", "Present", "2024-01-01 09:00:00"], ["B", "Absent", "N/A"]]


def test_custom_timestamp_format():
    snapshot = _tracker(["A"], present=["A"]).snapshot()

    assert '"09:00"' in render_csv(snapshot, timestamp_format="%H:%M")


def test_write_report_creates_file(tmp_path):
    snapshot = _tracker(["A", "B"], present=["B"]).snapshot()
    target = tmp_path / "reports" / "attendance_report.csv"

    path = write_report(snapshot, target)

    assert path == target
    assert target.read_text(encoding="utf-8") == render_csv(snapshot)
