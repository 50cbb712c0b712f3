from datetime import datetime
from unittest import mock

import requests

from core.attendance import AttendanceTracker
from core.recognition import MatchResult
from services import AttendanceSync


def _present_entry(tracker, name):
    return tracker.apply(MatchResult(name, 0.2))


def test_present_mark_is_posted():
    http = mock.Mock(spec=requests.Session)
    sync = AttendanceSync("http://attendance.local/", student_ids={"A": "S-1"}, timeout=1.5, http=http)
    tracker = AttendanceTracker(["A"], clock=lambda: datetime(2024, 1, 1, 9, 0))

    assert sync.record_present(_present_entry(tracker, "A")) is True

    http.post.assert_called_once_with(
        "http://attendance.local/api/attendance",
        json={"studentId": "S-1", "status": "present"},
        timeout=1.5,
    )


def test_failed_call_keeps_local_state():
    http = mock.Mock(spec=requests.Session)
    http.post.side_effect = requests.ConnectionError("connection refused")
    sync = AttendanceSync("http://attendance.local", http=http)
    tracker = AttendanceTracker(["A", "B"])
    tracker.add_listener(lambda entry: sync.submit(entry).result(timeout=3))

    tracker.apply(MatchResult("A", 0.2))

    assert tracker.is_present("A")
    assert tracker.version == 1
    http.post.assert_called_once()
    assert http.post.call_args.kwargs["json"]["studentId"] == "A"
    sync.close()


def test_http_error_status_returns_false():
    http = mock.Mock(spec=requests.Session)
    http.post.return_value.raise_for_status.side_effect = requests.HTTPError("500 Server Error")
    sync = AttendanceSync("http://attendance.local", http=http)
    tracker = AttendanceTracker(["A"])

    assert sync.record_present(_present_entry(tracker, "A")) is False
    sync.close()
