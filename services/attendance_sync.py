"""Forward present transitions to the attendance backend (POST /api/attendance).

Local tracker state is the source of truth: a failed call is logged and
never retried or rolled back.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Mapping, Optional

import requests

from logging_config import attendance_logger
from core.attendance.tracker import AttendanceEntry

logger = logging.getLogger(__name__)


class AttendanceSync:
    def __init__(
        self,
        base_url: str,
        student_ids: Optional[Mapping[str, str]] = None,
        timeout: float = 2.0,
        http: Optional[requests.Session] = None,
    ):
        self.endpoint = base_url.rstrip('/') + '/api/attendance'
        self.student_ids = dict(student_ids or {})
        self.timeout = timeout
        self.http = http or requests.Session()
        # Một worker duy nhất: giữ đúng thứ tự và không chặn vòng lấy mẫu
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='attendance-sync')

    def record_present(self, entry: AttendanceEntry) -> bool:
        student_id = self.student_ids.get(entry.identity, entry.identity)
        payload = {'studentId': student_id, 'status': entry.status.value}
        try:
            resp = self.http.post(self.endpoint, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            attendance_logger.log_sync_failed(entry.identity, str(exc))
            return False
        logger.info("[Sync] ✅ Sent %s (%s) to %s", entry.identity, student_id, self.endpoint)
        return True

    def submit(self, entry: AttendanceEntry) -> Future:
        """Tracker listener: queue the call instead of blocking the caller."""
        return self._executor.submit(self.record_present, entry)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        self.http.close()
