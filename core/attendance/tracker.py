"""Per-student attendance state machine: absent -> present, first sighting wins."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from logging_config import attendance_logger
from core.recognition.matcher import MatchResult


class AttendanceStatus(str, Enum):
    ABSENT = "absent"
    PRESENT = "present"


@dataclass(frozen=True)
class AttendanceEntry:
    identity: str
    status: AttendanceStatus = AttendanceStatus.ABSENT
    timestamp: Optional[datetime] = None

    @property
    def is_present(self) -> bool:
        return self.status is AttendanceStatus.PRESENT

    def display_text(self) -> str:
        if self.is_present and self.timestamp is not None:
            return f"Present at {self.timestamp.strftime('%H:%M:%S')}"
        return "Absent"

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "name": self.identity,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "display": self.display_text(),
        }


@dataclass(frozen=True)
class AttendanceSnapshot:
    """Immutable view of the roster state at one version."""

    version: int
    entries: Tuple[AttendanceEntry, ...]

    def __iter__(self) -> Iterator[AttendanceEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, name: str) -> Optional[AttendanceEntry]:
        for entry in self.entries:
            if entry.identity == name:
                return entry
        return None

    def as_mapping(self) -> Mapping[str, AttendanceEntry]:
        return MappingProxyType({entry.identity: entry for entry in self.entries})

    @property
    def present_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_present)

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": self.version,
            "total": len(self.entries),
            "present": self.present_count,
            "absent": len(self.entries) - self.present_count,
            "students": [entry.to_dict() for entry in self.entries],
        }


TransitionListener = Callable[[AttendanceEntry], None]


class AttendanceTracker:
    """Thread-safe owner of the session's attendance state.

    ``apply`` is the only writer. Listeners are called once per absent ->
    present transition, outside the lock.
    """

    def __init__(
        self,
        roster: Sequence[str],
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._roster: Tuple[str, ...] = tuple(roster)
        if len(set(self._roster)) != len(self._roster):
            raise ValueError("Roster names must be unique")
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)
        self._entries: Dict[str, AttendanceEntry] = {
            name: AttendanceEntry(name) for name in self._roster
        }
        self._version = 0
        self._lock = threading.RLock()
        self._listeners: List[TransitionListener] = []

    @property
    def roster(self) -> Tuple[str, ...]:
        return self._roster

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def add_listener(self, listener: TransitionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: TransitionListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def apply(self, match: MatchResult) -> Optional[AttendanceEntry]:
        """Apply one match; returns the new entry only if a transition happened."""
        if match.is_unknown:
            return None

        with self._lock:
            current = self._entries.get(match.label)
            if current is None:
                self._logger.debug("[Attendance] Ignoring label outside roster: %s", match.label)
                return None
            if current.is_present:
                return None
            updated = AttendanceEntry(match.label, AttendanceStatus.PRESENT, self._clock())
            self._entries[match.label] = updated
            self._version += 1
            listeners = list(self._listeners)

        attendance_logger.log_marked_present(updated.identity, updated.timestamp)
        for listener in listeners:
            try:
                listener(updated)
            except Exception as exc:
                self._logger.error(
                    "[Attendance] Listener failed for %s: %s", updated.identity, exc, exc_info=True
                )
        return updated

    def get(self, name: str) -> Optional[AttendanceEntry]:
        with self._lock:
            return self._entries.get(name)

    def is_present(self, name: str) -> bool:
        entry = self.get(name)
        return bool(entry and entry.is_present)

    def snapshot(self) -> AttendanceSnapshot:
        with self._lock:
            return AttendanceSnapshot(
                version=self._version,
                entries=tuple(self._entries[name] for name in self._roster),
            )
