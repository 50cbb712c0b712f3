"""Trạng thái phát của luồng video (play/pause/ended) và các listener vòng đời."""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .camera_manager import CameraManager

StreamListener = Callable[[], None]


class StreamState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


class VideoStream:
    """Live camera stream with media-element style lifecycle events.

    Events: ``play`` (stream started or resumed), ``pause`` and ``ended``.
    Listeners run synchronously on the thread that changed the state.
    """

    EVENTS = ("play", "pause", "ended")

    def __init__(self, camera: CameraManager, logger: Optional[logging.Logger] = None) -> None:
        self.camera = camera
        self._logger = logger or logging.getLogger(__name__)
        self._state = StreamState.IDLE
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[StreamListener]] = {event: [] for event in self.EVENTS}

    # ------------------------------------------------------------------
    # Listener helpers
    def add_listener(self, event: str, listener: StreamListener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown stream event: {event}")
        with self._lock:
            self._listeners[event].append(listener)

    def remove_listener(self, event: str, listener: StreamListener) -> None:
        with self._lock:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def _emit(self, event: str) -> None:
        with self._lock:
            listeners = list(self._listeners[event])
        for listener in listeners:
            try:
                listener()
            except Exception as exc:
                self._logger.error("[Stream] Listener for '%s' failed: %s", event, exc, exc_info=True)

    # ------------------------------------------------------------------
    # API công khai
    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def playing(self) -> bool:
        return self._state is StreamState.PLAYING

    @property
    def paused(self) -> bool:
        return self._state is StreamState.PAUSED

    @property
    def ended(self) -> bool:
        return self._state is StreamState.ENDED

    def play(self) -> None:
        """Start or resume the stream; raises CameraError if the device cannot open."""
        with self._lock:
            if self._state is StreamState.PLAYING:
                return
            if self._state is not StreamState.PAUSED:
                self.camera.start()
            self._state = StreamState.PLAYING
        self._logger.info("[Stream] ▶ Playing")
        self._emit("play")

    def pause(self) -> None:
        with self._lock:
            if self._state is not StreamState.PLAYING:
                return
            self._state = StreamState.PAUSED
        self._logger.info("[Stream] ⏸ Paused")
        self._emit("pause")

    def end(self) -> None:
        with self._lock:
            if self._state in (StreamState.IDLE, StreamState.ENDED):
                self._state = StreamState.ENDED
                return
            self._state = StreamState.ENDED
            self.camera.stop()
        self._logger.info("[Stream] ⏹ Ended")
        self._emit("ended")

    def read(self) -> np.ndarray:
        return self.camera.read()

    def dimensions(self) -> Optional[Tuple[int, int]]:
        return self.camera.frame_size()
