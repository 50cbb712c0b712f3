"""
Event Broadcaster - Quản lý Server-Sent Events (SSE)
Handles real-time event broadcasting to connected clients
"""
import json
import queue
import threading
from datetime import datetime
from typing import Any, Dict, List


class EventBroadcaster:
    """Service quản lý SSE events cho thông báo real-time"""

    def __init__(self, logger=None, queue_size: int = 50):
        self.clients: List[queue.Queue] = []
        self.clients_lock = threading.Lock()
        self.logger = logger
        self.queue_size = queue_size

    def add_client(self) -> queue.Queue:
        """Thêm client mới và trả về queue của client đó"""
        client_queue = queue.Queue(maxsize=self.queue_size)

        with self.clients_lock:
            self.clients.append(client_queue)
            total = len(self.clients)

        if self.logger:
            self.logger.info(f"[SSE] ✅ New client connected. Total: {total}")

        return client_queue

    def remove_client(self, client_queue: queue.Queue):
        """Xóa client khi disconnect"""
        with self.clients_lock:
            if client_queue not in self.clients:
                return
            self.clients.remove(client_queue)
            remaining = len(self.clients)

        if self.logger:
            self.logger.info(f"[SSE] Client disconnected. Remaining: {remaining}")

    def broadcast_event(self, event_data: Dict[str, Any]):
        """
        Broadcast event đến tất cả clients

        Args:
            event_data: Dictionary chứa event data
                - type: Loại event (vd: 'attendance_updated', 'session_updated')
                - data: Dữ liệu của event
                - timestamp: Thời gian (optional, sẽ tự động thêm nếu không có)
        """
        if 'timestamp' not in event_data:
            event_data['timestamp'] = datetime.now().isoformat()

        message = format_sse_message(event_data)
        full_clients = []

        with self.clients_lock:
            for client_queue in self.clients:
                try:
                    client_queue.put_nowait(message)
                except queue.Full:
                    full_clients.append(client_queue)
            count = len(self.clients)

        for client_queue in full_clients:
            if self.logger:
                self.logger.warning("[SSE] Client queue full, removing client")
            self.remove_client(client_queue)

        if self.logger and count:
            self.logger.debug(f"[SSE] Broadcast {event_data.get('type', 'unknown')} to {count} clients")

    def broadcast_attendance_update(self, entry):
        """Broadcast khi một sinh viên chuyển sang có mặt"""
        self.broadcast_event({
            'type': 'attendance_updated',
            'data': entry.to_dict(),
        })

    def broadcast_session_update(self, phase: str, message: str):
        self.broadcast_event({
            'type': 'session_updated',
            'data': {
                'phase': phase,
                'message': message,
            },
        })

    def get_client_count(self) -> int:
        """Lấy số lượng clients đang kết nối"""
        with self.clients_lock:
            return len(self.clients)

    def cleanup(self):
        """Cleanup tất cả clients"""
        with self.clients_lock:
            self.clients.clear()

        if self.logger:
            self.logger.info("[SSE] All clients removed")


def format_sse_message(event_data: Dict[str, Any]) -> str:
    """Format data thành SSE message: event: type\\ndata: json\\n\\n"""
    event_type = event_data.get('type', 'message')
    return f"event: {event_type}\ndata: {json.dumps(event_data)}\n\n"
