"""
API routes for Server-Sent Events (SSE)
Các API endpoint cho real-time events
"""
import queue

from flask import Blueprint, Response, stream_with_context

from app import globals as app_globals
from app.models import format_sse_message

events_api_bp = Blueprint('events_api', __name__, url_prefix='/api/events')

HEARTBEAT_SECONDS = 30


@events_api_bp.route('/stream')
def api_events_stream():
    """Server-Sent Events stream cho thông báo real-time"""
    broadcaster = app_globals.event_broadcaster
    client_queue = broadcaster.add_client()
    initial = {
        'type': 'connected',
        'data': {
            'session': app_globals.attendance_session.status(),
            'attendance': app_globals.attendance_tracker.snapshot().to_dict(),
        },
    }

    def event_stream():
        try:
            yield format_sse_message(initial)
            while True:
                try:
                    yield client_queue.get(timeout=HEARTBEAT_SECONDS)
                except queue.Empty:
                    # Gửi heartbeat để giữ kết nối
                    yield format_sse_message({'type': 'heartbeat'})
        finally:
            broadcaster.remove_client(client_queue)

    return Response(stream_with_context(event_stream()), mimetype='text/event-stream')
