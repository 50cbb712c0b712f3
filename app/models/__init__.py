"""
Models Package - Web-facing service objects
"""

from .event_broadcaster import EventBroadcaster, format_sse_message

__all__ = [
    'EventBroadcaster',
    'format_sse_message',
]
