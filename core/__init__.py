"""Core attendance pipeline: vision, recognition, attendance state and sessions."""
