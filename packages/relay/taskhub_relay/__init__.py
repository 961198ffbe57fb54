"""Taskhub realtime relay: Socket.IO rooms per project and per user."""

__version__ = "0.1.0"
