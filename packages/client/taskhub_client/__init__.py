"""
Taskhub client SDK.

REST access to the API server plus the realtime stores (board, chat, task
detail) that apply changes optimistically and reconcile by refetching.
"""

from .api import APIError, TaskhubAPI
from .board import KanbanBoard
from .chat import ChatMessage, ProjectChat
from .realtime import RelayConnection
from .task_detail import TaskDetail

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "ChatMessage",
    "KanbanBoard",
    "ProjectChat",
    "RelayConnection",
    "TaskDetail",
    "TaskhubAPI",
]
