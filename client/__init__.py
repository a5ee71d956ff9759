"""
TaskBoard Client
================

Python counterpart of the web client:
- session: durable token holder
- api_client: httpx wrapper over the REST API
- board: task list, filtering and notifications
"""

from client.session import SessionStore
from client.api_client import TaskBoardClient
from client.board import TaskBoard, NoticeLevel

__all__ = [
    'SessionStore',
    'TaskBoardClient',
    'TaskBoard',
    'NoticeLevel',
]
