# tradepost/api/__init__.py
# This file makes the api directory a Python package.

from . import admin
from . import conversation
from . import message
from . import notification
from . import report

__all__ = [
    "admin",
    "conversation",
    "message",
    "notification",
    "report",
]
