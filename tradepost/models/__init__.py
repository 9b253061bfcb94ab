# tradepost/models/__init__.py
# Import models in dependency order
from .user import User
from .product import Product
from .conversation import Conversation, Message
from .report import Report, ReportReason, ReportStatus, ModerationAction
from .notification import Notification

__all__ = [
    "User",
    "Product",
    "Conversation",
    "Message",
    "Report",
    "ReportReason",
    "ReportStatus",
    "ModerationAction",
    "Notification",
]
