# tradepost/schemas/__init__.py

# Auth schemas
from .auth import TokenData

# Conversation & message schemas
from .conversation import (
    UserSummary,
    ProductSummary,
    LastMessageSummary,
    ConversationCreate,
    ConversationResponse,
    ConversationStartResponse,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
    MarkReadResponse,
)

# Report schemas
from .report import (
    ReportCreate,
    ReportResolveRequest,
    PendingReport,
    ResolvedReport,
    ReportView,
    ReportSubmitResponse,
    ReportListResponse,
    ResolutionResponse,
    build_report_view,
)

# Notification schemas
from .notification import NotificationResponse

__all__ = [
    "TokenData",
    "UserSummary",
    "ProductSummary",
    "LastMessageSummary",
    "ConversationCreate",
    "ConversationResponse",
    "ConversationStartResponse",
    "MessageCreate",
    "MessageResponse",
    "UnreadCountResponse",
    "MarkReadResponse",
    "ReportCreate",
    "ReportResolveRequest",
    "PendingReport",
    "ResolvedReport",
    "ReportView",
    "ReportSubmitResponse",
    "ReportListResponse",
    "ResolutionResponse",
    "build_report_view",
    "NotificationResponse",
]
