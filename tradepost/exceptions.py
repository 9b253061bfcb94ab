# tradepost/exceptions.py
"""
Domain errors raised by the conversation, message and moderation services.

Each error carries the HTTP status the API layer answers with. Route
functions turn them into ``HTTPException``; services never import FastAPI.
"""


class MarketplaceError(Exception):
    status_code = 400
    default_detail = "Request could not be processed"

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class InvalidParticipants(MarketplaceError):
    status_code = 400
    default_detail = "You cannot message yourself"


class InvalidMessage(MarketplaceError):
    status_code = 400
    default_detail = "Message content is required"


class InvalidReason(MarketplaceError):
    status_code = 400
    default_detail = "Unknown report reason"


class InvalidAction(MarketplaceError):
    status_code = 400
    default_detail = "Unknown moderation action"


class InvalidStatus(MarketplaceError):
    status_code = 400
    default_detail = "Unknown report status"


class Forbidden(MarketplaceError):
    status_code = 403
    default_detail = "Access denied"


class NotFound(MarketplaceError):
    status_code = 404
    default_detail = "Not found"


class AlreadyProcessed(MarketplaceError):
    status_code = 409
    default_detail = "Report has already been processed"


class DuplicateReport(MarketplaceError):
    status_code = 409
    default_detail = "You have already reported this listing"


class StoreInconsistency(MarketplaceError):
    status_code = 500
    default_detail = "Conversation store is inconsistent"


class Unavailable(MarketplaceError):
    status_code = 503
    default_detail = "Service temporarily unavailable, please retry"


class StoreConflict(Exception):
    """Unique-key collision on conversation creation. Never leaves the registry."""

    def __init__(self, conversation_key: str):
        self.conversation_key = conversation_key
        super().__init__(f"Duplicate conversation key {conversation_key}")
