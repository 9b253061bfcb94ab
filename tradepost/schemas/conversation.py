# tradepost/schemas/conversation.py
"""
Conversation & Message Pydantic Schemas
Request bodies and display summaries for the messaging endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_MESSAGE_LENGTH = 2000


# ======================
# SUMMARIES
# ======================

class UserSummary(BaseModel):
    id: int
    name: str
    email: str
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProductSummary(BaseModel):
    id: int
    title: str
    price: float
    image: Optional[str] = None
    status: str
    seller: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class LastMessageSummary(BaseModel):
    id: int
    sender_id: int
    content: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ======================
# CONVERSATIONS
# ======================

class ConversationCreate(BaseModel):
    product_id: int = Field(..., description="Listing the conversation is about")
    receiver_id: int = Field(..., description="Counterpart user")


class ConversationResponse(BaseModel):
    id: int
    conversation_key: str
    participants: List[UserSummary]
    product: Optional[ProductSummary] = None
    last_message: Optional[LastMessageSummary] = None
    last_message_at: datetime
    is_active: bool
    unread_count: Optional[int] = None

    @classmethod
    def from_conversation(cls, conversation, unread_count: Optional[int] = None):
        participants = [
            UserSummary.model_validate(user)
            for user in (conversation.participant_one, conversation.participant_two)
            if user is not None
        ]
        return cls(
            id=conversation.id,
            conversation_key=conversation.conversation_key,
            participants=participants,
            product=ProductSummary.model_validate(conversation.product) if conversation.product else None,
            last_message=(
                LastMessageSummary.model_validate(conversation.last_message)
                if conversation.last_message else None
            ),
            last_message_at=conversation.last_message_at,
            is_active=conversation.is_active,
            unread_count=unread_count,
        )


class ConversationStartResponse(BaseModel):
    conversation: ConversationResponse
    created: bool
    message: str


# ======================
# MESSAGES
# ======================

class MessageCreate(BaseModel):
    conversation_id: int
    receiver_id: int
    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v):
        if v.strip() == "":
            raise ValueError("Message cannot be empty or just whitespace")
        return v.strip()


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    product_id: Optional[int] = None
    content: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCountResponse(BaseModel):
    unread_count: int
    conversation_id: Optional[int] = None


class MarkReadResponse(BaseModel):
    conversation_id: int
    updated: int
