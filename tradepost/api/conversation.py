# tradepost/api/conversation.py
"""
Conversation API Router

Endpoints:
- POST /conversations/ - Start (or resume) a conversation about a listing
- GET /conversations/ - List my conversations with unread counts
- PATCH /conversations/{conversation_id}/archive - Archive a conversation
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from tradepost.database import get_db
from tradepost.exceptions import MarketplaceError
from tradepost.models.user import User
from tradepost.schemas.conversation import (
    ConversationCreate,
    ConversationResponse,
    ConversationStartResponse,
)
from tradepost.services import conversation_service
from tradepost.utils.security import get_active_user, get_current_user

router = APIRouter(prefix="/conversations", tags=["Conversations"])


@router.post("/", response_model=ConversationStartResponse)
def start_conversation(
    payload: ConversationCreate,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    """Idempotent by conversation key: repeated calls return the same conversation."""
    try:
        conversation, created = conversation_service.start_or_get_conversation(
            db,
            user_id=current_user.id,
            counterpart_id=payload.receiver_id,
            product_id=payload.product_id,
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return ConversationStartResponse(
        conversation=ConversationResponse.from_conversation(conversation),
        created=created,
        message="Conversation created successfully" if created else "Conversation already exists",
    )


@router.get("/", response_model=List[ConversationResponse])
def get_my_conversations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rows = conversation_service.list_conversations(db, user_id=current_user.id)
    return [
        ConversationResponse.from_conversation(conversation, unread_count=unread)
        for conversation, unread in rows
    ]


@router.patch("/{conversation_id}/archive", response_model=ConversationResponse)
def archive_conversation(
    conversation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        conversation = conversation_service.archive_conversation(
            db, conversation_id=conversation_id, user_id=current_user.id
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return ConversationResponse.from_conversation(conversation)
