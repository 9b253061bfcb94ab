# tradepost/api/message.py
"""
Message API Router

Endpoints:
- POST /messages/ - Send a message in a conversation
- GET /messages/?conversation_id= - Messages of a conversation, oldest first
- PATCH /messages/read?conversation_id= - Mark messages addressed to me as read
- GET /messages/unread-count - Unread messages across all my conversations
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tradepost.database import get_db
from tradepost.exceptions import MarketplaceError
from tradepost.models.user import User
from tradepost.schemas.conversation import (
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    UnreadCountResponse,
)
from tradepost.services import message_service
from tradepost.utils.security import get_active_user, get_current_user

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.post("/", response_model=MessageResponse)
def send_message(
    payload: MessageCreate,
    current_user: User = Depends(get_active_user),
    db: Session = Depends(get_db),
):
    try:
        message = message_service.append_message(
            db,
            conversation_id=payload.conversation_id,
            sender_id=current_user.id,
            receiver_id=payload.receiver_id,
            text=payload.content,
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return MessageResponse.model_validate(message)


@router.get("/", response_model=List[MessageResponse])
def get_messages(
    conversation_id: int = Query(...),
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        messages = message_service.list_messages(
            db,
            conversation_id=conversation_id,
            user_id=current_user.id,
            limit=limit,
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return [MessageResponse.model_validate(m) for m in messages]


@router.patch("/read", response_model=MarkReadResponse)
def mark_messages_read(
    conversation_id: int = Query(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        updated = message_service.mark_conversation_read(
            db, conversation_id=conversation_id, user_id=current_user.id
        )
    except MarketplaceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)
    return MarkReadResponse(conversation_id=conversation_id, updated=updated)


@router.get("/unread-count", response_model=UnreadCountResponse)
def get_unread_count(
    conversation_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if conversation_id is None:
        return UnreadCountResponse(
            unread_count=message_service.total_unread_count(db, user_id=current_user.id)
        )
    return UnreadCountResponse(
        conversation_id=conversation_id,
        unread_count=message_service.unread_count_for(
            db, conversation_id=conversation_id, user_id=current_user.id
        ),
    )
