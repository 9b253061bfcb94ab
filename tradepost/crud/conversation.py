# tradepost/crud/conversation.py
"""
Conversation & Message CRUD Operations

Plain database access for the conversation registry and the message
ledger. Nothing here commits; the service layer owns transaction
boundaries.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from tradepost.models.conversation import Conversation, Message


# ======================
# CONVERSATIONS
# ======================

def get_conversation(db: Session, conversation_id: int) -> Optional[Conversation]:
    return db.query(Conversation).filter(Conversation.id == conversation_id).first()


def get_conversation_by_key(db: Session, conversation_key: str) -> Optional[Conversation]:
    return db.query(Conversation).filter(
        Conversation.conversation_key == conversation_key
    ).first()


def create_conversation(
    db: Session,
    *,
    initiator_id: int,
    counterpart_id: int,
    product_id: int,
    conversation_key: str,
) -> Conversation:
    conversation = Conversation(
        participant_one_id=initiator_id,
        participant_two_id=counterpart_id,
        product_id=product_id,
        conversation_key=conversation_key,
    )
    db.add(conversation)
    db.flush()
    return conversation


def list_active_conversations(db: Session, user_id: int) -> List[Conversation]:
    return db.query(Conversation).filter(
        or_(
            Conversation.participant_one_id == user_id,
            Conversation.participant_two_id == user_id,
        ),
        Conversation.is_active.is_(True),
    ).order_by(Conversation.last_message_at.desc(), Conversation.id.desc()).all()


def touch_conversation(db: Session, conversation_id: int, *, message_id: int, message_at: datetime) -> int:
    """
    Point the conversation summary at a newer message; never moves it backwards.

    A new message also reopens an archived conversation for both participants.
    """
    return db.query(Conversation).filter(
        Conversation.id == conversation_id,
        Conversation.last_message_at <= message_at,
    ).update(
        {
            Conversation.last_message_id: message_id,
            Conversation.last_message_at: message_at,
            Conversation.is_active: True,
        },
        synchronize_session=False,
    )


# ======================
# MESSAGES
# ======================

def create_message(
    db: Session,
    *,
    conversation_id: int,
    sender_id: int,
    receiver_id: int,
    product_id: Optional[int],
    content: str,
) -> Message:
    message = Message(
        conversation_id=conversation_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        product_id=product_id,
        content=content,
        is_read=False,
    )
    db.add(message)
    db.flush()
    return message


def get_recent_messages(db: Session, conversation_id: int, limit: int) -> List[Message]:
    """Newest ``limit`` messages, returned oldest first."""
    newest_first = db.query(Message).filter(
        Message.conversation_id == conversation_id
    ).order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
    return list(reversed(newest_first))


def count_unread(db: Session, conversation_id: int, user_id: int) -> int:
    return db.query(Message).filter(
        Message.conversation_id == conversation_id,
        Message.receiver_id == user_id,
        Message.is_read.is_(False),
    ).count()


def count_unread_by_conversation(db: Session, conversation_ids: Iterable[int], user_id: int) -> Dict[int, int]:
    ids = list(conversation_ids)
    if not ids:
        return {}
    rows = db.query(Message.conversation_id, func.count(Message.id)).filter(
        Message.conversation_id.in_(ids),
        Message.receiver_id == user_id,
        Message.is_read.is_(False),
    ).group_by(Message.conversation_id).all()
    return {conversation_id: int(count) for conversation_id, count in rows}


def count_all_unread(db: Session, user_id: int) -> int:
    return db.query(Message).filter(
        Message.receiver_id == user_id,
        Message.is_read.is_(False),
    ).count()


def mark_read(db: Session, conversation_id: int, user_id: int, read_at: datetime) -> int:
    return db.query(Message).filter(
        Message.conversation_id == conversation_id,
        Message.receiver_id == user_id,
        Message.is_read.is_(False),
    ).update(
        {Message.is_read: True, Message.read_at: read_at},
        synchronize_session=False,
    )
