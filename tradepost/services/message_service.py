# tradepost/services/message_service.py
"""
Message Ledger

Appends messages to a conversation and derives unread counts. Messages
are append-only; the read flag is the only field that ever changes, and
only from False to True.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tradepost.config import settings
from tradepost.crud import conversation as conversation_crud
from tradepost.database import utcnow
from tradepost.exceptions import Forbidden, InvalidMessage
from tradepost.models.conversation import Message
from tradepost.services import notification_service
from tradepost.services.conversation_service import get_conversation_for_participant

logger = logging.getLogger(__name__)


# ======================
# APPEND
# ======================

def append_message(
    db: Session,
    *,
    conversation_id: int,
    sender_id: int,
    receiver_id: int,
    text: str,
) -> Message:
    """
    Append a message, then move the conversation summary forward.

    The message commit is the durable step. If the summary update fails
    afterwards the message stays; list ordering lags until the next
    message corrects ``last_message_at``.

    Raises:
        NotFound: conversation does not exist
        Forbidden: sender is not a participant, or receiver is not the counterpart
        InvalidMessage: empty text
    """
    conversation = get_conversation_for_participant(
        db, conversation_id=conversation_id, user_id=sender_id
    )
    if int(receiver_id) != conversation.counterpart_of(sender_id):
        raise Forbidden("Receiver is not the other participant of this conversation")

    content = (text or "").strip()
    if not content:
        raise InvalidMessage("Message content is required")

    try:
        message = conversation_crud.create_message(
            db,
            conversation_id=conversation.id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            product_id=conversation.product_id,
            content=content,
        )
        db.commit()
        db.refresh(message)
    except SQLAlchemyError:
        db.rollback()
        raise

    _update_conversation_summary(db, message)
    _notify_receiver(db, message, conversation)
    return message


def _update_conversation_summary(db: Session, message: Message) -> None:
    try:
        conversation_crud.touch_conversation(
            db,
            message.conversation_id,
            message_id=message.id,
            message_at=message.created_at,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Conversation summary not updated (conversation_id=%s, message_id=%s): %s",
            message.conversation_id,
            message.id,
            exc,
        )


def _notify_receiver(db: Session, message: Message, conversation) -> None:
    try:
        sender = message.sender
        product = conversation.product
        about = f' about "{product.title}"' if product else ""
        notification_service.notify_user(
            db,
            recipient_id=message.receiver_id,
            actor_id=message.sender_id,
            event_type="message",
            title="New Message",
            message=f"{sender.name if sender else 'Someone'} sent you a message{about}",
            data={"conversation_id": conversation.id, "product_id": conversation.product_id},
            related_conversation_id=conversation.id,
            related_product_id=conversation.product_id,
        )
    except Exception as exc:
        db.rollback()
        logger.error(
            "Message notification failed (conversation_id=%s, message_id=%s): %s",
            conversation.id,
            message.id,
            exc,
        )


# ======================
# READS
# ======================

def list_messages(
    db: Session,
    *,
    conversation_id: int,
    user_id: int,
    limit: Optional[int] = None,
) -> List[Message]:
    """Chronological messages of a conversation the caller participates in."""
    get_conversation_for_participant(db, conversation_id=conversation_id, user_id=user_id)
    page_size = limit or settings.MESSAGE_PAGE_SIZE
    return conversation_crud.get_recent_messages(db, conversation_id, page_size)


def unread_count_for(db: Session, *, conversation_id: int, user_id: int) -> int:
    """Always counted fresh from the message rows."""
    return conversation_crud.count_unread(db, conversation_id, user_id)


def total_unread_count(db: Session, *, user_id: int) -> int:
    return conversation_crud.count_all_unread(db, user_id)


def mark_conversation_read(db: Session, *, conversation_id: int, user_id: int) -> int:
    """Flip every unread message addressed to ``user_id``; returns how many changed."""
    get_conversation_for_participant(db, conversation_id=conversation_id, user_id=user_id)
    try:
        updated = conversation_crud.mark_read(db, conversation_id, user_id, utcnow())
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return int(updated)
