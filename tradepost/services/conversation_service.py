# tradepost/services/conversation_service.py
"""
Conversation Registry

Creates and looks up buyer/seller conversations. At most one conversation
exists per (participant pair, product): the conversation key is unique in
the store, and a lost insert race is recovered by re-fetching the winner.
"""

import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tradepost.crud import conversation as conversation_crud
from tradepost.crud import user as user_crud
from tradepost.exceptions import (
    Forbidden,
    InvalidParticipants,
    NotFound,
    StoreConflict,
    StoreInconsistency,
)
from tradepost.models.conversation import Conversation

logger = logging.getLogger(__name__)

CONVERSATION_KEY_CONSTRAINT = "conversation_key"


def build_conversation_key(user_a: int, user_b: int, product_id: int) -> str:
    """Order-independent key: sorted participant ids, then the product id."""
    low, high = sorted((int(user_a), int(user_b)))
    return f"{low}-{high}-{int(product_id)}"


def _is_key_collision(exc: IntegrityError) -> bool:
    return CONVERSATION_KEY_CONSTRAINT in str(getattr(exc, "orig", exc))


def _insert_conversation(db: Session, *, user_id: int, counterpart_id: int, product_id: int, key: str) -> Conversation:
    try:
        conversation = conversation_crud.create_conversation(
            db,
            initiator_id=user_id,
            counterpart_id=counterpart_id,
            product_id=product_id,
            conversation_key=key,
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_key_collision(exc):
            raise StoreConflict(key) from exc
        raise
    db.refresh(conversation)
    return conversation


def start_or_get_conversation(
    db: Session,
    *,
    user_id: int,
    counterpart_id: int,
    product_id: int,
) -> Tuple[Conversation, bool]:
    """
    Resolve the canonical conversation for this pair and listing.

    Returns ``(conversation, created)``. Idempotent: repeated calls, in
    either participant order, return the same row.

    Raises:
        InvalidParticipants: user_id == counterpart_id
        NotFound: unknown product or counterpart
        StoreInconsistency: key collided but the winner cannot be read back
    """
    if int(user_id) == int(counterpart_id):
        raise InvalidParticipants("You cannot message yourself")

    key = build_conversation_key(user_id, counterpart_id, product_id)

    existing = conversation_crud.get_conversation_by_key(db, key)
    if existing:
        return existing, False

    if not user_crud.get_product(db, product_id):
        raise NotFound("Product not found")
    if not user_crud.get_user(db, counterpart_id):
        raise NotFound("User not found")

    try:
        conversation = _insert_conversation(
            db,
            user_id=user_id,
            counterpart_id=counterpart_id,
            product_id=product_id,
            key=key,
        )
    except StoreConflict:
        logger.info("Conversation %s created concurrently; re-fetching", key)
        winner = conversation_crud.get_conversation_by_key(db, key)
        if winner is None:
            logger.error("Conversation key %s collided but no row is stored", key)
            raise StoreInconsistency()
        return winner, False

    logger.info(
        "Conversation %s created (id=%s, initiator=%s)",
        key,
        conversation.id,
        user_id,
    )
    return conversation, True


def get_conversation_for_participant(db: Session, *, conversation_id: int, user_id: int) -> Conversation:
    conversation = conversation_crud.get_conversation(db, conversation_id)
    if not conversation:
        raise NotFound("Conversation not found")
    if not conversation.has_participant(user_id):
        raise Forbidden("You are not a participant in this conversation")
    return conversation


def list_conversations(db: Session, *, user_id: int) -> List[Tuple[Conversation, int]]:
    """
    Active conversations for ``user_id``, most recent activity first.

    Unread counts are not stored on the conversation; they are counted
    from the message rows in one grouped query.
    """
    conversations = conversation_crud.list_active_conversations(db, user_id)
    unread = conversation_crud.count_unread_by_conversation(
        db, (c.id for c in conversations), user_id
    )
    return [(c, unread.get(c.id, 0)) for c in conversations]


def archive_conversation(db: Session, *, conversation_id: int, user_id: int) -> Conversation:
    """Hide the conversation for both participants until the next message; the row and its key are kept."""
    conversation = get_conversation_for_participant(
        db, conversation_id=conversation_id, user_id=user_id
    )
    if conversation.is_active:
        conversation.is_active = False
        db.commit()
        db.refresh(conversation)
    return conversation
