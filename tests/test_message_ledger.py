"""
Message ledger tests: participant checks, unread accounting, read
marking, ordering and the best-effort steps after a message is stored.
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tradepost.crud import conversation as conversation_crud
from tradepost.exceptions import Forbidden, InvalidMessage, NotFound
from tradepost.models.conversation import Conversation, Message
from tradepost.models.notification import Notification
from tradepost.services import conversation_service, message_service, notification_service


@pytest.fixture
def thread(db_session, make_user, make_product):
    buyer = make_user("Buyer")
    seller = make_user("Seller")
    product = make_product(seller, title="Road Bike")
    conversation, _ = conversation_service.start_or_get_conversation(
        db_session, user_id=buyer.id, counterpart_id=seller.id, product_id=product.id
    )
    return {"buyer": buyer, "seller": seller, "product": product, "conversation": conversation}


def _send(db, thread, text, *, from_seller=False):
    sender, receiver = (thread["seller"], thread["buyer"]) if from_seller else (thread["buyer"], thread["seller"])
    return message_service.append_message(
        db,
        conversation_id=thread["conversation"].id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        text=text,
    )


# ======================
# APPEND
# ======================

def test_append_stores_message_and_moves_summary(db_session, thread):
    message = _send(db_session, thread, "  Is the bike still available?  ")

    assert message.id is not None
    assert message.content == "Is the bike still available?"
    assert message.is_read is False
    assert message.product_id == thread["product"].id

    conversation = db_session.get(Conversation, thread["conversation"].id)
    assert conversation.last_message_id == message.id
    assert conversation.last_message_at == message.created_at


def test_outsider_cannot_send(db_session, thread, make_user):
    outsider = make_user()

    with pytest.raises(Forbidden):
        message_service.append_message(
            db_session,
            conversation_id=thread["conversation"].id,
            sender_id=outsider.id,
            receiver_id=thread["seller"].id,
            text="hello",
        )
    assert db_session.query(Message).count() == 0


def test_receiver_must_be_the_counterpart(db_session, thread, make_user):
    outsider = make_user()

    with pytest.raises(Forbidden):
        message_service.append_message(
            db_session,
            conversation_id=thread["conversation"].id,
            sender_id=thread["buyer"].id,
            receiver_id=outsider.id,
            text="hello",
        )
    with pytest.raises(Forbidden):
        message_service.append_message(
            db_session,
            conversation_id=thread["conversation"].id,
            sender_id=thread["buyer"].id,
            receiver_id=thread["buyer"].id,
            text="hello",
        )


def test_unknown_conversation(db_session, thread):
    with pytest.raises(NotFound):
        message_service.append_message(
            db_session,
            conversation_id=9999,
            sender_id=thread["buyer"].id,
            receiver_id=thread["seller"].id,
            text="hello",
        )


def test_blank_message_is_rejected(db_session, thread):
    with pytest.raises(InvalidMessage):
        _send(db_session, thread, "   ")
    assert db_session.query(Message).count() == 0


# ======================
# UNREAD ACCOUNTING
# ======================

def test_unread_counts_follow_the_receiver(db_session, thread):
    _send(db_session, thread, "Hi")
    _send(db_session, thread, "Would you take $80?")
    _send(db_session, thread, "Sure", from_seller=True)

    conversation_id = thread["conversation"].id
    assert message_service.unread_count_for(db_session, conversation_id=conversation_id, user_id=thread["seller"].id) == 2
    assert message_service.unread_count_for(db_session, conversation_id=conversation_id, user_id=thread["buyer"].id) == 1


def test_mark_read_only_touches_messages_addressed_to_caller(db_session, thread):
    _send(db_session, thread, "Hi")
    _send(db_session, thread, "Still there?")
    reply = _send(db_session, thread, "Yes", from_seller=True)
    conversation_id = thread["conversation"].id

    updated = message_service.mark_conversation_read(
        db_session, conversation_id=conversation_id, user_id=thread["seller"].id
    )
    assert updated == 2
    assert message_service.unread_count_for(db_session, conversation_id=conversation_id, user_id=thread["seller"].id) == 0

    # the seller's own message stays unread for the buyer
    db_session.expire_all()
    assert db_session.get(Message, reply.id).is_read is False
    assert message_service.unread_count_for(db_session, conversation_id=conversation_id, user_id=thread["buyer"].id) == 1

    read = db_session.query(Message).filter(Message.receiver_id == thread["seller"].id).all()
    assert all(m.is_read and m.read_at is not None for m in read)

    # second pass has nothing left to flip
    assert message_service.mark_conversation_read(
        db_session, conversation_id=conversation_id, user_id=thread["seller"].id
    ) == 0


def test_mark_read_requires_participant(db_session, thread, make_user):
    outsider = make_user()
    with pytest.raises(Forbidden):
        message_service.mark_conversation_read(
            db_session, conversation_id=thread["conversation"].id, user_id=outsider.id
        )


def test_total_unread_spans_conversations(db_session, thread, make_product):
    other_listing = make_product(thread["seller"], title="Helmet")
    other, _ = conversation_service.start_or_get_conversation(
        db_session,
        user_id=thread["buyer"].id,
        counterpart_id=thread["seller"].id,
        product_id=other_listing.id,
    )
    _send(db_session, thread, "About the bike")
    message_service.append_message(
        db_session,
        conversation_id=other.id,
        sender_id=thread["buyer"].id,
        receiver_id=thread["seller"].id,
        text="About the helmet",
    )

    assert message_service.total_unread_count(db_session, user_id=thread["seller"].id) == 2
    assert message_service.total_unread_count(db_session, user_id=thread["buyer"].id) == 0


# ======================
# READS
# ======================

def test_messages_are_listed_oldest_first(db_session, thread):
    sent = [_send(db_session, thread, f"message {i}", from_seller=i % 2 == 1) for i in range(4)]

    listed = message_service.list_messages(
        db_session, conversation_id=thread["conversation"].id, user_id=thread["buyer"].id
    )
    assert [m.id for m in listed] == [m.id for m in sent]

    latest_two = message_service.list_messages(
        db_session, conversation_id=thread["conversation"].id, user_id=thread["buyer"].id, limit=2
    )
    assert [m.content for m in latest_two] == ["message 2", "message 3"]


def test_outsider_cannot_read(db_session, thread, make_user):
    outsider = make_user()
    with pytest.raises(Forbidden):
        message_service.list_messages(
            db_session, conversation_id=thread["conversation"].id, user_id=outsider.id
        )


# ======================
# BEST-EFFORT FOLLOW-UPS
# ======================

def test_summary_failure_keeps_the_message(db_session, thread, monkeypatch):
    def broken_touch(*args, **kwargs):
        raise SQLAlchemyError("summary write failed")

    monkeypatch.setattr(conversation_crud, "touch_conversation", broken_touch)

    message = _send(db_session, thread, "Hello")

    assert db_session.query(Message).filter(Message.id == message.id).count() == 1
    assert db_session.get(Conversation, thread["conversation"].id).last_message_id is None
    assert message_service.unread_count_for(
        db_session, conversation_id=thread["conversation"].id, user_id=thread["seller"].id
    ) == 1


def test_receiver_is_notified(db_session, thread):
    _send(db_session, thread, "Hi")

    notifications = db_session.query(Notification).all()
    assert len(notifications) == 1
    assert notifications[0].recipient_id == thread["seller"].id
    assert notifications[0].event_type == "message"
    assert notifications[0].related_conversation_id == thread["conversation"].id
    assert "Road Bike" in notifications[0].message


def test_notification_failure_does_not_fail_the_send(db_session, thread, monkeypatch):
    def broken_notify(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(notification_service, "notify_user", broken_notify)

    message = _send(db_session, thread, "Hi")

    assert message.id is not None
    assert db_session.query(Message).count() == 1
    assert db_session.query(Notification).count() == 0
