from __future__ import annotations

import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tradepost.database import Base
from tradepost.models.user import User
from tradepost.services import notification_service


def _build_db():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()


def _create_user(db, email: str = "notify@tradepost.edu") -> User:
    user = User(
        name="Notify User",
        email=email,
        role="user",
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def test_notification_service_crud_flow():
    db = _build_db()
    try:
        user = _create_user(db)
        notification_service.create_notification(
            db,
            recipient_id=user.id,
            event_type="message",
            title="New Message",
            message="Buyer sent you a message",
        )
        notification_service.create_notification(
            db,
            recipient_id=user.id,
            event_type="report_action",
            title="Report Action Taken",
            message="You have received a warning",
            data={"report_id": 1, "action": "warning", "warning_count": 1},
        )
        db.commit()

        unread = notification_service.list_user_notifications(
            db,
            user_id=user.id,
            unread_only=True,
            limit=50,
        )
        assert len(unread) == 2
        # newest first
        assert unread[0].event_type == "report_action"
        assert unread[0].data["warning_count"] == 1
        assert notification_service.get_unread_count(db, user_id=user.id) == 2

        one = notification_service.mark_notification_read(
            db,
            user_id=user.id,
            notification_id=unread[0].id,
        )
        assert one is not None
        assert one.is_read is True
        assert notification_service.get_unread_count(db, user_id=user.id) == 1

        updated = notification_service.mark_all_notifications_read(db, user_id=user.id)
        assert updated == 1
        assert notification_service.get_unread_count(db, user_id=user.id) == 0
    finally:
        db.close()


def test_mark_read_ignores_other_recipients():
    db = _build_db()
    try:
        owner = _create_user(db, email="owner@tradepost.edu")
        other = _create_user(db, email="other@tradepost.edu")
        notification = notification_service.create_notification(
            db,
            recipient_id=owner.id,
            event_type="message",
            title="New Message",
            message="Hi",
        )
        db.commit()

        assert notification_service.mark_notification_read(
            db, user_id=other.id, notification_id=notification.id
        ) is None
        assert notification_service.get_unread_count(db, user_id=owner.id) == 1
    finally:
        db.close()


def test_notify_user_commits_and_dispatches(monkeypatch):
    db = _build_db()
    try:
        user = _create_user(db)
        dispatched = []
        monkeypatch.setattr(
            notification_service,
            "dispatch_email_for_notification",
            lambda db, notification: dispatched.append(notification.id) or True,
        )

        notification = notification_service.notify_user(
            db,
            recipient_id=user.id,
            event_type="message",
            title="New Message",
            message="Hi",
        )

        db.rollback()
        assert notification_service.get_unread_count(db, user_id=user.id) == 1
        assert dispatched == [notification.id]
    finally:
        db.close()


def test_dispatch_email_sends_in_background(monkeypatch):
    db = _build_db()
    try:
        user = _create_user(db, email="mailok@tradepost.edu")
        notification = notification_service.create_notification(
            db,
            recipient_id=user.id,
            event_type="report_action",
            title="Report Action Taken",
            message="Your listing was removed",
        )
        db.commit()

        sent_payload = {}
        delivered = threading.Event()

        def fake_send_email(**kwargs):
            sent_payload.update(kwargs)
            delivered.set()
            return True

        monkeypatch.setattr(notification_service, "is_email_enabled", lambda: True)
        monkeypatch.setattr(notification_service, "send_email", fake_send_email)

        assert notification_service.dispatch_email_for_notification(db, notification) is True
        assert delivered.wait(timeout=5)
        assert sent_payload["to_email"] == "mailok@tradepost.edu"
        assert sent_payload["subject"] == notification_service.EMAIL_SUBJECT_BY_EVENT["report_action"]
        assert "Your listing was removed" in sent_payload["body_text"]
    finally:
        db.close()


def test_dispatch_email_failure_is_non_blocking(monkeypatch):
    db = _build_db()
    try:
        user = _create_user(db, email="safe@tradepost.edu")
        notification = notification_service.create_notification(
            db,
            recipient_id=user.id,
            event_type="message",
            title="New Message",
            message="Hi",
        )
        db.commit()

        class BrokenThread:
            def __init__(self, *args, **kwargs):
                raise RuntimeError("can't start new thread")

        monkeypatch.setattr(notification_service, "is_email_enabled", lambda: True)
        monkeypatch.setattr(notification_service.threading, "Thread", BrokenThread)

        assert notification_service.dispatch_email_for_notification(db, notification) is False
    finally:
        db.close()


def test_dispatch_skipped_when_email_disabled(monkeypatch):
    db = _build_db()
    try:
        user = _create_user(db)
        notification = notification_service.create_notification(
            db,
            recipient_id=user.id,
            event_type="message",
            title="New Message",
            message="Hi",
        )
        db.commit()

        monkeypatch.setattr(notification_service, "is_email_enabled", lambda: False)
        assert notification_service.dispatch_email_for_notification(db, notification) is False
    finally:
        db.close()
