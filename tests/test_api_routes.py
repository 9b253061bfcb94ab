"""
HTTP surface tests: domain errors come back with their status codes and
suspended accounts are refused on write endpoints.
"""

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tradepost.database import Base, get_db, utcnow
from tradepost.main import app
from tradepost.models.product import Product
from tradepost.models.user import User
from tradepost.utils.security import get_current_user


@pytest.fixture
def api():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    db = sessionmaker(bind=engine)()

    buyer = User(name="Buyer", email="buyer@tradepost.edu")
    seller = User(name="Seller", email="seller@tradepost.edu")
    admin = User(name="Admin", email="admin@tradepost.edu", role="admin")
    db.add_all([buyer, seller, admin])
    db.commit()
    product = Product(seller_id=seller.id, title="Standing Desk", price=120.0)
    db.add(product)
    db.commit()

    state = {"user": buyer}

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_user] = lambda: state["user"]
    try:
        yield {
            "client": TestClient(app),
            "db": db,
            "state": state,
            "buyer": buyer,
            "seller": seller,
            "admin": admin,
            "product": product,
        }
    finally:
        app.dependency_overrides.clear()
        db.close()
        engine.dispose()


def test_conversation_and_message_flow(api):
    client = api["client"]
    body = {"product_id": api["product"].id, "receiver_id": api["seller"].id}

    first = client.post("/conversations/", json=body)
    assert first.status_code == 200
    assert first.json()["created"] is True
    conversation_id = first.json()["conversation"]["id"]

    again = client.post("/conversations/", json=body)
    assert again.json()["created"] is False
    assert again.json()["conversation"]["id"] == conversation_id

    sent = client.post(
        "/messages/",
        json={"conversation_id": conversation_id, "receiver_id": api["seller"].id, "content": "Hi there"},
    )
    assert sent.status_code == 200
    assert sent.json()["content"] == "Hi there"

    api["state"]["user"] = api["seller"]
    unread = client.get("/messages/unread-count")
    assert unread.json()["unread_count"] == 1

    listed = client.get("/conversations/")
    assert listed.json()[0]["unread_count"] == 1
    assert listed.json()[0]["last_message"]["content"] == "Hi there"

    marked = client.patch("/messages/read", params={"conversation_id": conversation_id})
    assert marked.json()["updated"] == 1


def test_domain_errors_map_to_status_codes(api):
    client = api["client"]

    own = client.post("/conversations/", json={"product_id": api["product"].id, "receiver_id": api["buyer"].id})
    assert own.status_code == 400
    assert own.json()["detail"] == "You cannot message yourself"

    missing = client.post("/conversations/", json={"product_id": 9999, "receiver_id": api["seller"].id})
    assert missing.status_code == 404

    blank = client.post("/messages/", json={"conversation_id": 1, "receiver_id": api["seller"].id, "content": "   "})
    assert blank.status_code == 422

    bad_reason = client.post("/reports/", json={"product_id": api["product"].id, "reason": "boring"})
    assert bad_reason.status_code == 400


def test_report_resolution_over_http(api):
    client = api["client"]

    filed = client.post("/reports/", json={"product_id": api["product"].id, "reason": "scam"})
    assert filed.status_code == 201
    report_id = filed.json()["report_id"]

    duplicate = client.post("/reports/", json={"product_id": api["product"].id, "reason": "spam"})
    assert duplicate.status_code == 409

    denied = client.patch(f"/admin/reports/{report_id}", json={"action": "warning"})
    assert denied.status_code == 403

    api["state"]["user"] = api["admin"]
    queue = client.get("/admin/reports")
    assert queue.status_code == 200
    assert queue.json()["pagination"]["total"] == 1
    assert queue.json()["reports"][0]["status"] == "pending"

    resolved = client.patch(f"/admin/reports/{report_id}", json={"action": "warning", "admin_notes": "First strike"})
    assert resolved.status_code == 200
    assert resolved.json()["warning_count"] == 1
    assert resolved.json()["status"] == "resolved"

    repeat = client.patch(f"/admin/reports/{report_id}", json={"action": "warning"})
    assert repeat.status_code == 409

    detail = client.get(f"/admin/reports/{report_id}")
    assert detail.json()["admin_action"] == "warning"
    assert detail.json()["reviewed_at"] is not None

    unknown_action = client.get("/admin/reports", params={"status": "archived"})
    assert unknown_action.status_code == 400


def test_suspended_user_cannot_write(api):
    client = api["client"]
    buyer = api["buyer"]
    buyer.is_suspended = True
    buyer.suspension_end_date = utcnow() + timedelta(days=7)
    api["db"].commit()

    response = client.post("/reports/", json={"product_id": api["product"].id, "reason": "spam"})
    assert response.status_code == 403

    # reads stay available
    assert client.get("/conversations/").status_code == 200


def test_store_outage_is_reported_as_unavailable(api):
    def broken_db():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    app.dependency_overrides[get_db] = broken_db
    response = api["client"].get("/conversations/")
    assert response.status_code == 503
    assert response.json()["detail"] == "Service temporarily unavailable, please retry"


def test_health(api):
    assert api["client"].get("/health").json()["status"] == "healthy"
