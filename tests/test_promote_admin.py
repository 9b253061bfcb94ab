from sqlalchemy.orm import sessionmaker

from tradepost.models.user import User
from tradepost.scripts import promote_admin as script


def _use_own_session(monkeypatch, db_session):
    # the script closes its session, so give it one of its own on the same database
    monkeypatch.setattr(script, "SessionLocal", sessionmaker(bind=db_session.get_bind()))


def _role_of(db_session, user_id):
    db_session.expire_all()
    return db_session.get(User, user_id).role


def test_promotion_requires_confirmation(monkeypatch, db_session, make_user):
    user = make_user()
    user_id, email = user.id, user.email
    _use_own_session(monkeypatch, db_session)
    monkeypatch.delenv("PROMOTE_ADMIN_CONFIRM", raising=False)

    assert script.promote_admin(email) == 1
    assert _role_of(db_session, user_id) == "user"


def test_promotes_existing_user(monkeypatch, db_session, make_user):
    user = make_user()
    user_id, email = user.id, user.email
    _use_own_session(monkeypatch, db_session)
    monkeypatch.setenv("PROMOTE_ADMIN_CONFIRM", script.CONFIRM_PHRASE)

    assert script.promote_admin(email, "super_admin") == 0
    assert _role_of(db_session, user_id) == "super_admin"

    # running it again is a no-op
    assert script.promote_admin(email, "super_admin") == 0


def test_rejects_unknown_role_and_email(monkeypatch, db_session, make_user):
    user = make_user()
    email = user.email
    _use_own_session(monkeypatch, db_session)
    monkeypatch.setenv("PROMOTE_ADMIN_CONFIRM", script.CONFIRM_PHRASE)

    assert script.promote_admin(email, "owner") == 1
    assert script.promote_admin("ghost@tradepost.edu", "admin") == 1
