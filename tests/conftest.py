"""Pytest bootstrap for project imports and shared fixtures."""

import os
from pathlib import Path
import sys

# Settings are read at import time; give them a throwaway store before tradepost loads.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("EMAIL_NOTIFICATIONS_ENABLED", "false")

# Ensure project root is on sys.path so `import tradepost` works without installing
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tradepost.database import Base
from tradepost.models.product import Product
from tradepost.models.user import User


@pytest.fixture
def db_session():
    """In-memory database session with the full schema."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(name=None, role="user", **fields):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=f"user{n}@tradepost.edu",
            role=role,
            is_active=True,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db_session):
    def _make(seller, title="Used Calculus Textbook", price=25.0):
        product = Product(seller_id=seller.id, title=title, price=price)
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make
