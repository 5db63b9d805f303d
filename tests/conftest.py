"""Shared fixtures: an in-memory database with the default categories and a signed-up user."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import sign_up
from database import Base, seed_categories
from repository import CategoryRef, ProfileRow, TransactionRow


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = factory()
    seed_categories(db)
    db.close()
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user(db):
    return sign_up(db, "an@example.com", "secret123", "An")


@pytest.fixture
def other_user(db):
    return sign_up(db, "binh@example.com", "secret456", "Bình")


@pytest.fixture
def category_ids(db):
    from repository import list_categories

    return {c.name: c.id for c in list_categories(db)}


FOOD = CategoryRef(id=1, name="Food", icon="🍜", color="#f97316")
TRANSPORT = CategoryRef(id=2, name="Transport", icon="🚌", color="#3b82f6")


def make_row(amount, day=date(2026, 10, 18), category=FOOD, row_id=0, description=""):
    return TransactionRow(
        id=row_id,
        amount=Decimal(str(amount)),
        description=description,
        transaction_date=day,
        category_id=category.id if category else None,
        category=category,
    )


@pytest.fixture
def sample_rows():
    """The three-row example: two Food rows, one Transport row."""
    return [
        make_row(150000, date(2026, 10, 17), FOOD, 1),
        make_row(50000, date(2026, 10, 16), FOOD, 2),
        make_row(100000, date(2026, 10, 15), TRANSPORT, 3),
    ]


@pytest.fixture
def sample_profile():
    return ProfileRow(display_name="An", monthly_budget=Decimal("500000"))
