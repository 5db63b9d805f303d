import logging
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    create_engine,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from config import DATABASE_URL, DEFAULT_MONTHLY_BUDGET
from errors import StoreError

logger = logging.getLogger(__name__)

# Whole VND are the norm; two decimals keep room for manual edits
Money = Numeric(14, 2, asdecimal=True)


def make_engine(url: str = DATABASE_URL):
    return create_engine(url, connect_args={"check_same_thread": False} if "sqlite" in url else {})


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form the DateTime columns hold."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# Shared category list: (name, icon, color)
DEFAULT_CATEGORIES = [
    ("Ăn uống", "🍜", "#f97316"),
    ("Di chuyển", "🚌", "#3b82f6"),
    ("Học tập", "📚", "#a855f7"),
    ("Giải trí", "🎮", "#22c55e"),
    ("Mua sắm", "🛍️", "#ec4899"),
    ("Khác", "📦", "#6b7280"),
]

# --- Models ---

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)  # bcrypt hash, never plain text
    created_at = Column(DateTime, default=utcnow)

    profile = relationship("Profile", back_populates="user", uselist=False)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, ForeignKey("users.id"), primary_key=True)  # same id as the user
    display_name = Column(String, default="")
    monthly_budget = Column(Money, default=DEFAULT_MONTHLY_BUDGET)

    user = relationship("User", back_populates="profile")


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    icon = Column(String, default="📦")
    color = Column(String, default="#6b7280")


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    amount = Column(Money, nullable=False)
    description = Column(String, default="")
    transaction_date = Column(Date, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    category = relationship("Category")


class SavingsGoal(Base):
    __tablename__ = "savings_goals"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    icon = Column(String, default="🎯")
    target_amount = Column(Money, nullable=False)
    current_amount = Column(Money, default=0)
    deadline = Column(Date, nullable=True)
    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    token = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=False)


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    token = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, default=False)


# --- Init DB ---

def seed_categories(db):
    """Insert the shared category list if the table is empty."""
    if db.query(Category).first():
        return 0
    for name, icon, color in DEFAULT_CATEGORIES:
        db.add(Category(name=name, icon=icon, color=color))
    db.commit()
    return len(DEFAULT_CATEGORIES)


def init_db(bind=None):
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    db = SessionLocal(bind=bind)
    try:
        seed_categories(db)
    finally:
        db.close()


def commit_or_rollback(db, action: str = "write"):
    """Commit, or roll back and raise StoreError so the caller's rows stay as they were."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database %s failed: %s", action, exc)
        raise StoreError(action) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
