"""Per-user reads and writes for profiles, categories, transactions and goals.

Every function takes the caller's ``AuthContext`` and filters on its
``user_id``; rows owned by somebody else behave exactly like missing rows.
Results come back as plain dataclasses so pages and the aggregation code
never touch ORM objects or half-loaded joins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from auth import AuthContext
from config import DEFAULT_MONTHLY_BUDGET
from database import Category, Profile, SavingsGoal, Transaction, commit_or_rollback
from errors import NotFoundError, ValidationError
from goals import apply_deposit, round_money


@dataclass(frozen=True)
class CategoryRef:
    id: int
    name: str
    icon: str
    color: str


@dataclass(frozen=True)
class ProfileRow:
    display_name: str
    monthly_budget: Decimal


@dataclass(frozen=True)
class TransactionRow:
    id: int
    amount: Decimal
    description: str
    transaction_date: date
    category_id: Optional[int]
    category: Optional[CategoryRef]


@dataclass(frozen=True)
class GoalRow:
    id: int
    name: str
    icon: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: Optional[date]
    is_completed: bool


# --- Conversions ---

def _category_ref(cat: Optional[Category]) -> Optional[CategoryRef]:
    if cat is None:
        return None
    return CategoryRef(id=cat.id, name=cat.name, icon=cat.icon or "📦", color=cat.color or "#6b7280")


def _transaction_row(t: Transaction) -> TransactionRow:
    return TransactionRow(
        id=t.id,
        amount=Decimal(t.amount),
        description=t.description or "",
        transaction_date=t.transaction_date,
        category_id=t.category_id,
        category=_category_ref(t.category),
    )


def _goal_row(g: SavingsGoal) -> GoalRow:
    return GoalRow(
        id=g.id,
        name=g.name,
        icon=g.icon or "🎯",
        target_amount=Decimal(g.target_amount),
        current_amount=Decimal(g.current_amount or 0),
        deadline=g.deadline,
        is_completed=bool(g.is_completed),
    )


# --- Input validation ---

def parse_amount(value, field: str = "amount") -> Decimal:
    """Positive amount from a form value, rounded to the stored scale, or ValidationError."""
    try:
        amount = Decimal(str(value).strip())
        if amount.is_finite():
            amount = round_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(field, "Số tiền không hợp lệ.")
    # Checked after rounding: 0.001 would be stored as 0.00
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(field, "Số tiền phải lớn hơn 0.")
    return amount


def parse_date(value, field: str = "transaction_date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(field, "Ngày không hợp lệ.")


def _require_category(db: Session, category_id) -> int:
    if category_id is None or db.get(Category, category_id) is None:
        raise ValidationError("category_id", "Danh mục không tồn tại.")
    return category_id


def _require_name(name: str, field: str = "name") -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError(field, "Vui lòng nhập tên.")
    return name


# --- Profile ---

def get_profile(db: Session, ctx: AuthContext) -> ProfileRow:
    profile = db.get(Profile, ctx.user_id)
    if profile is None:
        return ProfileRow(display_name="", monthly_budget=DEFAULT_MONTHLY_BUDGET)
    budget = profile.monthly_budget if profile.monthly_budget is not None else DEFAULT_MONTHLY_BUDGET
    return ProfileRow(display_name=profile.display_name or "", monthly_budget=Decimal(budget))


def update_profile(db: Session, ctx: AuthContext, display_name: Optional[str] = None,
                   monthly_budget=None) -> ProfileRow:
    budget = parse_amount(monthly_budget, "monthly_budget") if monthly_budget is not None else None
    profile = db.get(Profile, ctx.user_id)
    if profile is None:
        profile = Profile(id=ctx.user_id, display_name="", monthly_budget=DEFAULT_MONTHLY_BUDGET)
        db.add(profile)
    if display_name is not None:
        profile.display_name = display_name.strip()
    if budget is not None:
        profile.monthly_budget = budget
    commit_or_rollback(db, "profile update")
    return get_profile(db, ctx)


# --- Categories ---

def list_categories(db: Session) -> List[CategoryRef]:
    return [_category_ref(c) for c in db.query(Category).order_by(Category.name).all()]


# --- Transactions ---

def list_transactions(
    db: Session,
    ctx: AuthContext,
    start: Optional[date] = None,
    end: Optional[date] = None,
    category_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> List[TransactionRow]:
    """Transactions in ``[start, end]``, newest first."""
    query = (
        db.query(Transaction)
        .options(joinedload(Transaction.category))
        .filter(Transaction.user_id == ctx.user_id)
    )
    if start is not None:
        query = query.filter(Transaction.transaction_date >= start)
    if end is not None:
        query = query.filter(Transaction.transaction_date <= end)
    if category_id is not None:
        query = query.filter(Transaction.category_id == category_id)
    query = query.order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
    if limit:
        query = query.limit(limit)
    return [_transaction_row(t) for t in query.all()]


def _owned_transaction(db: Session, ctx: AuthContext, tx_id) -> Transaction:
    txn = (
        db.query(Transaction)
        .filter(Transaction.id == tx_id, Transaction.user_id == ctx.user_id)
        .first()
    )
    if txn is None:
        raise NotFoundError(f"transaction {tx_id}")
    return txn


def create_transaction(db: Session, ctx: AuthContext, amount, description: str,
                       transaction_date, category_id) -> TransactionRow:
    txn = Transaction(
        user_id=ctx.user_id,
        amount=parse_amount(amount),
        description=(description or "").strip(),
        transaction_date=parse_date(transaction_date),
        category_id=_require_category(db, category_id),
    )
    db.add(txn)
    commit_or_rollback(db, "transaction insert")
    db.refresh(txn)
    return _transaction_row(txn)


def update_transaction(db: Session, ctx: AuthContext, tx_id, amount, description: str,
                       transaction_date, category_id) -> TransactionRow:
    # Validate everything before touching the row
    new_amount = parse_amount(amount)
    new_date = parse_date(transaction_date)
    new_category = _require_category(db, category_id)
    txn = _owned_transaction(db, ctx, tx_id)
    txn.amount = new_amount
    txn.description = (description or "").strip()
    txn.transaction_date = new_date
    txn.category_id = new_category
    commit_or_rollback(db, "transaction update")
    db.refresh(txn)
    return _transaction_row(txn)


def delete_transaction(db: Session, ctx: AuthContext, tx_id):
    db.delete(_owned_transaction(db, ctx, tx_id))
    commit_or_rollback(db, "transaction delete")


# --- Savings goals ---

def list_goals(db: Session, ctx: AuthContext) -> List[GoalRow]:
    goals = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.user_id == ctx.user_id)
        .order_by(SavingsGoal.created_at.desc(), SavingsGoal.id.desc())
        .all()
    )
    return [_goal_row(g) for g in goals]


def _owned_goal(db: Session, ctx: AuthContext, goal_id) -> SavingsGoal:
    goal = (
        db.query(SavingsGoal)
        .filter(SavingsGoal.id == goal_id, SavingsGoal.user_id == ctx.user_id)
        .first()
    )
    if goal is None:
        raise NotFoundError(f"savings goal {goal_id}")
    return goal


def _optional_deadline(deadline) -> Optional[date]:
    if deadline in (None, ""):
        return None
    return parse_date(deadline, "deadline")


def create_goal(db: Session, ctx: AuthContext, name: str, target_amount, icon: str = "🎯",
                deadline=None) -> GoalRow:
    goal = SavingsGoal(
        user_id=ctx.user_id,
        name=_require_name(name),
        target_amount=parse_amount(target_amount, "target_amount"),
        current_amount=Decimal(0),
        icon=icon or "🎯",
        deadline=_optional_deadline(deadline),
        is_completed=False,
    )
    db.add(goal)
    commit_or_rollback(db, "goal insert")
    db.refresh(goal)
    return _goal_row(goal)


def update_goal(db: Session, ctx: AuthContext, goal_id, name: str, target_amount,
                icon: str = "🎯", deadline=None) -> GoalRow:
    new_name = _require_name(name)
    new_target = parse_amount(target_amount, "target_amount")
    new_deadline = _optional_deadline(deadline)
    goal = _owned_goal(db, ctx, goal_id)
    goal.name = new_name
    goal.target_amount = new_target
    goal.icon = icon or "🎯"
    goal.deadline = new_deadline
    goal.is_completed = Decimal(goal.current_amount or 0) >= new_target
    commit_or_rollback(db, "goal update")
    db.refresh(goal)
    return _goal_row(goal)


def delete_goal(db: Session, ctx: AuthContext, goal_id):
    db.delete(_owned_goal(db, ctx, goal_id))
    commit_or_rollback(db, "goal delete")


def deposit_to_goal(db: Session, ctx: AuthContext, goal_id, amount) -> GoalRow:
    """Add money to a goal; amounts that are unparsable or round to 0 or less are ignored."""
    goal = _owned_goal(db, ctx, goal_id)
    try:
        amount = Decimal(str(amount).strip())
        if not amount.is_finite():
            return _goal_row(goal)
        amount = round_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        return _goal_row(goal)
    if amount <= 0:
        return _goal_row(goal)

    goal.current_amount, goal.is_completed = apply_deposit(
        goal.current_amount, goal.target_amount, amount, goal.is_completed
    )
    commit_or_rollback(db, "goal deposit")
    db.refresh(goal)
    return _goal_row(goal)
