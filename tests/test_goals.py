"""Tests for savings goals - deposit rule, progress helpers and the stored goal."""

from decimal import Decimal

import pytest

from errors import NotFoundError, ValidationError
from goals import apply_deposit, progress_percent, remaining_amount
from repository import create_goal, delete_goal, deposit_to_goal, list_goals, update_goal


class TestApplyDeposit:
    """Tests for the pure deposit rule."""

    def test_positive_deposit_adds(self):
        assert apply_deposit(Decimal(100), Decimal(500), Decimal(150)) == (Decimal(250), False)

    def test_reaching_target_exactly_completes(self):
        assert apply_deposit(Decimal(400), Decimal(500), Decimal(100)) == (Decimal(500), True)

    def test_one_unit_below_target_stays_active(self):
        assert apply_deposit(Decimal(400), Decimal(500), Decimal(99)) == (Decimal(499), False)

    @pytest.mark.parametrize("amount", [Decimal(0), Decimal(-50)])
    def test_non_positive_is_noop(self, amount):
        assert apply_deposit(Decimal(100), Decimal(500), amount) == (Decimal(100), False)
        assert apply_deposit(Decimal(100), Decimal(50), amount, completed=True) == (Decimal(100), True)

    def test_sub_cent_remainder_rounds_before_completion_check(self):
        assert apply_deposit(Decimal(0), Decimal(100), Decimal("99.999")) == (Decimal("100.00"), True)
        assert apply_deposit(Decimal(0), Decimal(100), Decimal("99.994")) == (Decimal("99.99"), False)

    def test_amount_rounding_to_zero_is_noop(self):
        assert apply_deposit(Decimal(10), Decimal(100), Decimal("0.004")) == (Decimal(10), False)


class TestProgressHelpers:
    def test_progress_percent(self):
        assert progress_percent(Decimal(250), Decimal(1000)) == 25.0
        assert progress_percent(Decimal(2000), Decimal(1000)) == 100.0
        assert progress_percent(Decimal(10), Decimal(0)) == 0.0

    def test_remaining_amount(self):
        assert remaining_amount(Decimal(250), Decimal(1000)) == Decimal(750)
        assert remaining_amount(Decimal(2000), Decimal(1000)) == Decimal(0)


class TestStoredGoals:
    """Tests for goal writes through the repository."""

    def test_create_starts_empty(self, db, user):
        goal = create_goal(db, user, "Tai nghe", "800000", "🎧", "2026-12-24")
        assert goal.current_amount == 0
        assert goal.is_completed is False
        assert goal.deadline.isoformat() == "2026-12-24"

    def test_deposit_to_exact_target_completes(self, db, user):
        goal = create_goal(db, user, "Giày", 300000)
        goal = deposit_to_goal(db, user, goal.id, 299999)
        assert goal.is_completed is False
        goal = deposit_to_goal(db, user, goal.id, 1)
        assert goal.current_amount == Decimal(300000)
        assert goal.is_completed is True

    @pytest.mark.parametrize("amount", [0, -1000, "abc", ""])
    def test_invalid_deposit_changes_nothing(self, db, user, amount):
        goal = create_goal(db, user, "Sách", 100000)
        deposit_to_goal(db, user, goal.id, 40000)
        after = deposit_to_goal(db, user, goal.id, amount)
        assert after.current_amount == Decimal(40000)
        assert after.is_completed is False

    def test_stored_balance_and_flag_agree_after_rounding(self, db, user):
        goal = create_goal(db, user, "Sổ tay", "100")
        goal = deposit_to_goal(db, user, goal.id, "99.999")
        assert goal.current_amount == Decimal("100.00")
        assert goal.is_completed is True

    def test_sub_cent_deposit_changes_nothing(self, db, user):
        goal = create_goal(db, user, "Bút", "100")
        goal = deposit_to_goal(db, user, goal.id, "0.004")
        assert goal.current_amount == 0
        assert goal.is_completed is False

    def test_target_is_rounded_to_cents(self, db, user):
        goal = create_goal(db, user, "Mũ", "49.995")
        assert goal.target_amount == Decimal("50.00")
        goal = deposit_to_goal(db, user, goal.id, "50")
        assert goal.is_completed is True

    def test_lowering_target_recomputes_completion(self, db, user):
        goal = create_goal(db, user, "Balo", 500000)
        deposit_to_goal(db, user, goal.id, 300000)
        goal = update_goal(db, user, goal.id, "Balo", 250000, "🎒")
        assert goal.is_completed is True

    def test_create_rejects_bad_input(self, db, user):
        with pytest.raises(ValidationError) as exc:
            create_goal(db, user, "  ", 1000)
        assert exc.value.field == "name"
        with pytest.raises(ValidationError) as exc:
            create_goal(db, user, "Máy tính", 0)
        assert exc.value.field == "target_amount"
        assert list_goals(db, user) == []

    def test_goals_are_private(self, db, user, other_user):
        goal = create_goal(db, user, "Điện thoại", 5000000)
        assert list_goals(db, other_user) == []
        with pytest.raises(NotFoundError):
            deposit_to_goal(db, other_user, goal.id, 1000)
        with pytest.raises(NotFoundError):
            delete_goal(db, other_user, goal.id)
        assert list_goals(db, user)[0].current_amount == 0

    def test_delete(self, db, user):
        goal = create_goal(db, user, "Du lịch", 2000000)
        delete_goal(db, user, goal.id)
        assert list_goals(db, user) == []
