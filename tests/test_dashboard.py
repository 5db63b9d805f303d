"""Tests for dashboard helpers - form error text and the transactions table."""

from datetime import date

import pytest

from conftest import make_row
from dashboard import FIELD_LABELS, field_error_text, transactions_frame
from errors import ValidationError


class TestFieldErrorText:
    @pytest.mark.parametrize("field,label", [
        ("amount", "Số tiền"),
        ("confirm_password", "Xác nhận mật khẩu"),
        ("monthly_budget", "Ngân sách tháng"),
    ])
    def test_names_the_field(self, field, label):
        text = field_error_text(ValidationError(field, "Sai rồi."))
        assert text == f"⚠️ {label}: Sai rồi."

    def test_unknown_field_shows_message_only(self):
        assert field_error_text(ValidationError("other", "Sai rồi.")) == "⚠️ Sai rồi."

    def test_every_repository_and_auth_field_has_a_label(self):
        for field in ("email", "password", "current_password", "new_password", "amount",
                      "transaction_date", "category_id", "name", "target_amount", "deadline"):
            assert field in FIELD_LABELS


class TestTransactionsFrame:
    def test_empty(self):
        frame = transactions_frame([])
        assert list(frame.columns) == ["Ngày", "Danh mục", "Mô tả", "Số tiền"]
        assert frame.empty

    def test_rows(self):
        frame = transactions_frame([
            make_row(25000, date(2026, 10, 18), description="Trà sữa"),
            make_row(7000, date(2026, 10, 17), category=None),
        ])
        assert frame["Danh mục"].tolist() == ["🍜 Food", "📦 Khác"]
        assert frame["Số tiền"].tolist() == ["25.000 ₫", "7.000 ₫"]
