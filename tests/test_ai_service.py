"""Tests for ai_service module - 30-day window and failure handling."""

from datetime import date, timedelta

from ai_service import ANALYZE_ERROR, CHAT_CONTEXT_LIMIT, CHAT_ERROR, analyze_insight, chat_reply
from insights import EMPTY_INSIGHT
from providers import CompletionProvider, DeterministicFallbackProvider
from repository import create_transaction

TODAY = date(2026, 10, 18)


class RecordingProvider(CompletionProvider):
    def __init__(self):
        self.rows = None
        self.messages = None

    def analyze(self, profile, rows):
        self.rows = rows
        return f"{profile.display_name}: {len(rows)}"

    def chat(self, profile, rows, messages):
        self.rows = rows
        self.messages = messages
        return "ok"


class FailingProvider(CompletionProvider):
    def analyze(self, profile, rows):
        raise ConnectionError("network unreachable")

    def chat(self, profile, rows, messages):
        raise ConnectionError("network unreachable")


def add(db, ctx, category_ids, amount, days_ago):
    create_transaction(db, ctx, amount, "x", TODAY - timedelta(days=days_ago), category_ids["Ăn uống"])


class TestAnalyzeInsight:
    def test_no_recent_rows(self, db, user, category_ids):
        add(db, user, category_ids, 10000, 45)
        provider = RecordingProvider()
        assert analyze_insight(db, user, provider, today=TODAY) == EMPTY_INSIGHT
        assert provider.rows is None

    def test_only_last_thirty_days(self, db, user, category_ids):
        for days_ago in (0, 10, 30, 31):
            add(db, user, category_ids, 10000, days_ago)
        provider = RecordingProvider()
        assert analyze_insight(db, user, provider, today=TODAY) == "An: 3"

    def test_provider_failure_becomes_message(self, db, user, category_ids):
        add(db, user, category_ids, 10000, 1)
        assert analyze_insight(db, user, FailingProvider(), today=TODAY) == ANALYZE_ERROR

    def test_offline_provider(self, db, user, category_ids):
        add(db, user, category_ids, 100000, 1)
        text = analyze_insight(db, user, DeterministicFallbackProvider(), today=TODAY)
        assert "Tổng chi tiêu 30 ngày: 100000đ (20% ngân sách)" in text


class TestChatReply:
    def test_passes_messages_and_caps_rows(self, db, user, category_ids):
        for i in range(CHAT_CONTEXT_LIMIT + 5):
            add(db, user, category_ids, 1000, i % 20)
        provider = RecordingProvider()
        messages = [{"role": "user", "content": "hi"}]
        assert chat_reply(db, user, provider, messages, today=TODAY) == "ok"
        assert provider.messages == messages
        assert len(provider.rows) == CHAT_CONTEXT_LIMIT

    def test_other_users_rows_never_reach_the_provider(self, db, user, other_user, category_ids):
        add(db, other_user, category_ids, 1000, 1)
        provider = RecordingProvider()
        chat_reply(db, user, provider, [], today=TODAY)
        assert provider.rows == []

    def test_provider_failure_becomes_message(self, db, user):
        assert chat_reply(db, user, FailingProvider(), [{"role": "user", "content": "hi"}], today=TODAY) == CHAT_ERROR
