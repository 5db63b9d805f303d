"""Chat and analysis requests: load the caller's last 30 days, ask the provider.

Both entry points always return text. Store or provider failures are
logged and turned into the generic error messages shown to the user.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from auth import AuthContext
from insights import EMPTY_INSIGHT
from providers import CompletionProvider
from repository import get_profile, list_transactions

logger = logging.getLogger(__name__)

WINDOW_DAYS = 30
CHAT_CONTEXT_LIMIT = 50

ANALYZE_ERROR = "❌ Đã xảy ra lỗi khi phân tích. Vui lòng thử lại sau."
CHAT_ERROR = "❌ Đã xảy ra lỗi. Vui lòng thử lại sau."


def window_start(today: Optional[date] = None) -> date:
    return (today or date.today()) - timedelta(days=WINDOW_DAYS)


def analyze_insight(db: Session, ctx: AuthContext, provider: CompletionProvider,
                    today: Optional[date] = None) -> str:
    try:
        rows = list_transactions(db, ctx, start=window_start(today))
        if not rows:
            return EMPTY_INSIGHT
        profile = get_profile(db, ctx)
        return provider.analyze(profile, rows)
    except Exception:
        logger.exception("AI analyze failed for user %s", ctx.user_id)
        return ANALYZE_ERROR


def chat_reply(db: Session, ctx: AuthContext, provider: CompletionProvider,
               messages: List[dict], today: Optional[date] = None) -> str:
    try:
        rows = list_transactions(db, ctx, start=window_start(today), limit=CHAT_CONTEXT_LIMIT)
        profile = get_profile(db, ctx)
        return provider.chat(profile, rows, messages)
    except Exception:
        logger.exception("AI chat failed for user %s", ctx.user_id)
        return CHAT_ERROR
