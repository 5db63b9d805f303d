"""Spending summaries, AI prompts and the offline replies used without an API key.

Nothing here does I/O: the functions take a profile and the 30-day
transaction rows and return strings, so the same inputs always give the
same text.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from aggregation import category_breakdown, total
from config import DEFAULT_MONTHLY_BUDGET

DEFAULT_NAME = "Bạn"
NO_DATA = "Chưa có dữ liệu"

EMPTY_INSIGHT = (
    "Bạn chưa có giao dịch nào trong 30 ngày qua. Hãy bắt đầu ghi chép chi tiêu hàng ngày "
    "để AI có thể phân tích và đưa ra gợi ý hữu ích cho bạn! 📝"
)
CONFIG_HINT = "⚠️ Để nhận phân tích AI chi tiết hơn, hãy cấu hình OPENAI_API_KEY trong file .env"

ANALYSIS_KEYWORDS = ("phân tích", "chi tiêu", "analy", "spending")
SAVING_KEYWORDS = ("tiết kiệm", "saving", "save")

SAVING_TIPS = (
    "💰 Một số mẹo tiết kiệm cho học sinh:\n\n"
    "1. Ghi chép chi tiêu mỗi ngày\n"
    "2. Đặt ngân sách cho từng danh mục\n"
    "3. Áp dụng quy tắc 50-30-20\n"
    "4. Mang theo bình nước thay vì mua nước ngoài\n"
    "5. Tìm ưu đãi và khuyến mãi cho sinh viên"
)


# --- Formatting ---

def plain_amount(value) -> str:
    """Whole VND without grouping, e.g. ``200000``."""
    return str(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_vnd(value) -> str:
    """Display form used on the pages, e.g. ``200.000 ₫``."""
    whole = int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return f"{whole:,} ₫".replace(",", ".")


def _percent(part: Decimal, whole: Decimal, places: int = 1) -> str:
    if not whole:
        return "0"
    exp = Decimal(1).scaleb(-places)
    return str((Decimal(part) / Decimal(whole) * 100).quantize(exp, rounding=ROUND_HALF_UP))


def _name(profile) -> str:
    return (profile.display_name if profile else "") or DEFAULT_NAME


def _budget(profile) -> Decimal:
    if profile is None or not profile.monthly_budget:
        return DEFAULT_MONTHLY_BUDGET
    return Decimal(profile.monthly_budget)


def _ranked(rows):
    # sorted() is stable, so ties keep first-seen order
    return sorted(category_breakdown(rows), key=lambda c: c.value, reverse=True)


# --- Summaries ---

def build_spending_summary(rows: Sequence) -> List[str]:
    """
    One ``"<category>: <amount>đ (<share>%)"`` line per category, biggest
    first. Empty input gives an empty list.
    """
    if not rows:
        return []
    spent = total(rows)
    if spent <= 0:
        return []
    return [f"{c.name}: {plain_amount(c.value)}đ ({_percent(c.value, spent)}%)" for c in _ranked(rows)]


def spending_context(rows: Sequence) -> str:
    """Compact ``cat: amountđ, ...`` string for the chat persona."""
    return ", ".join(f"{c.name}: {plain_amount(c.value)}đ" for c in _ranked(rows))


def build_analysis_prompt(profile, rows: Sequence) -> str:
    summary = "\n".join(f"- {line}" for line in build_spending_summary(rows)) or f"- {NO_DATA}"
    return (
        "Bạn là chuyên gia tài chính dành cho học sinh Việt Nam. "
        "Phân tích chi tiêu sau và đưa ra nhận xét ngắn gọn, thân thiện:\n\n"
        f"Tên: {_name(profile)}\n"
        f"Ngân sách tháng: {plain_amount(_budget(profile))}đ\n"
        f"Tổng chi tiêu 30 ngày: {plain_amount(total(rows))}đ\n"
        f"Số giao dịch: {len(rows)}\n\n"
        "Chi tiêu theo danh mục:\n"
        f"{summary}\n\n"
        "Hãy:\n"
        "1. Nhận xét thói quen chi tiêu (1-2 câu)\n"
        "2. Chỉ ra danh mục chi tiêu nhiều nhất và gợi ý cải thiện (1-2 câu)\n"
        "3. Đưa ra 1 mẹo tiết kiệm cụ thể phù hợp với học sinh (1 câu)\n\n"
        "Trả lời bằng tiếng Việt, ngắn gọn (tối đa 120 từ), thân thiện, dùng emoji."
    )


def build_chat_system_prompt(profile, rows: Sequence) -> str:
    return (
        "Bạn là trợ lý tài chính AI thân thiện dành cho học sinh Việt Nam, tên là PocketWise AI.\n\n"
        "Thông tin người dùng:\n"
        f"- Tên: {_name(profile)}\n"
        f"- Ngân sách hàng tháng: {plain_amount(_budget(profile))}đ\n"
        f"- Tổng chi tiêu 30 ngày gần đây: {plain_amount(total(rows))}đ\n"
        f"- Chi tiêu theo danh mục: {spending_context(rows) or NO_DATA}\n"
        f"- Số giao dịch: {len(rows)}\n\n"
        "Quy tắc:\n"
        "- Trả lời bằng tiếng Việt, thân thiện, ngắn gọn\n"
        "- Dùng emoji phù hợp\n"
        "- Đưa ra lời khuyên thiết thực cho học sinh\n"
        "- Nếu hỏi về chi tiêu, dựa vào dữ liệu thực tế ở trên\n"
        "- Không nói những gì không liên quan đến tài chính cá nhân\n"
        "- Khuyến khích thói quen tiết kiệm tốt"
    )


# --- Offline replies ---

def _matches(message: str, keywords) -> bool:
    return any(k in message for k in keywords)


def offline_reply(last_user_message: Optional[str], profile, rows: Sequence) -> str:
    """Canned chat answer picked by keyword, filled with the user's figures."""
    message = (last_user_message or "").lower()

    if _matches(message, ANALYSIS_KEYWORDS):
        return (
            "📊 Dựa trên dữ liệu của bạn:\n\n"
            f"- Tổng chi 30 ngày: {plain_amount(total(rows))}đ\n"
            f"- Ngân sách: {plain_amount(_budget(profile))}đ\n"
            f"- Top chi tiêu: {spending_context(rows) or NO_DATA}\n\n"
            "💡 Hãy cố gắng giữ chi tiêu trong ngân sách nhé!"
        )
    if _matches(message, SAVING_KEYWORDS):
        return SAVING_TIPS

    name = (profile.display_name if profile else "") or "bạn"
    return (
        f"Xin chào {name}! 👋\n\n"
        "Mình có thể giúp bạn phân tích chi tiêu và đưa ra gợi ý tiết kiệm. Hãy thử hỏi:\n"
        '- "Phân tích chi tiêu tháng này"\n'
        '- "Làm sao để tiết kiệm?"\n\n'
        "⚠️ Để có trải nghiệm AI đầy đủ, hãy cấu hình OPENAI_API_KEY trong .env"
    )


def offline_insight(profile, rows: Sequence) -> str:
    """Deterministic stand-in for the AI analysis card."""
    if not rows:
        return EMPTY_INSIGHT
    spent = total(rows)
    top = _ranked(rows)[0]
    return (
        f"📊 Tổng chi tiêu 30 ngày: {plain_amount(spent)}đ "
        f"({_percent(spent, _budget(profile), 0)}% ngân sách)\n\n"
        f"🏷️ Chi nhiều nhất: {top.name} ({plain_amount(top.value)}đ - {_percent(top.value, spent, 0)}%)\n\n"
        "💡 Mẹo: Hãy thử ghi chép chi tiêu mỗi ngày và đặt giới hạn cho từng danh mục "
        "để tiết kiệm hiệu quả hơn!\n\n"
        f"{CONFIG_HINT}"
    )
