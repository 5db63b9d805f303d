import logging
import sys
from datetime import date, timedelta
from pathlib import Path

import streamlit as st

# Add current directory to path
sys.path.append(str(Path(__file__).parent))

from aggregation import (
    category_breakdown,
    daily_series,
    group_by_date,
    month_bounds,
    total,
    total_for_date,
    total_since,
)
from ai_service import analyze_insight, chat_reply
from auth import (
    change_password,
    request_password_reset,
    reset_password,
    sign_in,
    sign_up,
)
from config import configure_logging
from dashboard import _kpis, category_chart, daily_spend_chart, field_error_text, transactions_frame
from database import SessionLocal, init_db
from errors import AuthError, NotFoundError, StoreError, ValidationError
from goals import progress_percent, remaining_amount
from insights import format_vnd
from providers import select_provider
from repository import (
    create_goal,
    create_transaction,
    delete_goal,
    delete_transaction,
    deposit_to_goal,
    get_profile,
    list_categories,
    list_goals,
    list_transactions,
    update_goal,
    update_profile,
    update_transaction,
)

logger = logging.getLogger(__name__)

# --- Configuration ---
st.set_page_config(page_title="PocketWise", layout="wide", page_icon="💰")
configure_logging()

GENERIC_ERROR = "Có lỗi xảy ra. Vui lòng thử lại."
GOAL_ICONS = ["🎯", "🎮", "📱", "👟", "🎸", "📚", "✈️", "🎁", "💻", "🏖️"]
QUICK_QUESTIONS = [
    "Phân tích chi tiêu tháng này",
    "Làm sao để tiết kiệm hiệu quả?",
    "Mình nên chi tiêu bao nhiêu mỗi ngày?",
    "Gợi ý cách quản lý tiền tiêu vặt",
]
CHAT_GREETING = (
    "Xin chào! 👋 Mình là trợ lý tài chính AI của PocketWise. Mình có thể giúp bạn:\n\n"
    "• Phân tích thói quen chi tiêu\n• Gợi ý cách tiết kiệm\n"
    "• Trả lời mọi câu hỏi về quản lý tài chính\n\nHãy hỏi mình bất cứ điều gì! 💰"
)
PAGES = {
    "dashboard": "📊 Tổng quan",
    "transactions": "💸 Giao dịch",
    "savings": "🎯 Tiết kiệm",
    "chat": "🤖 AI Tư vấn",
    "settings": "⚙️ Cài đặt",
}

# --- Database Session ---
init_db()

if "db" not in st.session_state:
    st.session_state.db = SessionLocal()


def get_db():
    return st.session_state.db


@st.cache_resource
def get_provider():
    return select_provider()


def show_field_error(exc: ValidationError):
    st.error(field_error_text(exc))


# --- Authentication ---
def _login_view():
    st.markdown("<h1 style='text-align:center'>💰 PocketWise</h1>", unsafe_allow_html=True)
    st.caption("Quản lý tiền tiêu vặt thông minh hơn mỗi ngày")
    with st.form("login"):
        email = st.text_input("Email", placeholder="ten@email.com")
        password = st.text_input("Mật khẩu", type="password")
        submitted = st.form_submit_button("Đăng nhập", type="primary", use_container_width=True)
    if submitted:
        try:
            st.session_state["auth"] = sign_in(get_db(), email, password)
            st.rerun()
        except AuthError as exc:
            st.error(f"⚠️ {exc}")

    col1, col2 = st.columns(2)
    if col1.button("Tạo tài khoản", use_container_width=True):
        st.session_state["auth_view"] = "signup"
        st.rerun()
    if col2.button("Quên mật khẩu?", use_container_width=True):
        st.session_state["auth_view"] = "forgot"
        st.rerun()


def _signup_view():
    st.header("Tạo tài khoản")
    with st.form("signup"):
        display_name = st.text_input("Tên hiển thị", placeholder="Nguyễn Văn A")
        email = st.text_input("Email", placeholder="ten@email.com")
        password = st.text_input("Mật khẩu", type="password", help="Ít nhất 6 ký tự")
        submitted = st.form_submit_button("Đăng ký", type="primary", use_container_width=True)
    if submitted:
        if not display_name.strip():
            st.error("⚠️ Vui lòng nhập tên hiển thị.")
        else:
            try:
                st.session_state["auth"] = sign_up(get_db(), email, password, display_name)
                st.session_state["auth_view"] = "login"
                st.rerun()
            except ValidationError as exc:
                show_field_error(exc)
            except StoreError:
                st.error(GENERIC_ERROR)
    if st.button("← Đã có tài khoản? Đăng nhập"):
        st.session_state["auth_view"] = "login"
        st.rerun()


def _forgot_view():
    st.header("Quên mật khẩu")
    if st.session_state.get("reset_sent"):
        st.success("Đã gửi email! Kiểm tra hộp thư và nhấn vào liên kết để đặt lại mật khẩu. "
                   "Không thấy email? Hãy kiểm tra thư mục Spam.")
    else:
        with st.form("forgot"):
            email = st.text_input("Email", placeholder="ten@email.com")
            submitted = st.form_submit_button("Gửi liên kết đặt lại", type="primary", use_container_width=True)
        if submitted:
            try:
                request_password_reset(get_db(), email)
                st.session_state["reset_sent"] = True
                st.rerun()
            except StoreError:
                st.error(GENERIC_ERROR)
    if st.button("← Quay lại đăng nhập"):
        st.session_state["auth_view"] = "login"
        st.session_state["reset_sent"] = False
        st.rerun()


def _reset_view(token: str):
    st.header("Đặt lại mật khẩu")
    with st.form("reset"):
        new_pw = st.text_input("Mật khẩu mới", type="password")
        confirm = st.text_input("Xác nhận mật khẩu", type="password")
        submitted = st.form_submit_button("Cập nhật mật khẩu", type="primary", use_container_width=True)
    if submitted:
        try:
            reset_password(get_db(), token, new_pw, confirm)
            st.query_params.clear()
            st.session_state["auth_view"] = "login"
            st.success("Đổi mật khẩu thành công! Hãy đăng nhập lại.")
        except ValidationError as exc:
            show_field_error(exc)
        except AuthError as exc:
            st.error(f"⚠️ {exc}")
        except StoreError:
            st.error(GENERIC_ERROR)


def check_login():
    """Render the sign-in screens until someone is signed in."""
    if st.session_state.get("auth") is not None:
        return True

    _, center, _ = st.columns([1, 2, 1])
    with center:
        reset_token = st.query_params.get("reset_token")
        view = st.session_state.get("auth_view", "login")
        if reset_token:
            _reset_view(reset_token)
        elif view == "signup":
            _signup_view()
        elif view == "forgot":
            _forgot_view()
        else:
            _login_view()
    return False


if not check_login():
    st.stop()

ctx = st.session_state["auth"]
db = get_db()
profile = get_profile(db, ctx)


# --- Sidebar ---
with st.sidebar:
    st.header("💰 PocketWise")
    st.caption(f"{profile.display_name or ctx.email}\n\n{ctx.email}")
    page = st.radio("Điều hướng", list(PAGES), format_func=PAGES.get, label_visibility="collapsed")

    st.divider()
    with st.expander("🔑 Đổi mật khẩu"):
        with st.form("change_password", clear_on_submit=True):
            current_pw = st.text_input("Mật khẩu hiện tại", type="password")
            new_pw = st.text_input("Mật khẩu mới", type="password")
            confirm_pw = st.text_input("Xác nhận mật khẩu mới", type="password")
            if st.form_submit_button("Đổi mật khẩu", use_container_width=True):
                try:
                    change_password(db, ctx, current_pw, new_pw, confirm_pw)
                    st.success("Đổi mật khẩu thành công!")
                except ValidationError as exc:
                    show_field_error(exc)
                except StoreError:
                    st.error(GENERIC_ERROR)

    if st.button("🚪 Đăng xuất", use_container_width=True):
        for key in ("auth", "chat_messages", "ai_insight"):
            st.session_state.pop(key, None)
        st.rerun()


# --- Shared forms ---
def transaction_form(key: str, categories, tx=None):
    """Add/edit form. Returns True once a write went through."""
    cat_ids = [c.id for c in categories]
    cat_labels = {c.id: f"{c.icon} {c.name}" for c in categories}
    with st.form(key, clear_on_submit=tx is None):
        col1, col2 = st.columns(2)
        amount = col1.number_input("Số tiền (VNĐ)", min_value=0, step=1000,
                                   value=int(tx.amount) if tx else 0)
        tx_date = col2.date_input("Ngày", value=tx.transaction_date if tx else date.today())
        category_id = st.selectbox(
            "Danh mục", cat_ids, format_func=cat_labels.get,
            index=cat_ids.index(tx.category_id) if tx and tx.category_id in cat_ids else 0,
        )
        description = st.text_input("Mô tả", value=tx.description if tx else "",
                                    placeholder="VD: Trà sữa với bạn")
        submitted = st.form_submit_button("💾 Lưu" if tx else "➕ Thêm giao dịch", type="primary")
    if not submitted:
        return False
    try:
        if tx:
            update_transaction(db, ctx, tx.id, amount, description, tx_date, category_id)
        else:
            create_transaction(db, ctx, amount, description, tx_date, category_id)
        return True
    except ValidationError as exc:
        show_field_error(exc)
    except (StoreError, NotFoundError):
        st.error(GENERIC_ERROR)
    return False


# --- Pages ---
def dashboard_page():
    st.header("📊 Tổng quan chi tiêu")
    st.caption("Theo dõi và quản lý tiền tiêu vặt thông minh hơn mỗi ngày")

    today = date.today()
    month_start, _ = month_bounds(today)
    rows = list_transactions(db, ctx, start=month_start)

    _kpis(
        total_for_date(rows, today),
        total_since(rows, today - timedelta(days=7)),
        total(rows),
        profile.monthly_budget,
    )

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(daily_spend_chart(daily_series(rows, today)), use_container_width=True)
    with col2:
        breakdown = category_breakdown(rows)
        if breakdown:
            st.plotly_chart(category_chart(breakdown), use_container_width=True)
        else:
            st.info("Chưa có dữ liệu. Hãy thêm giao dịch để xem biểu đồ.")

    st.subheader("🤖 AI phân tích chi tiêu")
    if st.button("✨ Phân tích ngay"):
        with st.spinner("AI đang phân tích..."):
            st.session_state["ai_insight"] = analyze_insight(db, ctx, get_provider())
    if st.session_state.get("ai_insight"):
        st.info(st.session_state["ai_insight"])
    else:
        st.caption("Nhấn nút để nhận nhận xét và mẹo tiết kiệm dựa trên 30 ngày gần nhất.")

    st.subheader("🕒 Giao dịch gần đây")
    if rows:
        st.dataframe(transactions_frame(rows[:5]), hide_index=True, use_container_width=True)
    else:
        st.info("Chưa có giao dịch nào trong tháng này.")

    with st.expander("➕ Thêm giao dịch mới"):
        if transaction_form("dashboard_add", list_categories(db)):
            st.success("Đã lưu giao dịch!")
            st.rerun()


def transactions_page():
    st.header("💸 Lịch sử giao dịch")
    categories = list_categories(db)

    col1, col2 = st.columns(2)
    month_pick = col1.date_input("Tháng", value=date.today(), help="Chọn một ngày bất kỳ trong tháng")
    cat_options = [None] + [c.id for c in categories]
    cat_labels = {c.id: f"{c.icon} {c.name}" for c in categories}
    cat_filter = col2.selectbox("Danh mục", cat_options,
                                format_func=lambda cid: "📁 Tất cả danh mục" if cid is None else cat_labels[cid])

    start, end = month_bounds(month_pick)
    rows = list_transactions(db, ctx, start=start, end=end, category_id=cat_filter)
    st.metric("Tổng chi", format_vnd(total(rows)), help=f"{len(rows)} giao dịch")

    with st.expander("➕ Thêm giao dịch"):
        if transaction_form("tx_add", categories):
            st.success("Đã lưu giao dịch!")
            st.rerun()

    if not rows:
        st.info("Không có giao dịch nào trong khoảng thời gian này.")
        return

    for day, day_rows in group_by_date(rows).items():
        st.markdown(f"**{day:%d/%m/%Y}** · {format_vnd(total(day_rows))}")
        for tx in day_rows:
            cat = tx.category
            c1, c2, c3, c4 = st.columns([5, 2, 1, 1])
            c1.write(f"{cat.icon if cat else '📦'} {tx.description or (cat.name if cat else 'Khác')}")
            c2.write(f"-{format_vnd(tx.amount)}")
            if c3.button("✏️", key=f"edit_{tx.id}"):
                st.session_state["editing_tx"] = tx.id
            if c4.button("🗑️", key=f"del_{tx.id}"):
                st.session_state["confirm_delete_tx"] = tx.id

            if st.session_state.get("confirm_delete_tx") == tx.id:
                st.warning("Bạn có chắc muốn xóa giao dịch này?")
                y, n = st.columns(2)
                if y.button("Xóa", key=f"del_yes_{tx.id}", type="primary"):
                    try:
                        delete_transaction(db, ctx, tx.id)
                    except (StoreError, NotFoundError):
                        st.error(GENERIC_ERROR)
                    st.session_state.pop("confirm_delete_tx", None)
                    st.rerun()
                if n.button("Hủy", key=f"del_no_{tx.id}"):
                    st.session_state.pop("confirm_delete_tx", None)
                    st.rerun()

            if st.session_state.get("editing_tx") == tx.id:
                if transaction_form(f"tx_edit_{tx.id}", categories, tx):
                    st.session_state.pop("editing_tx", None)
                    st.rerun()


def goal_form(key: str, goal=None):
    """Create/edit a savings goal. Returns True once saved."""
    with st.form(key, clear_on_submit=goal is None):
        icon = st.radio("Biểu tượng", GOAL_ICONS, horizontal=True,
                        index=GOAL_ICONS.index(goal.icon) if goal and goal.icon in GOAL_ICONS else 0)
        name = st.text_input("Tên mục tiêu", value=goal.name if goal else "", placeholder="VD: Mua tai nghe mới")
        target = st.number_input("Số tiền mục tiêu (VNĐ)", min_value=0, step=10000,
                                 value=int(goal.target_amount) if goal else 500000)
        has_deadline = st.checkbox("Có hạn chót", value=bool(goal and goal.deadline))
        deadline = st.date_input("Hạn chót (tùy chọn)",
                                 value=goal.deadline if goal and goal.deadline else date.today() + timedelta(days=30))
        submitted = st.form_submit_button("💾 Lưu" if goal else "🎯 Tạo mục tiêu", type="primary")
    if not submitted:
        return False
    try:
        when = deadline if has_deadline else None
        if goal:
            update_goal(db, ctx, goal.id, name, target, icon, when)
        else:
            create_goal(db, ctx, name, target, icon, when)
        return True
    except ValidationError as exc:
        show_field_error(exc)
    except (StoreError, NotFoundError):
        st.error(GENERIC_ERROR)
    return False


def savings_page():
    st.header("🎯 Mục tiêu tiết kiệm")

    with st.expander("➕ Tạo mục tiêu mới"):
        if goal_form("goal_add"):
            st.success("Đã tạo mục tiêu!")
            st.rerun()

    goals = list_goals(db, ctx)
    if not goals:
        st.info("Chưa có mục tiêu nào. Hãy tạo mục tiêu đầu tiên của bạn!")
        return

    cols = st.columns(2)
    for i, goal in enumerate(goals):
        with cols[i % 2].container(border=True):
            pct = progress_percent(goal.current_amount, goal.target_amount)
            badge = " ✅ Hoàn thành" if goal.is_completed else ""
            st.markdown(f"### {goal.icon} {goal.name}{badge}")
            st.progress(pct / 100, text=f"{format_vnd(goal.current_amount)} / {format_vnd(goal.target_amount)} ({pct:.0f}%)")
            if goal.deadline:
                days_left = (goal.deadline - date.today()).days
                st.caption(f"Hạn chót: {goal.deadline:%d/%m/%Y} ({days_left} ngày)")
            if not goal.is_completed:
                st.caption(f"Còn thiếu {format_vnd(remaining_amount(goal.current_amount, goal.target_amount))}")
                with st.form(f"deposit_{goal.id}", clear_on_submit=True):
                    amt = st.number_input("Thêm tiền (VNĐ)", min_value=0, step=10000, key=f"dep_amt_{goal.id}")
                    if st.form_submit_button("💰 Thêm"):
                        if amt <= 0:
                            st.error("⚠️ Số tiền phải lớn hơn 0.")
                        else:
                            try:
                                deposit_to_goal(db, ctx, goal.id, amt)
                                st.rerun()
                            except (StoreError, NotFoundError):
                                st.error(GENERIC_ERROR)

            b1, b2 = st.columns(2)
            if b1.button("✏️ Sửa", key=f"goal_edit_{goal.id}"):
                st.session_state["editing_goal"] = goal.id
            if b2.button("🗑️ Xóa", key=f"goal_del_{goal.id}"):
                st.session_state["confirm_delete_goal"] = goal.id

            if st.session_state.get("confirm_delete_goal") == goal.id:
                st.warning("Bạn có chắc muốn xóa mục tiêu này?")
                if st.button("Xác nhận xóa", key=f"goal_del_yes_{goal.id}", type="primary"):
                    try:
                        delete_goal(db, ctx, goal.id)
                    except (StoreError, NotFoundError):
                        st.error(GENERIC_ERROR)
                    st.session_state.pop("confirm_delete_goal", None)
                    st.rerun()

            if st.session_state.get("editing_goal") == goal.id:
                if goal_form(f"goal_edit_form_{goal.id}", goal):
                    st.session_state.pop("editing_goal", None)
                    st.rerun()


def chat_page():
    st.header("🤖 AI Tư vấn tài chính")
    if "chat_messages" not in st.session_state:
        st.session_state["chat_messages"] = [{"role": "assistant", "content": CHAT_GREETING}]

    pending = None
    cols = st.columns(len(QUICK_QUESTIONS))
    for col, question in zip(cols, QUICK_QUESTIONS):
        if col.button(question, use_container_width=True):
            pending = question

    for message in st.session_state["chat_messages"]:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    typed = st.chat_input("Hỏi mình bất cứ điều gì về tài chính...")
    prompt = (typed or pending or "").strip()
    if not prompt:
        return

    st.session_state["chat_messages"].append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)
    with st.chat_message("assistant"):
        with st.spinner("Đang suy nghĩ..."):
            reply = chat_reply(db, ctx, get_provider(), st.session_state["chat_messages"])
        st.markdown(reply)
    st.session_state["chat_messages"].append({"role": "assistant", "content": reply})


def settings_page():
    st.header("⚙️ Cài đặt")
    with st.form("profile"):
        name = st.text_input("Tên hiển thị", value=profile.display_name)
        budget = st.number_input("Ngân sách tháng (VNĐ)", min_value=0, step=50000,
                                 value=int(profile.monthly_budget))
        submitted = st.form_submit_button("💾 Lưu", type="primary")
    if submitted:
        try:
            update_profile(db, ctx, display_name=name, monthly_budget=budget)
            st.success("Đã lưu cài đặt!")
            st.rerun()
        except ValidationError as exc:
            show_field_error(exc)
        except StoreError:
            st.error(GENERIC_ERROR)


{
    "dashboard": dashboard_page,
    "transactions": transactions_page,
    "savings": savings_page,
    "chat": chat_page,
    "settings": settings_page,
}[page]()
