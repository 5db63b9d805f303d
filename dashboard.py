# dashboard.py: stat cards and plotly charts for the overview page

import pandas as pd
import plotly.express as px
import streamlit as st

from aggregation import budget_percent
from insights import format_vnd

CHART_COLORS = ["#f97316", "#3b82f6", "#a855f7", "#22c55e", "#ec4899", "#6b7280"]
BUDGET_WARNING_PCT = 80


def transactions_frame(rows) -> pd.DataFrame:
    """
    Table-ready frame for a list of TransactionRow.
    """
    if not rows:
        return pd.DataFrame(columns=["Ngày", "Danh mục", "Mô tả", "Số tiền"])

    return pd.DataFrame([{
        "Ngày": r.transaction_date,
        "Danh mục": f"{r.category.icon} {r.category.name}" if r.category else "📦 Khác",
        "Mô tả": r.description,
        "Số tiền": format_vnd(r.amount),
    } for r in rows])


def _kpis(today_total, week_total, month_total, monthly_budget):
    """
    Four stat cards: today, this week, this month, share of the budget used.
    """
    pct = budget_percent(month_total, monthly_budget)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("💵 Hôm nay", format_vnd(today_total))
    col2.metric("📅 Tuần này", format_vnd(week_total))
    col3.metric("📆 Tháng này", format_vnd(month_total))
    col4.metric("🎯 Ngân sách đã dùng", f"{pct:.0f}%", help=f"Ngân sách tháng: {format_vnd(monthly_budget)}")
    col4.progress(pct / 100)
    if pct > BUDGET_WARNING_PCT:
        st.warning(f"Bạn đã dùng {pct:.0f}% ngân sách tháng này. Hãy chi tiêu chậm lại nhé!")


def daily_spend_chart(series):
    """
    Bar chart of the last days' spending, oldest on the left.
    """
    df = pd.DataFrame({
        "Ngày": [f"{d.label} {d.day:%d/%m}" for d in series],
        "Chi tiêu": [float(d.amount) for d in series],
    })
    fig = px.bar(df, x="Ngày", y="Chi tiêu", title="📈 Chi tiêu 7 ngày qua",
                 color_discrete_sequence=["#7c3aed"])
    fig.update_traces(hovertemplate="%{x}<br>%{y:,.0f} ₫<extra></extra>")
    fig.update_layout(height=300, yaxis_tickformat="~s", xaxis_title=None, yaxis_title=None)
    return fig


def category_chart(breakdown):
    """
    Donut chart of spending by category, using each category's own color.
    """
    df = pd.DataFrame({
        "Danh mục": [f"{c.icon} {c.name}" for c in breakdown],
        "Chi tiêu": [float(c.value) for c in breakdown],
    })
    colors = {
        f"{c.icon} {c.name}": c.color or CHART_COLORS[i % len(CHART_COLORS)]
        for i, c in enumerate(breakdown)
    }
    fig = px.pie(df, values="Chi tiêu", names="Danh mục", hole=0.45,
                 title="🍩 Phân bổ theo danh mục", color="Danh mục", color_discrete_map=colors)
    fig.update_traces(textposition="inside", textinfo="percent+label")
    fig.update_layout(height=300)
    return fig


# Form labels, keyed by ValidationError.field
FIELD_LABELS = {
    "email": "Email",
    "password": "Mật khẩu",
    "current_password": "Mật khẩu hiện tại",
    "new_password": "Mật khẩu mới",
    "confirm_password": "Xác nhận mật khẩu",
    "amount": "Số tiền",
    "transaction_date": "Ngày",
    "category_id": "Danh mục",
    "name": "Tên mục tiêu",
    "target_amount": "Số tiền mục tiêu",
    "deadline": "Hạn chót",
    "monthly_budget": "Ngân sách tháng",
}


def field_error_text(exc) -> str:
    """Validation message prefixed with the label of the field it belongs to."""
    label = FIELD_LABELS.get(exc.field)
    return f"⚠️ {label}: {exc.message}" if label else f"⚠️ {exc.message}"
