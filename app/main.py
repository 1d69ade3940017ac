import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date

import streamlit as st
import pandas as pd
import numpy as np
import plotly.express as px
import plotly.graph_objects as go

from pocketbook import config
from pocketbook.backup import InvalidBackupCode, export_code, import_code, reset_storage
from pocketbook.categories import EXPENSES, GOALS, INCOME, MARKET, CategoryList
from pocketbook.domain import TaxSnapshot
from pocketbook.events import BALANCE_COMPUTED, EXPENSE_SAVED, STOCK_CHANGED, event_bus
from pocketbook.functional import (
    find_record,
    new_expense,
    new_goal,
    new_income,
    new_inventory_item,
)
from pocketbook.lazy import iter_records, top_expense_categories
from pocketbook.months import (
    current_month_key,
    get_locale,
    month_display,
    next_month_key,
    previous_month_key,
)
from pocketbook.records import (
    MASCOT_AVATARS,
    ExpenseStore,
    GoalStore,
    IncomeStore,
    InventoryStore,
    ProfileStore,
    TaxStore,
)
from pocketbook.services import BalanceAggregator, percentages
from pocketbook.storage import JsonFileStorage
from pocketbook.transforms import (
    goal_progress,
    group_by_category,
    is_overdue,
    paid_expenses,
    paid_total,
    pending_expenses,
    shopping_list,
    stock_percentage,
    tax_breakdown,
    total_amount,
)

config.configure_logging()
logger = logging.getLogger("pocketbook.app")

st.set_page_config(page_title="Pocketbook", layout="wide")

if "storage" not in st.session_state:
    config.ensure_data_directories()
    st.session_state.storage = JsonFileStorage(config.STORAGE_PATH)
    logger.info("Using storage at %s", config.get_storage_path())
if "month" not in st.session_state:
    st.session_state.month = current_month_key()
if "alerts" not in st.session_state:
    st.session_state.alerts = []

storage = st.session_state.storage
profile = ProfileStore(storage)
language = profile.language
locale = get_locale(language)
template = "plotly_dark" if profile.theme == "dark" else "plotly_white"
CUR = config.CURRENCY_SYMBOL


def money(value: float) -> str:
    return f"{CUR} {value:,.2f}"


def push_alerts(results, kind: str):
    seen = {a["message"] for a in st.session_state.alerts}
    for result in results:
        if "alert" in result and result["alert"] not in seen:
            st.session_state.alerts.append({
                "type": kind,
                "message": result["alert"],
                "timestamp": pd.Timestamp.now().strftime("%H:%M:%S"),
            })


def as_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        return date.today()


def show_error(error: dict):
    st.error(f"❌ {error['message']}")


def category_manager(domain: str, key: str):
    cats = CategoryList(storage, domain, language)
    with st.expander("⚙️ Manage categories"):
        new_cat = st.text_input("New category", key=f"newcat_{key}")
        if st.button("Add category", key=f"addcat_{key}"):
            if cats.add(new_cat):
                st.rerun()
            else:
                st.warning("Category is empty or already exists")
        for c in cats.custom():
            col_name, col_btn = st.columns([4, 1])
            col_name.write(c)
            if col_btn.button("🗑", key=f"delcat_{key}_{c}"):
                cats.remove(c)
                st.rerun()
    return cats.all()


# Sidebar: profile, month selector, preferences
st.sidebar.markdown(f"### 👤 {profile.name}")
st.sidebar.caption(f"Avatar: {profile.avatar}")

month = st.session_state.month
st.sidebar.markdown("### 📅 Month")
prev_col, label_col, next_col = st.sidebar.columns([1, 3, 1])
if prev_col.button("◀", key="btn_prev_month"):
    st.session_state.month = previous_month_key(month)
    st.rerun()
label_col.markdown(f"**{month_display(month, locale).capitalize()}**")
if next_col.button("▶", key="btn_next_month"):
    st.session_state.month = next_month_key(month)
    st.rerun()
if st.sidebar.button("Today", key="btn_today"):
    st.session_state.month = current_month_key()
    st.rerun()

pref_a, pref_b = st.sidebar.columns(2)
if pref_a.button("🇺🇸 EN" if language == "en" else "🇧🇷 PT", key="btn_lang"):
    profile.set_language("pt" if language == "en" else "en")
    st.rerun()
if pref_b.button("🌙" if profile.theme == "light" else "☀️", key="btn_theme"):
    profile.toggle_theme()
    st.rerun()

menu = st.sidebar.radio(
    "Menu",
    ["🏠 Summary", "💰 Income", "🧾 Expenses", "🎯 Goals", "🧮 Taxes", "🛒 Market", "👤 Profile"]
)

incomes = IncomeStore(storage)
expenses_store = ExpenseStore(storage)
goals_store = GoalStore(storage)
tax_store = TaxStore(storage)
inventory = InventoryStore(storage)

if menu == "🏠 Summary":
    st.title("🏠 Financial Summary")
    aggregator = BalanceAggregator(storage)
    summary = aggregator.summarize(month)
    push_alerts(event_bus.publish(BALANCE_COMPUTED, {
        "month": month, "month_balance": summary.month_balance,
    }), "Balance")

    if summary.previous_balance != 0:
        st.metric("Previous balance", money(summary.previous_balance))

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Income", money(summary.income))
    with k2:
        st.metric("Expenses (paid)", money(summary.paid_expenses))
    with k3:
        st.metric("Taxes", money(summary.taxes))
    with k4:
        st.metric(
            "Month balance",
            money(summary.month_balance),
            delta="positive" if summary.month_balance >= 0 else "attention",
            delta_color="normal" if summary.month_balance >= 0 else "inverse",
        )
    if summary.previous_balance != 0:
        st.metric("Total balance", money(summary.total_balance))

    if summary.income == 0:
        st.info("Start now: add your income for this month to see the full summary.")

    pct = percentages(summary)
    if pct["expenses"] is not None:
        st.subheader("📊 Distribution")
        for label, value in (("Expenses", pct["expenses"]), ("Taxes", pct["taxes"]), ("Left over", pct["leftover"])):
            st.write(f"**{label}**: {value:.1f}%")
            st.progress(min(1.0, value / 100))

    col_inc, col_exp = st.columns(2)
    with col_inc:
        if summary.income_by_category:
            df_inc = pd.DataFrame(
                [{"Category": k, "Total": v} for k, v in summary.income_by_category.items()]
            )
            fig_inc = px.pie(df_inc, values="Total", names="Category", title="Income by category", template=template)
            st.plotly_chart(fig_inc, use_container_width=True)
    with col_exp:
        if summary.expenses_by_category:
            df_exp = pd.DataFrame(
                [{"Category": k, "Total": v} for k, v in summary.expenses_by_category.items()]
            )
            fig_exp = px.pie(df_exp, values="Total", names="Category", title="Paid expenses by category", template=template)
            st.plotly_chart(fig_exp, use_container_width=True)

    top = list(top_expense_categories(expenses_store.load(month), 3))
    if top:
        st.subheader("💸 Top spending categories")
        st.table(pd.DataFrame([{"Category": n, "Amount": money(v)} for n, v in top]))

    st.divider()
    st.subheader("📈 Balance history")
    st.caption("Summarizes every stored month in order, refreshing their running balances.")
    if st.button("Show history", key="btn_history"):
        hist = aggregator.history()
        if hist.empty:
            st.info("No stored months yet.")
        else:
            colors = np.where(hist["month_balance"] >= 0, "#2e7d32", "#c62828")
            fig_hist = go.Figure()
            fig_hist.add_trace(go.Bar(x=hist["month"], y=hist["month_balance"], marker_color=colors, name="Month balance"))
            fig_hist.add_trace(go.Scatter(x=hist["month"], y=hist["total_balance"], mode="lines+markers", name="Running balance"))
            fig_hist.update_layout(template=template, margin=dict(t=30, b=10, l=10, r=10))
            st.plotly_chart(fig_hist, use_container_width=True)
            st.dataframe(hist, use_container_width=True)
            st.download_button("⬇ Download CSV", hist.to_csv(index=False), file_name="balance_history.csv")

elif menu == "💰 Income":
    st.title("💰 Income")
    categories = category_manager(INCOME, "income")
    records = incomes.load(month)

    editing_id = st.session_state.get("editing_income")
    editing = find_record(records, editing_id).get_or_else(None) if editing_id else None

    with st.form("income_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name", value=editing.name if editing else "")
            amount = st.text_input("Amount", value=f"{editing.amount:.2f}" if editing else "")
        with col2:
            received = st.date_input("Date", value=as_date(editing.date) if editing else date.today())
            cat_index = categories.index(editing.category) if editing and editing.category in categories else 0
            category = st.selectbox("Category", categories, index=cat_index)
        submitted = st.form_submit_button("Save" if editing else "Add income")

    if submitted:
        result = new_income(name, amount, received.isoformat(), category, record_id=editing_id)
        if result.is_left():
            show_error(result.get_error())
        else:
            record = result.get_or_else(None)
            if editing:
                incomes.update(month, record)
                st.session_state.editing_income = None
            else:
                incomes.add(month, record)
            st.rerun()

    st.metric("Total income", money(total_amount(records)))
    if not records:
        st.info("No income recorded for this month.")
    for r in records:
        c1, c2, c3, c4 = st.columns([4, 2, 1, 1])
        c1.markdown(f"**{r.name}** · {r.category} · {r.date}")
        c2.write(money(r.amount))
        if c3.button("✏️", key=f"edit_inc_{r.id}"):
            st.session_state.editing_income = r.id
            st.rerun()
        if c4.button("🗑", key=f"del_inc_{r.id}"):
            incomes.remove(month, r.id)
            st.rerun()

elif menu == "🧾 Expenses":
    st.title("🧾 Expenses")
    categories = category_manager(EXPENSES, "expenses")
    records = expenses_store.load(month)

    with st.form("expense_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name")
            amount = st.text_input("Amount")
            tax = st.text_input("Tax included (optional)")
        with col2:
            category = st.selectbox("Category", categories)
            has_due = st.checkbox("Has due date")
            due = st.date_input("Due date")
            is_paid = st.checkbox("Already paid", value=True)
        submitted = st.form_submit_button("Add expense")

    if submitted:
        result = new_expense(name, amount, category, is_paid=is_paid, tax=tax,
                             due_date=due.isoformat() if has_due else None)
        if result.is_left():
            show_error(result.get_error())
        else:
            expense = result.get_or_else(None)
            expenses_store.add(month, expense)
            push_alerts(event_bus.publish(EXPENSE_SAVED, {
                "id": expense.id, "name": expense.name,
                "is_paid": expense.is_paid, "due_date": expense.due_date,
            }), "Expense")
            st.rerun()

    overdue = list(iter_records(records, is_overdue))
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Paid total", money(paid_total(records)))
    k2.metric("Paid", len(paid_expenses(records)))
    k3.metric("Pending", len(pending_expenses(records)))
    k4.metric("Overdue", len(overdue), delta=money(total_amount(overdue)) if overdue else None, delta_color="inverse")

    if not records:
        st.info("No expenses recorded for this month.")
    for e in records:
        c1, c2, c3, c4 = st.columns([4, 2, 1, 1])
        flag = "🔴 overdue · " if is_overdue(e) else ""
        due_txt = f" · due {e.due_date}" if e.due_date else ""
        tax_txt = f" · tax {money(e.tax)}" if e.tax else ""
        c1.markdown(f"{flag}**{e.name}** · {e.category}{due_txt}{tax_txt}")
        c2.write(money(e.amount))
        if c3.button("✅" if e.is_paid else "⬜", key=f"paid_{e.id}"):
            expenses_store.toggle_paid(month, e.id)
            st.rerun()
        if c4.button("🗑", key=f"del_exp_{e.id}"):
            expenses_store.remove(month, e.id)
            st.rerun()

elif menu == "🎯 Goals":
    st.title("🎯 Goals")
    categories = category_manager(GOALS, "goals")
    goals = goals_store.load(month)

    with st.form("goal_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Goal name")
            target = st.text_input("Target amount")
            current = st.text_input("Already saved", value="0")
        with col2:
            category = st.selectbox("Category", categories)
            has_deadline = st.checkbox("Has deadline")
            deadline = st.date_input("Deadline")
        submitted = st.form_submit_button("Add goal")

    if submitted:
        result = new_goal(name, target, category, current_amount=current,
                          deadline=deadline.isoformat() if has_deadline else None)
        if result.is_left():
            show_error(result.get_error())
        else:
            goals_store.add(month, result.get_or_else(None))
            st.rerun()

    k1, k2 = st.columns(2)
    k1.metric("Total saved", money(total_amount(goals, "current_amount")))
    k2.metric("Total target", money(total_amount(goals, "target_amount")))

    if not goals:
        st.info("No goals for this month.")
    for g in goals:
        st.markdown(f"**{g.name}** · {g.category}" + (f" · until {g.deadline}" if g.deadline else ""))
        st.progress(goal_progress(g) / 100)
        c1, c2, c3 = st.columns([3, 1, 1])
        c1.caption(f"{money(g.current_amount)} / {money(g.target_amount)} ({goal_progress(g):.0f}%)")
        new_amount = c2.number_input("Saved", min_value=0.0, value=float(g.current_amount), key=f"amt_{g.id}",
                                     label_visibility="collapsed")
        if new_amount != g.current_amount:
            goals_store.set_amount(month, g.id, new_amount)
            st.rerun()
        if c3.button("🗑", key=f"del_goal_{g.id}"):
            goals_store.remove(month, g.id)
            st.rerun()

elif menu == "🧮 Taxes":
    st.title("🧮 Tax meter")
    snapshot = tax_store.load(month)

    with st.form("tax_form"):
        col1, col2 = st.columns(2)
        with col1:
            received = st.number_input("Income received", min_value=0.0, value=snapshot.income_received, step=100.0)
            income_tax = st.number_input("Income tax paid", min_value=0.0, value=snapshot.income_tax_paid, step=10.0)
        with col2:
            market = st.number_input("Market spend", min_value=0.0, value=snapshot.market_spend, step=100.0)
            market_tax = st.number_input("Taxes in market spend", min_value=0.0, value=snapshot.market_tax_paid, step=10.0)
        if st.form_submit_button("Save"):
            tax_store.save(month, TaxSnapshot(received, income_tax, market, market_tax))
            st.rerun()

    breakdown = tax_breakdown(snapshot)
    k1, k2, k3 = st.columns(3)
    k1.metric("Total taxes", money(breakdown["total_taxes"]))
    k2.metric("Net income", money(breakdown["net_income"]))
    k3.metric("Days worked for taxes", f"{breakdown['days_worked']} / 30")
    fig_tax = px.bar(
        x=["Income tax", "Market tax", "Total"],
        y=[breakdown["income_tax_pct"], breakdown["market_tax_pct"], breakdown["total_tax_pct"]],
        labels={"x": "", "y": "%"},
        title="Tax rates",
        template=template,
    )
    st.plotly_chart(fig_tax, use_container_width=True)

elif menu == "🛒 Market":
    st.title("🛒 Market")
    categories = category_manager(MARKET, "market")
    items = inventory.load()

    editing_id = st.session_state.get("editing_item")
    editing = find_record(items, editing_id).get_or_else(None) if editing_id else None

    with st.form("item_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Item", value=editing.name if editing else "")
            current = st.text_input("Current quantity", value=f"{editing.current_quantity:g}" if editing else "")
            ideal = st.text_input("Ideal quantity", value=f"{editing.ideal_quantity:g}" if editing else "")
        with col2:
            unit = st.text_input("Unit", value=editing.unit if editing else "")
            cat_index = categories.index(editing.category) if editing and editing.category in categories else 0
            category = st.selectbox("Category", categories, index=cat_index)
        submitted = st.form_submit_button("Save" if editing else "Add item")

    if editing and st.button("Cancel editing", key="btn_cancel_item"):
        st.session_state.editing_item = None
        st.rerun()

    if submitted:
        result = new_inventory_item(name, current, ideal, unit, category, record_id=editing_id)
        if result.is_left():
            show_error(result.get_error())
        else:
            item = result.get_or_else(None)
            if editing:
                inventory.update(item)
                st.session_state.editing_item = None
            else:
                inventory.add(item)
            push_alerts(event_bus.publish(STOCK_CHANGED, {
                "id": item.id, "name": item.name, "unit": item.unit,
                "current_quantity": item.current_quantity, "ideal_quantity": item.ideal_quantity,
            }), "Stock")
            st.rerun()

    inv_tab, shop_tab = st.tabs(["📦 Inventory", "🛒 Shopping list"])
    with inv_tab:
        if not items:
            st.info("Inventory is empty.")
        for cat_name, cat_items in group_by_category(items).items():
            st.subheader(cat_name)
            for i in cat_items:
                c1, c2, c3, c4 = st.columns([3, 3, 1, 1])
                c1.write(f"**{i.name}** · {i.current_quantity:g}/{i.ideal_quantity:g} {i.unit}")
                c2.progress(stock_percentage(i) / 100)
                if c3.button("✏️", key=f"edit_item_{i.id}"):
                    st.session_state.editing_item = i.id
                    st.rerun()
                if c4.button("🗑", key=f"del_item_{i.id}"):
                    inventory.remove(i.id)
                    if editing_id == i.id:
                        st.session_state.editing_item = None
                    st.rerun()
    with shop_tab:
        to_buy = shopping_list(items)
        if not to_buy:
            st.success("Everything is stocked.")
        for entry in to_buy:
            c1, c2 = st.columns([4, 1])
            c1.write(f"**{entry.item.name}** · buy {entry.quantity_to_buy:g} {entry.item.unit}")
            if c2.button("✔ Bought", key=f"bought_{entry.item.id}"):
                inventory.mark_bought(entry.item.id)
                st.rerun()

elif menu == "👤 Profile":
    st.title("👤 Profile")

    with st.form("profile_form"):
        new_name = st.text_input("Name", value=profile.name)
        avatar_index = MASCOT_AVATARS.index(profile.avatar) if profile.avatar in MASCOT_AVATARS else 0
        new_avatar = st.selectbox("Avatar", MASCOT_AVATARS, index=avatar_index)
        if st.form_submit_button("Save profile"):
            profile.save_profile(new_name, new_avatar)
            st.rerun()

    cur = current_month_key()
    k1, k2, k3 = st.columns(3)
    k1.metric("Income this month", money(total_amount(incomes.load(cur))))
    k2.metric("Expenses this month", money(paid_total(expenses_store.load(cur))))
    k3.metric("Taxes this month", money(tax_store.load(cur).total_taxes))

    st.divider()
    st.subheader("📤 Export data")
    if st.button("Generate code", key="btn_export"):
        st.session_state.export_code = export_code(storage)
    if st.session_state.get("export_code"):
        st.code(st.session_state.export_code, language=None)
        st.download_button("⬇ Download code", st.session_state.export_code, file_name="pocketbook-backup.txt")

    st.subheader("📥 Import data")
    code = st.text_area("Paste a code", key="import_code")
    if st.button("Import", key="btn_import"):
        try:
            keys = import_code(storage, code)
        except InvalidBackupCode as exc:
            logger.warning("Rejected import code: %s", exc)
            st.error("Invalid code. Check it and try again.")
        else:
            st.success(f"Data imported successfully ({len(keys)} keys).")

    st.subheader("⚠️ Start over")
    confirm = st.checkbox("I understand all my data will be erased", key="confirm_reset")
    if st.button("Erase everything", key="btn_reset", disabled=not confirm):
        if reset_storage(storage, confirm):
            st.session_state.month = current_month_key()
            st.session_state.alerts = []
            st.rerun()

st.sidebar.divider()
st.sidebar.markdown("### ⚠️ Alerts")
if st.session_state.alerts:
    for alert in reversed(st.session_state.alerts[-5:]):
        st.sidebar.warning(f"[{alert['timestamp']}] {alert['message']}")
    if st.sidebar.button("Clear alerts", key="btn_clear_alerts"):
        st.session_state.alerts = []
        st.rerun()
else:
    st.sidebar.caption("No alerts at the moment")
