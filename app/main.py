"""
Streamlit Frontend for Finance Tracker

Pages:
1. Dashboard - balance and the most recent transactions
2. Transactions - filter, add, edit, delete
3. Categories - manage the category set
4. Analytics - monthly income vs expenses, expenses by category
5. Settings - connection status

Every page reads from the one store built at start-up and calls its
actions; aggregates are recomputed on each rerun.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional

import pandas as pd
import plotly.express as px
import streamlit as st

from finance_tracker.analytics import (
    apply_filters,
    balance,
    category_breakdown,
    monthly_series,
)
from finance_tracker.audit import configure_logging
from finance_tracker.config import get_settings
from finance_tracker.models import (
    Balance,
    Category,
    Filter,
    TimeWindow,
    Transaction,
    TransactionDraft,
    TransactionType,
)
from finance_tracker.store import FinanceStore, create_store
from finance_tracker.validation import CategoryValidator, TransactionValidator


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_store() -> FinanceStore:
    """Build and load the store once per server process."""
    settings = get_settings()
    configure_logging(settings.app.effective_log_level)
    store = create_store(settings)
    try:
        run_async(store.start())
    except Exception as e:
        # The store keeps "Failed to load data" in its state; main() shows it
        st.error(f"Failed to load data: {e}")
    return store


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{amount:,.2f}"


def main():
    """Main application entry point."""
    store = get_store()

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "📋 Transactions", "🏷️ Categories", "📊 Analytics", "⚙️ Settings"],
        index=0,
    )

    if store.state.error:
        st.error(store.state.error)

    if page == "🏠 Dashboard":
        render_dashboard_page(store)
    elif page == "📋 Transactions":
        render_transactions_page(store)
    elif page == "🏷️ Categories":
        render_categories_page(store)
    elif page == "📊 Analytics":
        render_analytics_page(store)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# SHARED WIDGETS
# =============================================================================

def render_balance_cards(totals: Balance):
    col1, col2, col3 = st.columns(3)
    col1.metric("Balance", money(totals.total))
    col2.metric("Income", money(totals.income))
    col3.metric("Expenses", money(totals.expense))


def render_transaction_row(store: FinanceStore, transaction: Transaction, key_prefix: str):
    """One transaction with its category badge and edit/delete buttons."""
    category = store.category_for(transaction)
    sign = "+" if transaction.type == TransactionType.INCOME else "-"

    col1, col2, col3, col4 = st.columns([5, 2, 1, 1])
    with col1:
        st.markdown(
            f"**{transaction.title}** "
            f"<span style='background-color:{category.color}33;color:{category.color};"
            f"padding:2px 8px;border-radius:8px'>{category.name}</span>",
            unsafe_allow_html=True,
        )
        caption = transaction.date.strftime("%d %b %Y")
        if transaction.description:
            caption += f" · {transaction.description}"
        st.caption(caption)
    with col2:
        st.markdown(f"**{sign}{money(transaction.amount)}**")
    with col3:
        if st.button("✏️", key=f"{key_prefix}-edit-{transaction.id}", help="Edit"):
            st.session_state.editing_transaction_id = transaction.id
            st.rerun()
    with col4:
        if st.button("🗑️", key=f"{key_prefix}-delete-{transaction.id}", help="Delete"):
            try:
                run_async(store.delete_transaction(transaction.id))
            except Exception:
                st.error("Failed to delete transaction. Please try again.")
            else:
                st.rerun()


def render_transaction_form(
    store: FinanceStore,
    key: str,
    initial: Optional[Transaction] = None,
) -> bool:
    """
    Add/edit form. Returns True once a transaction was saved.

    The type picker sits outside the form so the category list follows it.
    """
    draft = TransactionDraft.from_transaction(initial) if initial else TransactionDraft()

    transaction_type = st.radio(
        "Type",
        options=list(TransactionType),
        index=list(TransactionType).index(draft.type),
        format_func=lambda t: t.value.title(),
        horizontal=True,
        key=f"{key}-type",
    )
    categories = store.categories_of_type(transaction_type)
    category_ids = [c.id for c in categories]

    with st.form(key=f"{key}-form", clear_on_submit=initial is None):
        title = st.text_input("Title *", value=draft.title or "")
        amount = st.number_input(
            "Amount *",
            value=float(draft.amount) if draft.amount else 0.0,
            min_value=0.0,
            step=0.01,
            format="%.2f",
        )
        when = st.date_input("Date *", value=draft.date or date.today())
        category_id = st.selectbox(
            "Category *",
            options=[None] + category_ids,
            index=(category_ids.index(draft.category_id) + 1)
            if draft.category_id in category_ids else 0,
            format_func=lambda cid: "Select a category" if cid is None
            else store.get_category(cid).name,
        )
        description = st.text_area("Description (optional)", value=draft.description or "")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if not submitted:
        return False

    draft = TransactionDraft(
        id=initial.id if initial else None,
        title=title,
        amount=Decimal(str(amount)),
        date=when,
        type=transaction_type,
        category_id=category_id,
        description=description,
    )
    validator = TransactionValidator()
    result = validator.validate(draft, store.state.categories)
    for message in result.errors_by_field().values():
        st.error(message)
    for message in result.warnings:
        st.warning(message)
    if result.has_errors:
        run_async(store.report_validation_failure("transaction", result))
        return False

    transaction = validator.to_transaction(draft, store.state.categories)
    try:
        if initial:
            run_async(store.update_transaction(initial.id, transaction))
        else:
            run_async(store.add_transaction(transaction))
    except Exception:
        st.error("Failed to save transaction. Please try again.")
        return False
    return True


def render_edit_panel(store: FinanceStore, key: str):
    """Edit form for the transaction picked with a row's edit button."""
    editing_id = st.session_state.get("editing_transaction_id")
    if not editing_id:
        return
    transaction = store.get_transaction(editing_id)
    if transaction is None:
        st.session_state.editing_transaction_id = None
        return

    st.markdown("---")
    st.subheader("✏️ Edit Transaction")
    if render_transaction_form(store, key=f"{key}-edit-{editing_id}", initial=transaction):
        st.session_state.editing_transaction_id = None
        st.rerun()
    if st.button("Cancel", key=f"{key}-cancel-edit"):
        st.session_state.editing_transaction_id = None
        st.rerun()


# =============================================================================
# PAGES
# =============================================================================

def render_dashboard_page(store: FinanceStore):
    st.title("🏠 Dashboard")

    render_balance_cards(store.get_balance())

    with st.expander("➕ Add Transaction"):
        if render_transaction_form(store, key="dashboard-add"):
            st.success("Transaction saved")

    st.subheader("Recent Transactions")
    limit = get_settings().app.recent_transactions_limit
    recent = store.recent_transactions(limit)
    if store.state.loading:
        st.info("Loading transactions...")
    elif not recent:
        st.info("No transactions yet. Start by adding your first transaction.")
    for transaction in recent:
        render_transaction_row(store, transaction, key_prefix="dashboard")

    render_edit_panel(store, key="dashboard")


def render_filter_bar(store: FinanceStore) -> Filter:
    col1, col2, col3, col4, col5 = st.columns([2, 2, 2, 2, 3])

    with col1:
        transaction_type = st.selectbox(
            "Type",
            options=[None] + list(TransactionType),
            format_func=lambda t: "All Types" if t is None else t.value.title(),
        )
    with col2:
        category_id = st.selectbox(
            "Category",
            options=[None] + [c.id for c in store.categories_of_type(transaction_type)],
            format_func=lambda cid: "All Categories" if cid is None
            else store.get_category(cid).name,
        )
    with col3:
        start_date = st.date_input("From", value=None)
    with col4:
        end_date = st.date_input("To", value=None)
    with col5:
        search_query = st.text_input("Search", placeholder="Title or description")

    return Filter(
        type=transaction_type,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
        search_query=search_query,
    )


def render_transactions_page(store: FinanceStore):
    st.title("📋 Transactions")

    with st.expander("➕ Add Transaction"):
        if render_transaction_form(store, key="transactions-add"):
            st.success("Transaction saved")

    criteria = render_filter_bar(store)
    filtered = apply_filters(store.state.transactions, criteria)

    st.markdown("---")
    if store.state.loading:
        st.info("Loading transactions...")
    elif not filtered:
        if criteria.is_active:
            st.info("No transactions found. Try adjusting your filters to see more results.")
        else:
            st.info("No transactions found. Start by adding your first transaction.")
    else:
        st.caption(f"{len(filtered)} transactions · net {money(balance(filtered).total)}")
        for transaction in filtered:
            render_transaction_row(store, transaction, key_prefix="transactions")

    render_edit_panel(store, key="transactions")


def render_category_form(store: FinanceStore, key: str, initial: Optional[Category] = None) -> bool:
    with st.form(key=key, clear_on_submit=initial is None):
        name = st.text_input("Name *", value=initial.name if initial else "")
        category_type = st.selectbox(
            "Type",
            options=list(TransactionType),
            index=list(TransactionType).index(initial.type) if initial else 1,
            format_func=lambda t: t.value.title(),
        )
        color = st.color_picker("Colour", value=initial.color if initial else "#4299E1")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if not submitted:
        return False

    validator = CategoryValidator()
    category_id = initial.id if initial else None
    result = validator.validate(name, category_type, color, store.state.categories, category_id)
    for message in result.errors_by_field().values():
        st.error(message)
    for message in result.warnings:
        st.warning(message)
    if result.has_errors:
        run_async(store.report_validation_failure("category", result))
        return False

    category = validator.to_category(name, category_type, color, store.state.categories, category_id)
    try:
        if initial:
            run_async(store.update_category(initial.id, category))
        else:
            run_async(store.add_category(category))
    except Exception:
        st.error("Failed to save category. Please try again.")
        return False
    return True


def render_categories_page(store: FinanceStore):
    st.title("🏷️ Categories")

    with st.expander("➕ Add Category"):
        if render_category_form(store, key="category-add"):
            st.success("Category saved")

    tabs = st.tabs(["All", "Income", "Expense"])
    for tab, transaction_type in zip(tabs, [None, TransactionType.INCOME, TransactionType.EXPENSE]):
        with tab:
            categories = store.categories_of_type(transaction_type)
            if not categories:
                st.info("No categories yet.")
            for category in categories:
                render_category_row(store, category, key_prefix=f"tab-{transaction_type}")

    editing_id = st.session_state.get("editing_category_id")
    category = store.get_category(editing_id) if editing_id else None
    if category:
        st.markdown("---")
        st.subheader(f"✏️ Edit {category.name}")
        if render_category_form(store, key=f"category-edit-{category.id}", initial=category):
            st.session_state.editing_category_id = None
            st.rerun()


def render_category_row(store: FinanceStore, category: Category, key_prefix: str):
    col1, col2, col3, col4 = st.columns([5, 2, 1, 1])
    with col1:
        st.markdown(
            f"<span style='color:{category.color};font-size:1.4em'>●</span> **{category.name}**",
            unsafe_allow_html=True,
        )
    with col2:
        st.caption(category.type.value.title())
    with col3:
        if st.button("✏️", key=f"{key_prefix}-edit-{category.id}", help="Edit"):
            st.session_state.editing_category_id = category.id
            st.rerun()
    with col4:
        confirm_key = f"{key_prefix}-confirm-{category.id}"
        if st.session_state.get(confirm_key):
            st.warning(
                "Are you sure you want to delete this category? "
                "This may affect transactions using this category."
            )
            if st.button("Confirm", key=f"{key_prefix}-yes-{category.id}", type="primary"):
                st.session_state[confirm_key] = False
                try:
                    run_async(store.delete_category(category.id))
                except Exception:
                    st.error("Failed to delete category. It may be in use by transactions.")
                else:
                    st.rerun()
        elif st.button("🗑️", key=f"{key_prefix}-delete-{category.id}", help="Delete"):
            st.session_state[confirm_key] = True
            st.rerun()


def render_analytics_page(store: FinanceStore):
    st.title("📊 Analytics")

    windows = list(TimeWindow)
    default_window = get_settings().app.default_window
    window = st.radio(
        "Timeframe",
        options=windows,
        index=windows.index(default_window),
        format_func=lambda w: w.label,
        horizontal=True,
    )

    transactions = store.state.transactions
    render_balance_cards(balance(transactions))

    col1, col2 = st.columns(2)

    with col1:
        series = monthly_series(transactions, window)
        if not transactions:
            st.info("No data available")
        else:
            frame = pd.DataFrame({
                "Month": series.labels * 2,
                "Kind": ["Income"] * len(series.labels) + ["Expenses"] * len(series.labels),
                "Amount": [float(v) for v in series.income_values + series.expense_values],
            })
            fig = px.bar(
                frame,
                x="Month",
                y="Amount",
                color="Kind",
                barmode="group",
                title="Income vs Expenses",
                color_discrete_map={"Income": "#38B2AC", "Expenses": "#F56565"},
            )
            st.plotly_chart(fig, width="stretch")

    with col2:
        breakdown = category_breakdown(transactions, store.state.categories, window)
        if not breakdown.slices:
            st.info("No category data available")
        else:
            frame = pd.DataFrame({
                "Category": breakdown.display_labels,
                "Amount": [float(a) for a in breakdown.amounts],
            })
            fig = px.pie(
                frame,
                names="Category",
                values="Amount",
                title="Expenses by Category",
                color="Category",
                color_discrete_map=dict(zip(breakdown.display_labels, breakdown.colors)),
            )
            st.plotly_chart(fig, width="stretch")


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from finance_tracker.config import validate_all_settings

    status = validate_all_settings()
    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    app_settings = get_settings().app
    st.markdown(f"**Environment:** `{app_settings.app_environment}`")
    st.markdown(f"**Debug mode:** `{app_settings.debug_mode}`")
    st.markdown(f"**Storage backend:** `{app_settings.storage_backend.value}`")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your "
        "Google Sheets credentials. See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
