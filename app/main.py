"""
Streamlit Frontend for Household Budget Tracker

This is the screen every household member uses to log spending
and see where the money went.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. One screen to join, one to spend, one to look back
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

All UI state lives in a single AppState in st.session_state and is
passed explicitly to the render functions.
"""

import asyncio
from datetime import date

import streamlit as st

from budget_tracker.audit import create_correlation_id
from budget_tracker.config import validate_all_settings
from budget_tracker.currency import (
    CURRENCIES,
    detect_user_currency,
    format_currency,
    get_currency,
)
from budget_tracker.models import (
    AppState,
    ExpenseCategory,
    ExpenseFormInput,
    Granularity,
    InsightsPeriod,
    View,
)
from budget_tracker.orchestrator import (
    AppComponents,
    HouseholdError,
    create_app_components,
)
from budget_tracker.services.storage import DuplicateError, StorageError
from budget_tracker.validation import ExpenseValidationError


# Page configuration
st.set_page_config(
    page_title="Household Budget",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .invite-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached, shared by all sessions)."""
    return create_app_components()


def get_session() -> tuple[AppState, AppComponents]:
    """This browser session's state and its own expense cache."""
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()
    if "components" not in st.session_state:
        st.session_state.components = get_components().with_new_cache()
    return st.session_state.app_state, st.session_state.components


def main():
    """Main application entry point."""
    state, components = get_session()

    if not state.has_household:
        render_setup_page(state, components)
        return

    run_async(components.cache.open(state.household.id))

    # Sidebar navigation
    st.sidebar.title(f"🏠 {state.household.name}")
    st.sidebar.markdown(f"Signed in as **{state.user_name}**")
    st.sidebar.markdown("---")

    views = {"📋 Expenses": View.EXPENSES, "📊 Insights": View.INSIGHTS}
    labels = list(views)
    choice = st.sidebar.radio(
        "Navigate to:",
        labels,
        index=list(views.values()).index(state.current_view),
    )
    state.current_view = views[choice]

    st.sidebar.markdown("---")
    if st.sidebar.button("🔄 Refresh"):
        run_async(components.cache.reload())
    if st.sidebar.button("🚪 Leave household"):
        components.cache.close()
        st.session_state.app_state = AppState(user_name=state.user_name)
        st.rerun()

    with st.sidebar.expander("⚙️ Connection Status"):
        render_settings_panel()

    if state.current_view == View.EXPENSES:
        render_expenses_page(state, components)
    else:
        render_insights_page(state, components)


def render_setup_page(state: AppState, components: AppComponents):
    """Name entry plus create / join."""
    st.title("🏠 Household Budget")
    st.markdown("Track shared spending with the people you live with.")

    user_name = st.text_input(
        "Your name",
        value=state.user_name,
        placeholder="e.g., Alex",
        help="This is how other members will see your expenses",
    )

    create_tab, join_tab = st.tabs(["➕ Create a household", "🔑 Join with a code"])

    with create_tab:
        household_name = st.text_input("Household name", placeholder="e.g., Flat 4B")
        if st.button("Create household", type="primary"):
            try:
                household = run_async(
                    components.household_flow.create_household(household_name, user_name)
                )
            except (HouseholdError, DuplicateError, StorageError) as e:
                st.error(str(e))
            else:
                state.open_household(household, user_name)
                st.rerun()

    with join_tab:
        invite_code = st.text_input(
            "Invite code",
            max_chars=6,
            placeholder="6 digits",
            help="Ask a member of the household for their invite code",
        )
        if st.button("Join household", type="primary"):
            try:
                household = run_async(
                    components.household_flow.join_household(invite_code, user_name)
                )
            except (HouseholdError, StorageError) as e:
                st.error(str(e))
            else:
                state.open_household(household, user_name)
                st.rerun()


def render_expenses_page(state: AppState, components: AppComponents):
    """Chart, bucket details, recent expenses and the add form."""
    dashboard = components.dashboard

    st.title("📋 Expenses")
    st.markdown(f"""
    <div class="invite-box">
        <p>Invite code: <strong>{state.household.invite_code}</strong>
        &nbsp;·&nbsp; {state.household.member_count} member(s)</p>
    </div>
    """, unsafe_allow_html=True)

    if st.button("➕ Add Expense", type="primary"):
        state.show_add_expense = not state.show_add_expense
    if state.show_add_expense:
        render_add_expense_form(state, components)

    st.markdown("---")

    granularity = st.radio(
        "Group by",
        list(Granularity),
        index=list(Granularity).index(state.chart_granularity),
        format_func=lambda g: g.value.title(),
        horizontal=True,
    )
    state.set_granularity(granularity)

    buckets = dashboard.series(state.chart_granularity)
    if not buckets:
        st.info("No expenses yet. Add the first one above.")
        return

    st.bar_chart(
        {
            "period": [b.key for b in buckets],
            "total": [float(b.total) for b in buckets],
        },
        x="period",
        y="total",
    )

    with st.expander("🔍 Details by period"):
        columns = st.columns(4)
        for idx, bucket in enumerate(reversed(buckets)):
            label = f"{bucket.key} · {bucket.count}"
            if columns[idx % 4].button(label, key=f"bucket_{bucket.key}"):
                state.toggle_bucket(bucket.key)

    if state.selected_bucket:
        st.subheader(f"Expenses on {state.selected_bucket}")
        render_expense_table(
            dashboard.bucket_details(state.chart_granularity, state.selected_bucket)
        )

    st.subheader("Recent expenses")
    render_expense_table(dashboard.recent_expenses())


def render_expense_table(expenses):
    if not expenses:
        st.caption("Nothing here.")
        return
    st.dataframe(
        [
            {
                "Date": e.expense_date.isoformat(),
                "Description": e.description,
                "Category": e.category,
                "Amount": format_currency(e.amount, e.currency),
                "By": e.user,
            }
            for e in expenses
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_add_expense_form(state: AppState, components: AppComponents):
    """Add-expense form with the category pre-filled from history."""
    flow = components.expense_flow

    description = st.text_input(
        "Description",
        placeholder="e.g., Walmart weekly shop",
        help="We'll suggest a category from what your household usually files this under",
    )
    suggestion = run_async(flow.explain_category(description, state.household.id))

    categories = ExpenseCategory.labels()
    for expense in components.cache.expenses:
        if expense.category not in categories:
            categories.append(expense.category)

    currency_codes = [c.code for c in CURRENCIES]
    default_currency = detect_user_currency()

    with st.form("add_expense", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input("Amount", placeholder="e.g., 1,250.50")
            currency = st.selectbox(
                "Currency",
                options=currency_codes,
                index=currency_codes.index(default_currency),
                format_func=lambda code: f"{code} ({get_currency(code).symbol})",
            )
        with col2:
            # keyed on the suggestion so a new suggestion resets the choice
            category = st.selectbox(
                "Category",
                options=categories,
                index=categories.index(suggestion.category),
                key=f"category_{suggestion.category}",
            )
            expense_date = st.date_input("Date", value=date.today())

        if suggestion.matched_words:
            st.caption(f"Suggested from: {', '.join(suggestion.matched_words)}")

        submitted = st.form_submit_button("💾 Save Expense", type="primary")

    if not submitted:
        return

    raw = ExpenseFormInput(
        amount=amount,
        description=description,
        category=category,
        expense_date=expense_date,
        currency=currency,
    )
    try:
        expense, result = run_async(
            flow.add_expense(
                raw,
                state.household.id,
                state.user_name,
                correlation_id=create_correlation_id(),
            )
        )
    except ExpenseValidationError as e:
        st.error(flow.validator.get_user_friendly_summary(e.result))
        return
    except (HouseholdError, StorageError) as e:
        st.error(f"Could not save the expense: {e}")
        return

    if result.warnings:
        st.warning(flow.validator.get_user_friendly_summary(result))
    st.success(
        f"✅ Saved {format_currency(expense.amount, expense.currency)} for {expense.description}"
    )
    state.show_add_expense = False


def render_insights_page(state: AppState, components: AppComponents):
    """This week's / month's spending per currency."""
    st.title("📊 Insights")

    period = st.radio(
        "Period",
        list(InsightsPeriod),
        index=list(InsightsPeriod).index(state.insights_period),
        format_func=lambda p: "This week" if p == InsightsPeriod.WEEKLY else "This month",
        horizontal=True,
    )
    state.insights_period = period

    by_currency = components.dashboard.insights_by_currency(period)
    if not by_currency:
        st.info("No expenses in this period yet.")
        return

    for currency, insights in by_currency.items():
        st.markdown("---")
        st.markdown(
            f'<div class="big-number">{format_currency(insights.total, currency)}</div>',
            unsafe_allow_html=True,
        )
        st.caption(f"Total in {currency} since {insights.period_start:%d %B %Y}")

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("By member")
            for user_total in insights.by_user:
                st.markdown(f"**{user_total.user}**: {format_currency(user_total.amount, currency)}")
        with col2:
            st.subheader("By category")
            for category_total in insights.by_category:
                st.markdown(
                    f"**{category_total.category}**: "
                    f"{format_currency(category_total.amount, currency)} "
                    f"({category_total.percentage:.0f}%)"
                )
                st.progress(min(category_total.percentage / 100, 1.0))


def render_settings_panel():
    """Show which backends are configured."""
    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("App settings", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.warning(f"⚠️ {name} - {error}")

    st.caption(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
