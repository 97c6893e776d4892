"""
Streamlit Frontend for Finance Ledger

The user interface for day-to-day bookkeeping: income, expenses,
budgets, transfers and reports.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Every action reports success or the exact reason it failed
3. Budget warnings are shown right after the expense that caused them
4. A partially completed transfer is never shown as a plain error

The UI holds nothing but the caller's Session. Every change goes
through LedgerFlow, which reloads and saves the wallet itself.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import streamlit as st

from finance_ledger.config import get_settings, validate_all_settings
from finance_ledger.errors import ErrorKind, LedgerError
from finance_ledger.export import transactions_to_csv
from finance_ledger.models import OperationResult, Session, TransactionKind
from finance_ledger.orchestrator import LedgerFlow, create_app_components
from finance_ledger.services import AuthService, StatisticsService


# Page configuration
st.set_page_config(
    page_title="Finance Ledger",
    page_icon="💰",
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
    .error-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


CURRENCY = get_settings().app.currency_label


def money(value: Decimal) -> str:
    return f"{value:,.2f} {CURRENCY}"


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def current_session() -> Optional[Session]:
    return st.session_state.get("session")


def show_result(result: OperationResult, success_message: str) -> None:
    """Render an OperationResult, branching on every error kind."""
    if result.success:
        st.success(f"✅ {success_message}")
        for warning in result.warnings:
            st.warning(warning)
        return

    if result.error_kind == ErrorKind.PARTIAL_TRANSFER:
        st.markdown(f"""
        <div class="error-box">
            <h4>🚨 Transfer only partially saved</h4>
            <p>{result.error_message}</p>
            <p><strong>Transfer ID:</strong> {result.details.get("transfer_id", "-")}</p>
        </div>
        """, unsafe_allow_html=True)
    elif result.error_kind == ErrorKind.INSUFFICIENT_FUNDS:
        st.error(f"💸 {result.error_message}")
    elif result.error_kind == ErrorKind.NOT_FOUND:
        st.error(f"🔍 {result.error_message}")
    elif result.error_kind == ErrorKind.STORAGE:
        st.error(f"💾 Could not save your data: {result.error_message}")
    else:
        st.error(f"❌ {result.error_message}")


def main():
    """Main application entry point."""
    auth_service, ledger_flow, statistics = get_components()
    session = current_session()

    # Sidebar navigation
    st.sidebar.title("💰 Finance Ledger")
    st.sidebar.markdown("---")

    if session is None or not auth_service.is_active(session):
        st.session_state.pop("session", None)
        render_account_page(auth_service)
        return

    st.sidebar.markdown(f"Signed in as **{session.username}**")
    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Overview",
            "➕ Income & Expenses",
            "🎯 Budgets",
            "💸 Transfer",
            "📈 Statistics",
            "⚙️ Settings",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        auth_service.logout(session)
        st.session_state.pop("session", None)
        st.rerun()

    # Route to appropriate page
    if page == "📊 Overview":
        render_overview_page(ledger_flow, session)
    elif page == "➕ Income & Expenses":
        render_posting_page(ledger_flow, session)
    elif page == "🎯 Budgets":
        render_budgets_page(ledger_flow, session)
    elif page == "💸 Transfer":
        render_transfer_page(ledger_flow, session)
    elif page == "📈 Statistics":
        render_statistics_page(ledger_flow, statistics, session)
    elif page == "⚙️ Settings":
        render_settings_page(ledger_flow, auth_service, session)


def render_account_page(auth_service: AuthService):
    """Render the login / registration page."""
    st.title("Welcome")
    login_tab, register_tab = st.tabs(["🔑 Log in", "📝 Register"])

    with login_tab:
        with st.form("login"):
            username = st.text_input("Username")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Log in", type="primary")
        if submitted:
            try:
                st.session_state.session = auth_service.login(username, password)
                st.rerun()
            except LedgerError as e:
                st.error(f"❌ {e.message}")

    with register_tab:
        with st.form("register"):
            username = st.text_input("Username", help="3-20 letters or digits")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Create account", type="primary")
        if submitted:
            try:
                user = auth_service.register(username, password)
                st.success(f"✅ Account '{user.username}' created. You can log in now.")
            except LedgerError as e:
                st.error(f"❌ {e.message}")


def render_overview_page(ledger_flow: LedgerFlow, session: Session):
    """Render balance, budgets and the latest transactions."""
    st.title("📊 Overview")

    result = ledger_flow.refresh(session)
    if not result.success:
        show_result(result, "")
        return
    wallet = result.value

    st.markdown("### Balance")
    st.markdown(f'<div class="big-number">{money(wallet.balance)}</div>', unsafe_allow_html=True)

    budgets = wallet.budgets
    if budgets:
        st.markdown("### Budgets")
        for budget in budgets.values():
            ratio = min(budget.usage_percentage / 100, 1.0)
            st.progress(ratio, text=f"{budget.category.name}: {money(budget.spent)} / {money(budget.limit)}")
            if budget.is_exceeded:
                st.error(f"Over budget by {money(-budget.remaining)}")

    st.markdown("### Latest transactions")
    transactions = list(wallet.transactions)[-20:][::-1]
    if not transactions:
        st.info("📋 Your transactions will appear here once you add them.")
        return
    st.dataframe(
        [
            {
                "Date": t.timestamp.strftime("%Y-%m-%d %H:%M"),
                "Type": t.kind.value,
                "Category": t.category.name,
                "Amount": f"{t.signed_amount:+.2f}",
                "Description": t.description,
            }
            for t in transactions
        ],
        use_container_width=True,
    )


def render_posting_page(ledger_flow: LedgerFlow, session: Session):
    """Render the income / expense form."""
    st.title("➕ Income & Expenses")

    with st.form("posting", clear_on_submit=True):
        kind = st.radio(
            "Type",
            options=list(TransactionKind),
            format_func=lambda k: k.value.title(),
            horizontal=True,
        )
        amount = st.text_input("Amount", placeholder="e.g., 1500.00")
        category = st.text_input("Category", placeholder="e.g., Food")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        if kind == TransactionKind.INCOME:
            result = ledger_flow.post_income(session, amount, category, description)
        else:
            result = ledger_flow.post_expense(session, amount, category, description)
        show_result(result, f"{kind.value.title()} saved. Balance: {money(session.wallet.balance)}")


def render_budgets_page(ledger_flow: LedgerFlow, session: Session):
    """Render budget management."""
    st.title("🎯 Budgets")

    col1, col2 = st.columns(2)

    with col1:
        with st.form("set_budget", clear_on_submit=True):
            st.markdown("**Set or change a budget**")
            category = st.text_input("Expense category")
            limit = st.text_input("Limit", placeholder="e.g., 5000")
            submitted = st.form_submit_button("💾 Save budget", type="primary")
        if submitted:
            result = ledger_flow.set_budget(session, category, limit)
            show_result(result, f"Budget for '{category.strip()}' saved.")

    with col2:
        with st.form("delete_budget", clear_on_submit=True):
            st.markdown("**Remove a budget**")
            category = st.text_input("Expense category ")
            submitted = st.form_submit_button("🗑️ Remove")
        if submitted:
            result = ledger_flow.delete_budget(session, category)
            if result.success and not result.value:
                st.info(f"No budget was set for '{category.strip()}'.")
            else:
                show_result(result, f"Budget for '{category.strip()}' removed.")

    st.markdown("---")
    refreshed = ledger_flow.refresh(session)
    if not refreshed.success:
        show_result(refreshed, "")
        return
    budgets = refreshed.value.budgets
    if not budgets:
        st.info("No budgets yet.")
        return
    st.dataframe(
        [
            {
                "Category": b.category.name,
                "Limit": f"{b.limit:.2f}",
                "Spent": f"{b.spent:.2f}",
                "Remaining": f"{b.remaining:.2f}",
                "Used": f"{b.usage_percentage:.1f}%",
            }
            for b in budgets.values()
        ],
        use_container_width=True,
    )


def render_transfer_page(ledger_flow: LedgerFlow, session: Session):
    """Render the transfer form."""
    st.title("💸 Transfer")
    st.markdown("Send money to another registered user.")

    with st.form("transfer", clear_on_submit=True):
        recipient = st.text_input("Recipient username")
        amount = st.text_input("Amount")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("💸 Send", type="primary")

    if submitted:
        result = ledger_flow.transfer(session, recipient, amount, description or None)
        if result.success:
            receipt = result.value
            show_result(result, f"Sent {money(receipt.amount)} to {receipt.recipient}.")
        else:
            show_result(result, "")


def render_statistics_page(ledger_flow: LedgerFlow, statistics: StatisticsService, session: Session):
    """Render totals, per-category sums, period filter and CSV export."""
    st.title("📈 Statistics")

    result = ledger_flow.refresh(session)
    if not result.success:
        show_result(result, "")
        return
    wallet = result.value

    overall, by_categories, by_period = st.tabs(["Overall", "By categories", "By period"])

    with overall:
        col1, col2, col3 = st.columns(3)
        col1.metric("Total income", money(statistics.total_income(wallet)))
        col2.metric("Total expenses", money(statistics.total_expenses(wallet)))
        col3.metric("Balance", money(wallet.balance))

        st.markdown("**Income by category**")
        for category, total in statistics.income_by_category(wallet).items():
            st.markdown(f"- {category.name}: {money(total)}")
        st.markdown("**Expenses by category**")
        for category, total in statistics.expenses_by_category(wallet).items():
            st.markdown(f"- {category.name}: {money(total)}")

    with by_categories:
        names_text = st.text_input("Categories (comma separated)", placeholder="Food, Transport")
        if names_text:
            names = [n.strip() for n in names_text.split(",") if n.strip()]
            missing = statistics.find_missing_categories(wallet, names)
            if missing:
                st.warning(f"No transactions found for: {', '.join(missing)}")
            col1, col2 = st.columns(2)
            col1.metric("Income", money(statistics.income_by_categories(wallet, names)))
            col2.metric("Expenses", money(statistics.expenses_by_categories(wallet, names)))

    with by_period:
        col1, col2 = st.columns(2)
        start = col1.date_input("From", value=date.today().replace(day=1))
        end = col2.date_input("To", value=date.today())
        transactions = statistics.transactions_by_period(
            wallet,
            datetime.combine(start, time.min),
            datetime.combine(end, time.max),
        )
        st.markdown(f"**{len(transactions)} transactions**")
        for t in transactions:
            st.markdown(f"- {t}")

    st.markdown("---")
    st.download_button(
        "⬇️ Export transactions (CSV)",
        data=transactions_to_csv(wallet.transactions),
        file_name=f"{session.username}_transactions.csv",
        mime="text/csv",
    )


def render_settings_page(ledger_flow: LedgerFlow, auth_service: AuthService, session: Session):
    """Render configuration status and account deletion."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for name in ("storage", "ledger", "auth", "app"):
        if status.get(name, False):
            st.success(f"✅ {name.title()} settings OK")
        else:
            st.error(f"❌ {name.title()} - {status.get(f'{name}_error', 'Invalid')}")

    st.markdown("---")
    st.markdown("### Close account")
    st.warning("This permanently deletes your wallet and all its transactions.")
    confirm = st.checkbox(f"I understand, delete '{session.username}'")
    if st.button("🗑️ Delete my account", disabled=not confirm):
        result = ledger_flow.close_account(session, auth_service)
        if result.success:
            st.session_state.pop("session", None)
            st.rerun()
        show_result(result, "")


if __name__ == "__main__":
    main()
