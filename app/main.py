"""
Streamlit Frontend for SmallBiz BookKeeping Pro

The user interface small business owners use to keep their books.

DESIGN PRINCIPLES:
1. Nothing is visible until a valid license is activated on this device
2. Explicit confirmation before anything is deleted
3. Clear error messages shown right where the problem is
4. Dashboard numbers always reflect the saved transactions

Run with:
    streamlit run app/main.py
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from smallbiz.config import get_settings, validate_all_settings
from smallbiz.ledger import DELETE_CONFIRMATION, EMPTY_DELETE_SELECTION
from smallbiz.models.transaction import (
    TransactionDraft,
    TransactionFilter,
    TransactionType,
    all_categories,
    categories_for,
)
from smallbiz.orchestrator import (
    LOGOUT_CONFIRMATION,
    BookkeepingSession,
    create_app_components,
    create_storage,
)
from smallbiz.reports import ReportPeriodError, default_report_period
from smallbiz.services.export.pdf import PDF_MIME_TYPE, PLACEHOLDER_NOTICE, report_filename
from smallbiz.services.export.spreadsheet import (
    ALL_TRANSACTIONS_FILENAME,
    EMPTY_EXPORT_SELECTION,
    SELECTED_TRANSACTIONS_FILENAME,
    XLSX_MIME_TYPE,
)
from smallbiz.services.licensing import ClientHints


# Page configuration
st.set_page_config(
    page_title="SmallBiz BookKeeping Pro",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .income { color: #28a745; font-weight: bold; }
    .expense { color: #dc3545; font-weight: bold; }
</style>
""", unsafe_allow_html=True)


PAGES = ["📊 Dashboard", "💸 Transactions", "📈 Reports", "🧾 Tax Center", "⚙️ Settings"]


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_storage():
    """One storage backend shared by every session (cached)."""
    return create_storage()


def _client_hints() -> ClientHints:
    """Whatever the browser told us in its request headers."""
    headers = st.context.headers
    accept_language = headers.get("Accept-Language", "")
    languages = [part.split(";")[0].strip() for part in accept_language.split(",") if part.strip()]
    return ClientHints(
        user_agent=headers.get("User-Agent"),
        language=languages[0] if languages else None,
        languages=languages or None,
    )


def get_session() -> BookkeepingSession:
    """Get or create this browser session's bookkeeping state."""
    if "bookkeeping" not in st.session_state:
        session = create_app_components(storage=get_storage(), client_hints=_client_hints())
        run_async(session.start())
        st.session_state.bookkeeping = session
    return st.session_state.bookkeeping


def money(value: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"


def main():
    """Main application entry point."""
    session = get_session()

    if not session.is_unlocked:
        render_license_page(session)
        return

    st.sidebar.title("📒 SmallBiz BookKeeping Pro")
    st.sidebar.markdown("---")
    page = st.sidebar.radio("Navigate to:", PAGES, index=0)
    st.sidebar.markdown("---")

    info = session.gate.license_info()
    if info:
        st.sidebar.caption(f"License: {info.key} ({info.type.value})")

    if st.sidebar.button("🚪 Logout"):
        st.session_state.confirm_logout = True
    if st.session_state.get("confirm_logout"):
        st.sidebar.warning(LOGOUT_CONFIRMATION)
        yes, no = st.sidebar.columns(2)
        if yes.button("Yes", key="logout_yes"):
            session.logout()
            st.session_state.confirm_logout = False
            st.rerun()
        if no.button("No", key="logout_no"):
            st.session_state.confirm_logout = False
            st.rerun()

    if page == PAGES[0]:
        render_dashboard_page(session)
    elif page == PAGES[1]:
        render_transactions_page(session)
    elif page == PAGES[2]:
        render_reports_page(session)
    elif page == PAGES[3]:
        render_tax_page(session)
    else:
        render_settings_page(session)


# =============================================================================
# LICENSE
# =============================================================================

def render_license_page(session: BookkeepingSession):
    """The only thing a locked session can see."""
    st.title("🔐 Activate SmallBiz BookKeeping Pro")
    st.markdown("Enter your license key to unlock the application on this device.")

    with st.form("activate"):
        license_key = st.text_input("License key", placeholder="SBKP-2025-XXXX-XXXXX")
        submitted = st.form_submit_button("Activate", type="primary")

    if submitted:
        with st.spinner("Checking your license..."):
            result = run_async(session.activate(license_key))
        if result.success:
            st.rerun()
        else:
            st.error(result.error)

    saved_key = session.gate.saved_license_key
    if saved_key:
        # Saved credentials that no longer verify on this device
        st.markdown("---")
        st.info(f"This device was previously activated with {saved_key}.")
        if st.button("🚪 Logout and release this license"):
            st.session_state.confirm_logout = True
        if st.session_state.get("confirm_logout"):
            st.warning(LOGOUT_CONFIRMATION)
            yes, no = st.columns(2)
            if yes.button("Yes", key="release_yes"):
                session.logout()
                st.session_state.confirm_logout = False
                st.rerun()
            if no.button("No", key="release_no"):
                st.session_state.confirm_logout = False
                st.rerun()


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard_page(session: BookkeepingSession):
    st.title("📊 Dashboard")

    summary = session.dashboard
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Income", money(summary.total_income))
    col2.metric("Total Expenses", money(summary.total_expenses))
    col3.metric("Net Income", money(summary.net_income))
    col4.metric("Transactions", summary.transaction_count)

    st.markdown("### Income vs Expenses")
    chart = {
        "Income": {p.label: float(p.income) for p in session.monthly},
        "Expenses": {p.label: float(p.expense) for p in session.monthly},
    }
    st.bar_chart(chart)


# =============================================================================
# TRANSACTIONS
# =============================================================================

def render_transaction_form(session: BookkeepingSession):
    """Add a new transaction, or edit the one picked for editing."""
    editing_id = st.session_state.get("editing_id")
    existing = session.transactions.get(editing_id) if editing_id else None

    st.markdown("### Edit Transaction" if existing else "### Add Transaction")

    kind = st.radio(
        "Type",
        [t.value for t in TransactionType],
        index=[t.value for t in TransactionType].index(existing.type.value) if existing else 0,
        horizontal=True,
    )
    transaction_type = TransactionType(kind)
    categories = list(categories_for(transaction_type))

    with st.form("transaction_form", clear_on_submit=existing is None):
        col1, col2 = st.columns(2)
        with col1:
            when = st.date_input("Date", value=existing.date if existing else date.today())
            category_index = (
                categories.index(existing.category)
                if existing and existing.category in categories
                else 0
            )
            category = st.selectbox("Category", categories, index=category_index)
        with col2:
            amount = st.number_input(
                "Amount",
                min_value=0.0,
                step=0.01,
                format="%.2f",
                value=float(existing.amount) if existing else 0.0,
            )
            description = st.text_input(
                "Description",
                value=existing.description if existing else "",
            )
        notes = st.text_area("Notes", value=(existing.notes or "") if existing else "")
        submitted = st.form_submit_button("Save", type="primary")

    if existing and st.button("Cancel edit"):
        st.session_state.editing_id = None
        st.rerun()

    if not submitted:
        return

    try:
        draft = TransactionDraft(
            date=when,
            type=transaction_type,
            category=category,
            description=description,
            amount=Decimal(str(amount)).quantize(Decimal("0.01")),
            notes=notes or None,
        )
    except ValueError as e:
        st.error(f"Please check the form: {e}")
        return

    if existing:
        session.transactions.update(existing.id, draft)
        st.session_state.editing_id = None
    else:
        session.transactions.create(draft)
    st.rerun()


def render_transactions_page(session: BookkeepingSession):
    st.title("💸 Transactions")

    render_transaction_form(session)
    st.markdown("---")

    col1, col2, col3 = st.columns(3)
    with col1:
        search = st.text_input("Search", placeholder="Description or notes")
    with col2:
        type_choice = st.selectbox("Type", ["All"] + [t.value for t in TransactionType])
    with col3:
        category_choice = st.selectbox("Category", ["All"] + all_categories())

    criteria = TransactionFilter(
        search_text=search,
        type=None if type_choice == "All" else TransactionType(type_choice),
        category=None if category_choice == "All" else category_choice,
    )

    selected: list[str] = []
    for transaction in session.transactions.list_transactions(criteria):
        cols = st.columns([0.5, 1.5, 1, 2, 3, 1.5, 0.8, 0.8])
        if cols[0].checkbox("Select", key=f"sel_{transaction.id}", label_visibility="collapsed"):
            selected.append(transaction.id)
        cols[1].write(transaction.date.isoformat())
        css = "income" if transaction.is_income else "expense"
        cols[2].markdown(f"<span class='{css}'>{transaction.type.value}</span>", unsafe_allow_html=True)
        cols[3].write(transaction.category)
        cols[4].write(transaction.description)
        cols[5].write(money(transaction.amount))
        if cols[6].button("✏️", key=f"edit_{transaction.id}"):
            st.session_state.editing_id = transaction.id
            st.rerun()
        if cols[7].button("🗑️", key=f"del_{transaction.id}"):
            st.session_state.pending_delete = [transaction.id]
            st.rerun()

    st.markdown("---")
    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("🗑️ Delete selected"):
            if selected:
                st.session_state.pending_delete = selected
                st.rerun()
            else:
                st.warning(EMPTY_DELETE_SELECTION)
    with col2:
        if selected:
            st.download_button(
                "📥 Export selected",
                data=session.export_selected_xlsx(selected),
                file_name=SELECTED_TRANSACTIONS_FILENAME,
                mime=XLSX_MIME_TYPE,
            )
        elif st.button("📥 Export selected"):
            st.warning(EMPTY_EXPORT_SELECTION)
    with col3:
        st.download_button(
            "📥 Export all",
            data=session.export_all_xlsx(),
            file_name=ALL_TRANSACTIONS_FILENAME,
            mime=XLSX_MIME_TYPE,
        )

    render_delete_confirmation(session)


def render_delete_confirmation(session: BookkeepingSession):
    pending = st.session_state.get("pending_delete")
    if not pending:
        return

    if len(pending) == 1:
        message = DELETE_CONFIRMATION
    else:
        message = f"Delete {len(pending)} selected transaction(s)?"
    st.warning(message)

    yes, no = st.columns(2)
    if yes.button("Yes, delete", type="primary"):
        if len(pending) == 1:
            session.transactions.delete(pending[0])
        else:
            session.transactions.bulk_delete(pending)
        st.session_state.pending_delete = None
        st.rerun()
    if no.button("Cancel"):
        st.session_state.pending_delete = None
        st.rerun()


# =============================================================================
# REPORTS
# =============================================================================

def render_reports_page(session: BookkeepingSession):
    st.title("📈 Reports")

    default_start, default_end = default_report_period()
    col1, col2 = st.columns(2)
    start = col1.date_input("Start date", value=default_start)
    end = col2.date_input("End date", value=default_end)

    try:
        reports = session.reports(start, end)
    except ReportPeriodError as e:
        st.warning(str(e))
        return

    statement = reports.income_statement
    st.markdown("### Income Statement")
    c1, c2, c3 = st.columns(3)
    c1.metric("Income", money(statement.total_in))
    c2.metric("Expenses", money(statement.total_out))
    c3.metric("Net Income", money(statement.net))

    flow = reports.cash_flow
    st.markdown("### Cash Flow")
    c1, c2, c3 = st.columns(3)
    c1.metric("Cash In", money(flow.total_in))
    c2.metric("Cash Out", money(flow.total_out))
    c3.metric("Net Cash Flow", money(flow.net))

    st.markdown("### Category Analysis")
    rows = [
        {
            "Category": c.category,
            "Income": money(c.income),
            "Expense": money(c.expense),
            "Net": money(c.net),
        }
        for c in reports.category_analysis.categories
    ]
    if rows:
        st.table(rows)
    else:
        st.info("No transactions in this period.")

    st.markdown("---")
    st.caption(PLACEHOLDER_NOTICE)
    cols = st.columns(3)
    for col, report_type in zip(cols, ("income-statement", "cash-flow", "category-analysis")):
        col.download_button(
            f"📄 {report_type} PDF",
            data=session.export_report_pdf(report_type),
            file_name=report_filename(report_type),
            mime=PDF_MIME_TYPE,
        )


# =============================================================================
# TAX CENTER
# =============================================================================

def render_tax_page(session: BookkeepingSession):
    st.title("🧾 Tax Center")

    this_year = date.today().year
    year = st.selectbox("Tax year", list(range(this_year, this_year - 6, -1)))
    summary = session.tax_summary(year)

    c1, c2, c3 = st.columns(3)
    c1.metric("Gross Income", money(summary.gross_income))
    c2.metric("Deductible Expenses", money(summary.total_expenses))
    c3.metric("Net Profit", money(summary.net_profit))

    if summary.expenses_by_category:
        st.markdown("### Expenses by Category")
        st.table([
            {"Category": name, "Amount": money(amount)}
            for name, amount in summary.expenses_by_category.items()
        ])

    col1, col2 = st.columns(2)
    col1.download_button(
        "📄 Tax summary PDF",
        data=session.export_report_pdf("tax-summary"),
        file_name=report_filename("tax-summary"),
        mime=PDF_MIME_TYPE,
    )
    col2.download_button(
        "📥 Export to Excel",
        data=session.export_all_xlsx(),
        file_name=ALL_TRANSACTIONS_FILENAME,
        mime=XLSX_MIME_TYPE,
    )


# =============================================================================
# SETTINGS
# =============================================================================

def render_settings_page(session: BookkeepingSession):
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for name in ("storage", "license", "app"):
        if status.get(name):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{name}_error', 'Unknown error')}")

    st.markdown("### License")
    info = session.gate.license_info()
    if info:
        st.write(f"**Key:** {info.key}")
        st.write(f"**Type:** {info.type.value}")
        st.write(f"**Features:** {', '.join(sorted(info.features))}")
        if info.activated_at:
            st.write(f"**Activated:** {info.activated_at:%Y-%m-%d %H:%M}")


if __name__ == "__main__":
    main()
