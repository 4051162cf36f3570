"""Tests for dashboard, period and tax aggregation."""

import pytest
from datetime import date
from decimal import Decimal

from smallbiz.models.transaction import Transaction, TransactionType
from smallbiz.reports import (
    MISSING_PERIOD_MESSAGE,
    ReportPeriodError,
    dashboard_summary,
    default_report_period,
    filter_by_period,
    monthly_series,
    net_by_category,
    period_reports,
    tax_summary,
)

from tests.factories import make_draft


def tx(tid, amount, kind=TransactionType.INCOME, when=date(2025, 3, 15), category=None):
    return Transaction.from_draft(tid, make_draft(
        amount=amount, kind=kind, when=when, category=category,
    ))


@pytest.fixture
def books():
    return [
        tx("1", "1000.00", when=date(2024, 11, 5)),
        tx("2", "250.00", TransactionType.EXPENSE, when=date(2024, 12, 20), category="Rent"),
        tx("3", "500.00", when=date(2025, 1, 10), category="Consulting"),
        tx("4", "75.50", TransactionType.EXPENSE, when=date(2025, 1, 31), category="Meals"),
        tx("5", "40.00", TransactionType.EXPENSE, when=date(2025, 3, 1), category="Rent"),
    ]


class TestDashboardSummary:
    """Tests for the headline numbers."""

    def test_empty_books(self):
        summary = dashboard_summary([])
        assert summary.total_income == Decimal("0")
        assert summary.net_income == Decimal("0")
        assert summary.transaction_count == 0

    def test_net_is_income_minus_expenses(self, books):
        summary = dashboard_summary(books)
        assert summary.total_income == Decimal("1500.00")
        assert summary.total_expenses == Decimal("365.50")
        assert summary.net_income == summary.total_income - summary.total_expenses
        assert summary.transaction_count == 5


class TestMonthlySeries:
    """Tests for the trailing monthly chart window."""

    def test_window_crosses_year_boundary(self, books):
        points = monthly_series(books, today=date(2025, 3, 10))
        assert [p.label for p in points] == [
            "Oct 2024", "Nov 2024", "Dec 2024", "Jan 2025", "Feb 2025", "Mar 2025",
        ]
        by_label = {p.label: p for p in points}
        assert by_label["Nov 2024"].income == Decimal("1000.00")
        assert by_label["Dec 2024"].expense == Decimal("250.00")
        assert by_label["Jan 2025"].income == Decimal("500.00")
        assert by_label["Jan 2025"].expense == Decimal("75.50")
        assert by_label["Feb 2025"].income == Decimal("0")

    def test_older_transactions_ignored(self, books):
        points = monthly_series(books, today=date(2025, 3, 10), months=2)
        assert [p.label for p in points] == ["Feb 2025", "Mar 2025"]
        assert sum(p.income for p in points) == Decimal("0")
        assert points[-1].expense == Decimal("40.00")

    def test_months_must_be_positive(self):
        with pytest.raises(ValueError):
            monthly_series([], today=date(2025, 1, 1), months=0)


class TestPeriodReports:
    """Tests for the period-bounded reports."""

    def test_default_period_is_current_month(self):
        assert default_report_period(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_period_bounds_inclusive(self, books):
        selected = filter_by_period(books, date(2025, 1, 10), date(2025, 1, 31))
        assert [t.id for t in selected] == ["3", "4"]

    def test_missing_dates(self, books):
        with pytest.raises(ReportPeriodError, match=MISSING_PERIOD_MESSAGE):
            period_reports(books, date(2025, 1, 1), None)

    def test_end_before_start_gives_empty_reports(self, books):
        reports = period_reports(books, date(2025, 2, 1), date(2025, 1, 1))
        assert reports.income_statement.total_in == Decimal("0")
        assert reports.cash_flow.total_out == Decimal("0")
        assert reports.category_analysis.categories == []

    def test_reports_for_period(self, books):
        reports = period_reports(books, date(2024, 12, 1), date(2025, 1, 31))
        statement = reports.income_statement
        assert statement.total_in == Decimal("500.00")
        assert statement.total_out == Decimal("325.50")
        assert statement.net == Decimal("174.50")
        assert reports.cash_flow.net == statement.net
        assert [c.category for c in reports.category_analysis.categories] == [
            "Rent", "Consulting", "Meals",
        ]

    def test_net_by_category(self, books):
        totals = {c.category: c.net for c in net_by_category(books)}
        assert totals["Rent"] == Decimal("-290.00")
        assert totals["Sales"] == Decimal("1000.00")


class TestTaxSummary:
    """Tests for the Schedule C summary."""

    def test_only_requested_year(self, books):
        summary = tax_summary(books, 2025)
        assert summary.gross_income == Decimal("500.00")
        assert summary.expenses_by_category == {
            "Meals": Decimal("75.50"),
            "Rent": Decimal("40.00"),
        }
        assert summary.net_profit == Decimal("384.50")

    def test_year_without_transactions(self, books):
        summary = tax_summary(books, 2020)
        assert summary.gross_income == Decimal("0")
        assert summary.expenses_by_category == {}
