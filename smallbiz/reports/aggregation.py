"""
Aggregation and Reporting

DESIGN DECISION: Every report is a pure function over a list of
transactions. There is no cached or incremental state; each call scans
the list once, which is plenty at small-business volumes.

Reports:
- Dashboard totals (income, expenses, net, count)
- Net per category
- Monthly income/expense series for a trailing window
- Income statement, cash flow and category analysis for a period
- Schedule C style tax summary for a year
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from smallbiz.models.report import (
    CategoryAnalysis,
    CategoryTotal,
    DashboardSummary,
    MonthlyPoint,
    PeriodReports,
    PeriodStatement,
    TaxSummary,
)
from smallbiz.models.transaction import Transaction, TransactionType


ZERO = Decimal("0")

MISSING_PERIOD_MESSAGE = "Please select both start and end dates"


class ReportPeriodError(ValueError):
    """Report period is missing an end or is inverted."""
    pass


def sum_by_type(
    transactions: Iterable[Transaction],
    transaction_type: TransactionType,
) -> Decimal:
    """Total amount of one transaction type."""
    return sum(
        (t.amount for t in transactions if t.type == transaction_type),
        ZERO,
    )


def dashboard_summary(transactions: Iterable[Transaction]) -> DashboardSummary:
    """Headline totals for the dashboard cards."""
    income = ZERO
    expenses = ZERO
    count = 0
    for t in transactions:
        count += 1
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expenses += t.amount
    return DashboardSummary(
        total_income=income,
        total_expenses=expenses,
        net_income=income - expenses,
        transaction_count=count,
    )


def net_by_category(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """
    Income and expense per category, in first-seen order.

    CategoryTotal.net gives income minus expense.
    """
    totals: dict[str, CategoryTotal] = {}
    for t in transactions:
        entry = totals.get(t.category)
        if entry is None:
            entry = totals[t.category] = CategoryTotal(category=t.category)
        if t.type == TransactionType.INCOME:
            entry.income += t.amount
        else:
            entry.expense += t.amount
    return list(totals.values())


def _shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def monthly_series(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
    months: int = 6,
) -> list[MonthlyPoint]:
    """
    Income and expense per calendar month for a trailing window.

    The window ends with today's month and runs oldest first. Transactions
    outside the window are ignored.
    """
    if months < 1:
        raise ValueError("months must be at least 1")
    today = today or date.today()

    points: dict[tuple[int, int], MonthlyPoint] = {}
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(today.year, today.month, -offset)
        points[(year, month)] = MonthlyPoint(
            label=f"{calendar.month_abbr[month]} {year}",
            year=year,
            month=month,
        )

    for t in transactions:
        point = points.get((t.date.year, t.date.month))
        if point is None:
            continue
        if t.type == TransactionType.INCOME:
            point.income += t.amount
        else:
            point.expense += t.amount

    return list(points.values())


def default_report_period(today: Optional[date] = None) -> tuple[date, date]:
    """First and last day of today's month."""
    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def filter_by_period(
    transactions: Iterable[Transaction],
    start: Optional[date],
    end: Optional[date],
) -> list[Transaction]:
    """
    Transactions dated within [start, end], both inclusive.

    An end before the start selects nothing, so the reports come out empty.

    Raises:
        ReportPeriodError: start or end missing
    """
    if start is None or end is None:
        raise ReportPeriodError(MISSING_PERIOD_MESSAGE)
    return [t for t in transactions if start <= t.date <= end]


def income_statement(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> PeriodStatement:
    """Total income, total expenses and net income for the period."""
    in_period = filter_by_period(transactions, start, end)
    return PeriodStatement(
        start=start,
        end=end,
        total_in=sum_by_type(in_period, TransactionType.INCOME),
        total_out=sum_by_type(in_period, TransactionType.EXPENSE),
    )


def cash_flow(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> PeriodStatement:
    """
    Cash in, cash out and net cash flow for the period.

    Bookkeeping here is cash-basis, so this matches the income statement.
    """
    return income_statement(transactions, start, end)


def category_analysis(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> CategoryAnalysis:
    """Net total per category for the period."""
    in_period = filter_by_period(transactions, start, end)
    return CategoryAnalysis(
        start=start,
        end=end,
        categories=net_by_category(in_period),
    )


def period_reports(
    transactions: Iterable[Transaction],
    start: Optional[date],
    end: Optional[date],
) -> PeriodReports:
    """Build the income statement, cash flow and category analysis together."""
    in_period = filter_by_period(transactions, start, end)
    return PeriodReports(
        income_statement=income_statement(in_period, start, end),
        cash_flow=cash_flow(in_period, start, end),
        category_analysis=category_analysis(in_period, start, end),
    )


def tax_summary(transactions: Iterable[Transaction], year: int) -> TaxSummary:
    """
    Schedule C summary for one tax year.

    Gross income plus expenses grouped by category.
    """
    summary = TaxSummary(year=year)
    for t in transactions:
        if t.date.year != year:
            continue
        if t.type == TransactionType.INCOME:
            summary.gross_income += t.amount
        else:
            summary.expenses_by_category[t.category] = (
                summary.expenses_by_category.get(t.category, ZERO) + t.amount
            )
    return summary
