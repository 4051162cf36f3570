"""
Report Models

Results of the aggregation functions in smallbiz.reports.
All amounts are Decimal; formatting is left to the view layer.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


class DashboardSummary(BaseModel):
    """Headline numbers on the dashboard."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_income: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)


class MonthlyPoint(BaseModel):
    """One bar pair of the monthly income/expense chart."""

    label: str = Field(..., description="e.g. 'Jan 2025'")
    year: int
    month: int = Field(..., ge=1, le=12)
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class CategoryTotal(BaseModel):
    """Income and expense booked against one category."""

    category: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class PeriodStatement(BaseModel):
    """
    Totals for a reporting period.

    Serves both the income statement (income / expenses / net income)
    and the cash flow view (cash in / cash out / net cash flow).
    """

    start: date
    end: date
    total_in: Decimal = Decimal("0")
    total_out: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.total_in - self.total_out


class CategoryAnalysis(BaseModel):
    """Net total per category for a reporting period."""

    start: date
    end: date
    categories: list[CategoryTotal] = Field(default_factory=list)


class PeriodReports(BaseModel):
    """The three reports generated together for one period."""

    income_statement: PeriodStatement
    cash_flow: PeriodStatement
    category_analysis: CategoryAnalysis


class TaxSummary(BaseModel):
    """
    Schedule C style summary for one tax year.

    Expenses keep the order in which their category first appears.
    """

    year: int
    gross_income: Decimal = Decimal("0")
    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def total_expenses(self) -> Decimal:
        return sum(self.expenses_by_category.values(), Decimal("0"))

    @property
    def net_profit(self) -> Decimal:
        return self.gross_income - self.total_expenses
