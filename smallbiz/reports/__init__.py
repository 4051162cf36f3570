"""Reporting package."""

from smallbiz.reports.aggregation import (
    MISSING_PERIOD_MESSAGE,
    ReportPeriodError,
    cash_flow,
    category_analysis,
    dashboard_summary,
    default_report_period,
    filter_by_period,
    income_statement,
    monthly_series,
    net_by_category,
    period_reports,
    sum_by_type,
    tax_summary,
)

__all__ = [
    "MISSING_PERIOD_MESSAGE",
    "ReportPeriodError",
    "cash_flow",
    "category_analysis",
    "dashboard_summary",
    "default_report_period",
    "filter_by_period",
    "income_statement",
    "monthly_series",
    "net_by_category",
    "period_reports",
    "sum_by_type",
    "tax_summary",
]
