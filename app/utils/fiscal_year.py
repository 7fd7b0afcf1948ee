"""
Fiscal-year calendar helpers.

A fiscal year starts on day 1 of FISCAL_YEAR_START_MONTH in the business
timezone (default April, Asia/Singapore).
"""
from datetime import date, datetime, timedelta
from typing import Optional

from app.core.config import settings
from app.utils.datetime_utils import UTC, business_tz


def fiscal_year_start(on: date, start_month: Optional[int] = None) -> date:
    """First day of the fiscal year containing `on`."""
    month = start_month or settings.FISCAL_YEAR_START_MONTH
    year = on.year if on.month >= month else on.year - 1
    return date(year, month, 1)


def next_fiscal_year_start(start: date) -> date:
    return date(start.year + 1, start.month, 1)


def fiscal_year_end(start: date) -> date:
    return next_fiscal_year_start(start) - timedelta(days=1)


def fiscal_year_label(start: date) -> str:
    """FY2025/26 for an April 2025 start; FY2026 when the fiscal year is the calendar year."""
    if start.month == 1:
        return f"FY{start.year}"
    return f"FY{start.year}/{(start.year + 1) % 100:02d}"


def fiscal_year_start_utc(start: date) -> datetime:
    """Midnight of the fiscal-year start in the business timezone, as UTC."""
    return datetime(start.year, start.month, start.day, tzinfo=business_tz()).astimezone(UTC)
