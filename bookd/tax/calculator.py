"""
Unified Tax Calculation

DESIGN DECISION: One set of formulas feeds the dashboard, the reports and
the PDF export, so the numbers always agree.

Rules:
- income = actual pay + tips (missing or garbage values count as 0)
- tax rate = the gig's own rate if it has one, INCLUDING 0%
- otherwise the user's default rate, otherwise 23%

CRITICAL: A 0% gig rate means "this was cash / under the table".
It must never be replaced by the user's default.

Nothing in this module raises on bad input. Inputs may be pydantic models,
plain objects or dicts with either snake_case or camelCase keys.
"""

import math
import re
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from bookd.models.gig import (
    EarningsSummary,
    GigExpenseBreakdown,
    GigStatus,
    TaxBreakdown,
)


DEFAULT_TAX_PERCENTAGE = 23

# 2025 IRS standard mileage rate, dollars per mile
IRS_MILEAGE_RATE = 0.70

_LEADING_NUMBER_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_MISSING = object()


def parse_amount(value: Any) -> float:
    """
    Leniently parse a money/number value.

    Reads the leading numeric token of a string ("12.50 USD" -> 12.5),
    so "abc", "", None and NaN all become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        result = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER_RE.match(value)
        if not match:
            return 0.0
        try:
            result = float(match.group(1))
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(result) or math.isinf(result):
        return 0.0
    return result


def _read(record: Any, name: str, alias: Optional[str] = None) -> Any:
    """Read a field from a model, object or mapping."""
    if record is None:
        return None
    if isinstance(record, Mapping):
        if name in record:
            return record[name]
        return record.get(alias) if alias else None
    value = getattr(record, name, _MISSING)
    if value is _MISSING and alias:
        value = getattr(record, alias, _MISSING)
    return None if value is _MISSING else value


def _status(gig: Any) -> Optional[str]:
    status = _read(gig, "status")
    return getattr(status, "value", status)


def _gig_date(gig: Any) -> Optional[date]:
    value = _read(gig, "gig_date", "date")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def resolve_tax_rate(
    gig: Any,
    user: Any = None,
    default_rate: float = DEFAULT_TAX_PERCENTAGE,
) -> float:
    """
    Pick the tax rate (percent) for a gig.

    Only a genuinely absent gig rate falls back. The user default is
    used when it is set to a non-zero value.
    """
    gig_rate = _read(gig, "tax_percentage", "taxPercentage")
    if gig_rate is not None:
        return parse_amount(gig_rate)

    user_rate = _read(user, "default_tax_percentage", "defaultTaxPercentage")
    return parse_amount(user_rate) or float(default_rate)


def calculate_gig_tax(
    gig: Any,
    user: Any = None,
    default_rate: float = DEFAULT_TAX_PERCENTAGE,
) -> TaxBreakdown:
    """
    Calculate tax for a single gig using gross income.

    Args:
        gig: Gig model or mapping with actual_pay / tips / tax_percentage
        user: User model or mapping with default_tax_percentage (optional)
        default_rate: Rate used when neither gig nor user has one

    Returns:
        TaxBreakdown with income, tax_rate and tax_amount
    """
    income = (
        parse_amount(_read(gig, "actual_pay", "actualPay"))
        + parse_amount(_read(gig, "tips"))
    )
    tax_rate = resolve_tax_rate(gig, user, default_rate)
    tax_amount = income * (tax_rate / 100)

    gig_id = _read(gig, "id")
    return TaxBreakdown(
        income=income,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        gig_id=gig_id if isinstance(gig_id, int) else None,
        gig_date=_gig_date(gig),
    )


def calculate_total_tax_estimate(
    gigs: Optional[Iterable[Any]],
    user: Any = None,
    default_rate: float = DEFAULT_TAX_PERCENTAGE,
) -> float:
    """Sum of estimated tax across gigs. Empty input gives 0."""
    return sum(
        (calculate_gig_tax(gig, user, default_rate).tax_amount for gig in gigs or []),
        0.0,
    )


def calculate_gig_expenses(
    gig: Any,
    mileage_rate: float = IRS_MILEAGE_RATE,
) -> GigExpenseBreakdown:
    """Parking + other expenses + mileage deduction for one gig."""
    return GigExpenseBreakdown(
        parking_expense=parse_amount(_read(gig, "parking_expense", "parkingExpense")),
        other_expenses=parse_amount(_read(gig, "other_expenses", "otherExpenses")),
        mileage_deduction=parse_amount(_read(gig, "mileage")) * mileage_rate,
    )


def tax_breakdown(
    gigs: Optional[Iterable[Any]],
    user: Any = None,
    default_rate: float = DEFAULT_TAX_PERCENTAGE,
) -> list[TaxBreakdown]:
    """
    Per-gig tax rows for completed gigs that owe something.

    Newest first; gigs without a date sort last.
    """
    rows = [
        calculate_gig_tax(gig, user, default_rate)
        for gig in gigs or []
        if _status(gig) == GigStatus.COMPLETED.value
    ]
    rows = [row for row in rows if row.tax_amount > 0]
    rows.sort(key=lambda row: row.gig_date or date.min, reverse=True)
    return rows


def summarize_earnings(
    gigs: Optional[Iterable[Any]],
    user: Any = None,
    default_rate: float = DEFAULT_TAX_PERCENTAGE,
    mileage_rate: float = IRS_MILEAGE_RATE,
) -> EarningsSummary:
    """
    Dashboard totals.

    Completed gigs count toward actual earnings (actual pay, or expected pay
    when actual is missing, plus tips). Projected earnings add expected pay
    and tips of gigs that haven't completed yet. Tax is estimated on
    completed gigs only.
    """
    gigs = list(gigs or [])
    completed = [g for g in gigs if _status(g) == GigStatus.COMPLETED.value]

    actual_earnings = 0.0
    projected_earnings = 0.0
    total_tips = 0.0
    total_expenses = 0.0

    for gig in gigs:
        tips = parse_amount(_read(gig, "tips"))
        expected = parse_amount(_read(gig, "expected_pay", "expectedPay"))
        actual_raw = _read(gig, "actual_pay", "actualPay")

        if _status(gig) == GigStatus.COMPLETED.value:
            pay = parse_amount(actual_raw) if actual_raw else expected
            actual_earnings += pay + tips
            projected_earnings += pay + tips
            total_tips += tips
        else:
            projected_earnings += expected + tips

        total_expenses += calculate_gig_expenses(gig, mileage_rate).total

    return EarningsSummary(
        actual_earnings=round(actual_earnings, 2),
        projected_earnings=round(projected_earnings, 2),
        total_tips=round(total_tips, 2),
        total_expenses=round(total_expenses, 2),
        estimated_tax=round(
            calculate_total_tax_estimate(completed, user, default_rate), 2
        ),
        completed_gigs=len(completed),
        upcoming_gigs=sum(
            1 for g in gigs if _status(g) == GigStatus.UPCOMING.value
        ),
        total_gigs=len(gigs),
    )
