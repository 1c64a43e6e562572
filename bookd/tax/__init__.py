"""Tax estimation package."""

from bookd.tax.calculator import (
    DEFAULT_TAX_PERCENTAGE,
    IRS_MILEAGE_RATE,
    calculate_gig_expenses,
    calculate_gig_tax,
    calculate_total_tax_estimate,
    parse_amount,
    resolve_tax_rate,
    summarize_earnings,
    tax_breakdown,
)

__all__ = [
    "DEFAULT_TAX_PERCENTAGE",
    "IRS_MILEAGE_RATE",
    "calculate_gig_expenses",
    "calculate_gig_tax",
    "calculate_total_tax_estimate",
    "parse_amount",
    "resolve_tax_rate",
    "summarize_earnings",
    "tax_breakdown",
]
