"""
Gig and User Models

These are PARTIAL views of the stored records - only the fields the
tax and expense estimators read. The database layer owns the full rows.

DESIGN DECISION: Money fields stay as the decimal strings the database
hands us. Parsing happens in the calculator, leniently, so a bad value
becomes 0 instead of an exception.

Field aliases accept the camelCase keys used by the API payloads
(e.g. "actualPay", "taxPercentage").
"""

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GigStatus(str, Enum):
    """Lifecycle of a gig."""
    UPCOMING = "upcoming"
    COMPLETED = "completed"
    PENDING_PAYMENT = "pending_payment"


class Gig(BaseModel):
    """
    A single work engagement.

    CRITICAL: tax_percentage=0 is a deliberate choice (cash / under the
    table income). Only None means "not set".
    """
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: Optional[int] = None
    event_name: Optional[str] = Field(default=None, alias="eventName")
    client_name: Optional[str] = Field(default=None, alias="clientName")
    gig_date: Optional[date] = Field(default=None, alias="date")
    status: GigStatus = GigStatus.UPCOMING

    # Pay
    expected_pay: Optional[str] = Field(default=None, alias="expectedPay")
    actual_pay: Optional[str] = Field(default=None, alias="actualPay")
    tips: Optional[str] = None
    tax_percentage: Optional[int] = Field(
        default=None,
        alias="taxPercentage",
        description="Per-gig tax rate in percent (None = use user default)"
    )

    # Expenses
    parking_expense: Optional[str] = Field(default=None, alias="parkingExpense")
    other_expenses: Optional[str] = Field(default=None, alias="otherExpenses")
    mileage: Optional[float] = Field(
        default=None,
        ge=0,
        description="Round-trip miles driven for this gig"
    )

    @field_validator(
        'expected_pay', 'actual_pay', 'tips', 'parking_expense', 'other_expenses',
        mode='before',
    )
    @classmethod
    def numbers_to_str(cls, v: Any) -> Any:
        """Accept plain numbers for money fields."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class User(BaseModel):
    """Partial user view: only the tax fallback matters here."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    default_tax_percentage: Optional[int] = Field(
        default=None,
        alias="defaultTaxPercentage",
        ge=0,
        le=100,
    )


class TaxBreakdown(BaseModel):
    """Owed-tax estimate for one gig."""

    income: float
    tax_rate: float
    tax_amount: float
    gig_id: Optional[int] = None
    gig_date: Optional[date] = None


class GigExpenseBreakdown(BaseModel):
    """Deductible expenses attached to one gig."""

    parking_expense: float = 0.0
    other_expenses: float = 0.0
    mileage_deduction: float = 0.0

    @property
    def total(self) -> float:
        return self.parking_expense + self.other_expenses + self.mileage_deduction


class EarningsSummary(BaseModel):
    """
    Dashboard totals for a collection of gigs.

    All amounts are rounded to cents.
    """

    actual_earnings: float = 0.0
    projected_earnings: float = 0.0
    total_tips: float = 0.0
    total_expenses: float = 0.0
    estimated_tax: float = 0.0
    completed_gigs: int = 0
    upcoming_gigs: int = 0
    total_gigs: int = 0
