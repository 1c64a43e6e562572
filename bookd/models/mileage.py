"""
Mileage Models

DistanceResult is the contract every caller of the mileage service sees:
distance, success, and an optional error. Two extra fields ride along:

- estimated: True when the number came from the heuristic fallback
  rather than a real measurement. success stays True in that case.
- from_cache: True when the number was served from the distance cache.
"""

import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


ADDRESS_MIN_LENGTH = 5
ADDRESS_MAX_LENGTH = 500

_TAG_RE = re.compile(r"<[^>]*>")
_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9\s\-,.'#&]")
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_address(value: Any) -> str:
    """
    Clean a user-entered address.

    Strips HTML tags, keeps alphanumerics, whitespace and common address
    punctuation, collapses whitespace, caps at 500 characters.
    Non-string input becomes an empty string.
    """
    if not isinstance(value, str):
        return ""
    cleaned = _TAG_RE.sub("", value.strip())
    cleaned = _DISALLOWED_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:ADDRESS_MAX_LENGTH]


class DistanceResult(BaseModel):
    """Result of a single origin -> destination distance calculation."""

    distance: float = Field(
        default=0.0,
        ge=0,
        description="Distance in miles"
    )
    success: bool
    error: Optional[str] = None
    estimated: bool = Field(
        default=False,
        description="Heuristic estimate, not a measured distance"
    )
    from_cache: bool = False


class CacheEntry(BaseModel):
    """A cached distance with an absolute expiry (epoch seconds)."""

    distance: float
    expires: float
    hits: int = 0
    last_access: float = 0.0


class TripRequest(BaseModel):
    """
    A request to estimate the mileage of a trip.

    Addresses are sanitized before length validation, so markup
    and stray symbols don't count toward the minimum.
    """

    start_address: str
    end_address: str
    round_trip: bool = False

    @field_validator('start_address', 'end_address', mode='before')
    @classmethod
    def clean_address(cls, v: Any) -> str:
        return sanitize_address(v)

    @field_validator('start_address', 'end_address')
    @classmethod
    def validate_length(cls, v: str) -> str:
        if len(v) < ADDRESS_MIN_LENGTH:
            raise ValueError(
                f"Address must be at least {ADDRESS_MIN_LENGTH} characters"
            )
        return v


class TripEstimate(BaseModel):
    """Mileage and travel time for a trip, as shown to the user."""

    status: Literal["success", "error"]
    distance_miles: float = 0.0
    travel_time_minutes: int = 0
    round_trip: bool = False
    from_cache: bool = False
    estimated: bool = False
    error: Optional[str] = None
