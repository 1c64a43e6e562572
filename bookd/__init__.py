"""
Bookd - Source Package

Tax and mileage estimation for gig workers.

DESIGN PRINCIPLES:
1. Never hard-fail the caller - always show some number
2. An explicit 0% tax rate is a user decision, not missing data
3. Estimates are flagged as estimates internally
4. External lookups are cached and retried, never required
"""

__version__ = "1.0.0"
__author__ = "Bookd Team"
