"""Mileage services package."""

from bookd.services.mileage.cache import DistanceCache, cache_key
from bookd.services.mileage.estimator import (
    HeuristicDistanceEstimator,
    extract_location,
)
from bookd.services.mileage.google_maps import (
    DistanceLookupError,
    GoogleMapsDistanceClient,
    parse_distance_text,
)
from bookd.services.mileage.service import MileageService

__all__ = [
    "DistanceCache",
    "DistanceLookupError",
    "GoogleMapsDistanceClient",
    "HeuristicDistanceEstimator",
    "MileageService",
    "cache_key",
    "extract_location",
    "parse_distance_text",
]
