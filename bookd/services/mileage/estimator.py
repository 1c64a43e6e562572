"""
Heuristic Distance Estimation

Used whenever a real Google Maps measurement is unavailable: no API key,
HTTP error, bad API status, or any other failure.

This is a GUESS, not a measurement. It exists so the user always sees
some mileage number. Buckets:

    identical address           -> 0
    same city                   -> 2..12 miles
    same state, different city  -> 20..100 miles
    anything else               -> 50..350 miles

City and state come from naive comma splitting, from the right:
"123 Main St, Austin, TX" -> city "austin", state "tx".

The random source is injectable so tests can pin it.
"""

import random
from typing import Callable, NamedTuple


class AddressLocation(NamedTuple):
    city: str
    state: str
    full: str


def extract_location(address: str) -> AddressLocation:
    """Split an (already lowercased) address into city and state tokens."""
    parts = [part.strip() for part in address.split(",")]
    return AddressLocation(
        city=parts[-2] if len(parts) > 1 else parts[0],
        state=parts[-1] if len(parts) > 2 else "",
        full=address,
    )


class HeuristicDistanceEstimator:
    """
    Pattern-based distance guesser.

    Args:
        random_source: Callable returning a float in [0, 1)
    """

    def __init__(self, random_source: Callable[[], float] = random.random):
        self._random = random_source

    def estimate(self, origin: str, destination: str) -> float:
        origin_lower = origin.lower()
        dest_lower = destination.lower()

        if origin_lower == dest_lower:
            return 0.0

        origin_loc = extract_location(origin_lower)
        dest_loc = extract_location(dest_lower)

        if origin_loc.city == dest_loc.city:
            return self._random() * 10 + 2

        if origin_loc.state and origin_loc.state == dest_loc.state:
            return self._random() * 80 + 20

        return self._random() * 300 + 50
