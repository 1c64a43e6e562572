"""
Mileage Service

Answers "how far is it from A to B?" for gig mileage logging.

Resolution order:
1. Missing address          -> failure result (the ONLY failure)
2. Cached measurement       -> cached value
3. No Google Maps API key   -> heuristic estimate
4. Google Maps lookup       -> measured value, cached for 24 hours
5. Lookup failed for any reason -> heuristic estimate

CRITICAL: Callers never see an exception. A heuristic estimate is
still reported as success=True; the estimated flag tells the two apart.

Heuristic estimates are NOT cached, so repeated calls for an unmeasured
pair can return different numbers.
"""

import math
from typing import Optional
from uuid import UUID

import structlog

from bookd.audit import AuditLogger
from bookd.config import MileageSettings, get_settings
from bookd.models.mileage import DistanceResult, TripEstimate, TripRequest
from bookd.services.mileage.cache import DistanceCache
from bookd.services.mileage.estimator import HeuristicDistanceEstimator
from bookd.services.mileage.google_maps import GoogleMapsDistanceClient


logger = structlog.get_logger(__name__)

MISSING_ADDRESSES_ERROR = "Missing addresses"


class MileageService:
    """
    Distance estimator with caching and a heuristic fallback.

    All collaborators are injectable. The service owns the cache's
    sweeper task and the HTTP client; start() / stop() manage both.
    """

    def __init__(
        self,
        maps_client: Optional[GoogleMapsDistanceClient] = None,
        cache: Optional[DistanceCache] = None,
        estimator: Optional[HeuristicDistanceEstimator] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[MileageSettings] = None,
    ):
        self._settings = settings if settings is not None else get_settings().mileage
        self._maps_client = (
            maps_client if maps_client is not None else GoogleMapsDistanceClient()
        )
        self._cache = cache if cache is not None else DistanceCache(
            ttl_seconds=self._settings.cache_ttl_seconds,
            max_entries=self._settings.cache_max_entries,
            sweep_interval_seconds=self._settings.cache_sweep_interval_seconds,
            on_sweep=self._on_sweep,
        )
        self._estimator = (
            estimator if estimator is not None else HeuristicDistanceEstimator()
        )
        self._audit_logger = audit_logger

    @property
    def cache(self) -> DistanceCache:
        return self._cache

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the periodic cache sweep."""
        self._cache.start()

    async def stop(self) -> None:
        """Stop the cache sweep and release the HTTP client."""
        await self._cache.stop()
        await self._maps_client.close()

    async def __aenter__(self) -> "MileageService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _on_sweep(self, removed: int, remaining: int) -> None:
        if self._audit_logger and removed:
            await self._audit_logger.log_cache_swept(removed, remaining)

    # -------------------------------------------------------------------------
    # Distance
    # -------------------------------------------------------------------------

    async def calculate_distance(
        self,
        origin: Optional[str],
        destination: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> DistanceResult:
        """
        Distance in miles from origin to destination.

        Returns:
            DistanceResult. success is False only for a missing address.
        """
        if not origin or not destination:
            if self._audit_logger:
                await self._audit_logger.log_distance_rejected(
                    origin=origin,
                    destination=destination,
                    reason=MISSING_ADDRESSES_ERROR,
                    correlation_id=correlation_id,
                )
            return DistanceResult(
                distance=0,
                success=False,
                error=MISSING_ADDRESSES_ERROR,
            )

        cached = self._cache.get(origin, destination)
        if cached is not None:
            if self._audit_logger:
                await self._audit_logger.log_distance_cache_hit(
                    origin=origin,
                    destination=destination,
                    distance=cached.distance,
                    correlation_id=correlation_id,
                )
            return DistanceResult(
                distance=cached.distance,
                success=True,
                from_cache=True,
            )

        if not self._maps_client.has_api_key:
            logger.warning(
                "google_maps_api_key_missing",
                detail="No API key configured for Distance Matrix API, using estimation",
            )
            return await self._estimate(
                origin, destination, reason="no_api_key", correlation_id=correlation_id
            )

        try:
            distance = await self._maps_client.measure(origin, destination)
        except Exception as e:
            logger.error(
                "distance_calculation_error",
                error=str(e),
                error_type=type(e).__name__,
                origin=origin,
                destination=destination,
                has_api_key=self._maps_client.has_api_key,
            )
            if self._audit_logger:
                await self._audit_logger.log_distance_lookup_failed(
                    origin=origin,
                    destination=destination,
                    error_message=str(e),
                    has_api_key=self._maps_client.has_api_key,
                    correlation_id=correlation_id,
                )
            return await self._estimate(
                origin, destination, reason="lookup_failed", correlation_id=correlation_id
            )

        self._cache.set(origin, destination, distance)

        if self._audit_logger:
            await self._audit_logger.log_distance_measured(
                origin=origin,
                destination=destination,
                distance=distance,
                correlation_id=correlation_id,
            )
        return DistanceResult(distance=distance, success=True)

    async def _estimate(
        self,
        origin: str,
        destination: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> DistanceResult:
        distance = self._estimator.estimate(origin, destination)
        if self._audit_logger:
            await self._audit_logger.log_distance_estimated(
                origin=origin,
                destination=destination,
                distance=distance,
                reason=reason,
                correlation_id=correlation_id,
            )
        return DistanceResult(distance=distance, success=True, estimated=True)

    # -------------------------------------------------------------------------
    # Trips
    # -------------------------------------------------------------------------

    async def calculate_trip(
        self,
        request: TripRequest,
        correlation_id: Optional[UUID] = None,
    ) -> TripEstimate:
        """
        Mileage and rough travel time for a trip.

        Round trips double the one-way distance. Travel time assumes
        a flat minutes-per-mile rate.
        """
        result = await self.calculate_distance(
            request.start_address,
            request.end_address,
            correlation_id=correlation_id,
        )

        if not result.success:
            return TripEstimate(
                status="error",
                error=result.error or "Failed to calculate distance",
                round_trip=request.round_trip,
            )

        miles = result.distance * 2 if request.round_trip else result.distance
        return TripEstimate(
            status="success",
            distance_miles=miles,
            travel_time_minutes=math.floor(miles * self._settings.minutes_per_mile + 0.5),
            round_trip=request.round_trip,
            from_cache=result.from_cache,
            estimated=result.estimated,
        )
