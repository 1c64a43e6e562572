"""
Google Maps Distance Matrix Client

Thin async wrapper around:

    GET https://maps.googleapis.com/maps/api/distancematrix/json
        ?units=imperial&origins=...&destinations=...&key=...

The response is trusted only when both the top-level status and
rows[0].elements[0].status are "OK". The distance comes from
rows[0].elements[0].distance.text (e.g. "12.3 mi").

Failures raise DistanceLookupError. Deciding what to do about a failure
(fall back to an estimate) is the mileage service's job, not ours.

DESIGN DECISION: Only transport errors (connection refused, timeouts)
are retried. An HTTP error status or a non-OK API status is an answer,
and asking again won't change it.
"""

import re
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bookd.config import GoogleMapsSettings, get_settings


logger = structlog.get_logger(__name__)

_DISTANCE_NUMBER_RE = re.compile(r"(\d+\.?\d*)")


class DistanceLookupError(Exception):
    """Google Maps could not produce a distance."""

    def __init__(
        self,
        message: str,
        http_status: Optional[int] = None,
        api_status: Optional[str] = None,
        element_status: Optional[str] = None,
        api_error_message: Optional[str] = None,
    ):
        self.http_status = http_status
        self.api_status = api_status
        self.element_status = element_status
        self.api_error_message = api_error_message
        super().__init__(message)


def parse_distance_text(text: Optional[str]) -> float:
    """Leading number of a distance string: "12.3 mi" -> 12.3, "" -> 0."""
    if not text:
        return 0.0
    match = _DISTANCE_NUMBER_RE.search(text)
    return float(match.group(1)) if match else 0.0


def _first_element(data: dict) -> dict:
    rows = data.get("rows") or []
    if not rows or not isinstance(rows[0], dict):
        return {}
    elements = rows[0].get("elements") or []
    if not elements or not isinstance(elements[0], dict):
        return {}
    return elements[0]


class GoogleMapsDistanceClient:
    """
    Client for the Distance Matrix API.

    Args:
        settings: Google Maps settings (defaults to environment)
        http_client: Shared httpx.AsyncClient. If None, one is created
                     lazily and closed by close().
        wait: tenacity wait strategy between transport retries
    """

    def __init__(
        self,
        settings: Optional[GoogleMapsSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        wait: Any = None,
    ):
        self._settings = settings if settings is not None else get_settings().google_maps
        self._client = http_client
        self._owns_client = http_client is None
        self._wait = wait if wait is not None else wait_exponential(
            multiplier=1, min=2, max=10
        )

    @property
    def has_api_key(self) -> bool:
        return self._settings.is_configured

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get(self, params: dict) -> httpx.Response:
        client = self._get_client()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await client.get(self._settings.base_url, params=params)

    async def measure(self, origin: str, destination: str) -> float:
        """
        Measure driving distance in miles between two addresses.

        Raises:
            DistanceLookupError: No API key, HTTP error, or non-OK status
            httpx.TransportError: Network failure after all retries
        """
        if not self.has_api_key:
            raise DistanceLookupError("No Google Maps API key configured")

        params = {
            "units": "imperial",
            "origins": origin,
            "destinations": destination,
            "key": self._settings.api_key,
        }
        response = await self._get(params)

        if not response.is_success:
            logger.error(
                "distance_matrix_http_error",
                status_code=response.status_code,
                reason=response.reason_phrase,
                body=response.text[:500],
            )
            raise DistanceLookupError(
                f"API HTTP request failed: {response.status_code}",
                http_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DistanceLookupError(f"Invalid JSON from Distance Matrix API: {e}")
        if not isinstance(data, dict):
            raise DistanceLookupError("Unexpected Distance Matrix response shape")

        element = _first_element(data)
        api_status = data.get("status")
        element_status = element.get("status")

        if api_status != "OK" or element_status != "OK":
            logger.error(
                "distance_matrix_api_error",
                status=api_status,
                error_message=data.get("error_message"),
                element_status=element_status,
                origin=origin,
                destination=destination,
            )
            raise DistanceLookupError(
                f"Google Maps API error: {api_status}",
                api_status=api_status,
                element_status=element_status,
                api_error_message=data.get("error_message"),
            )

        distance = parse_distance_text((element.get("distance") or {}).get("text"))
        logger.info(
            "distance_matrix_success",
            distance=distance,
            origin=origin,
            destination=destination,
        )
        return distance
