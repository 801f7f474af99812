"""Google Maps API integration — travel time and distance.

Uses the Distance Matrix API to calculate traffic-aware travel time between
the caller's position and a task's address.

Each way a lookup can fail raises its own error, so the caller can choose
between a graceful "unavailable" state and a hard error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote_plus

import httpx

from src.core.errors import BadRequest, UpstreamCallFailure, UpstreamParseFailure

logger = logging.getLogger(__name__)

_DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
_TIMEOUT_SECONDS = 10


class DistanceError(BadRequest):
    """Base class for lookups the maps provider could not answer."""


class MissingLocationError(DistanceError):
    """Origin or destination was empty."""


class DistanceStatusError(DistanceError):
    """Top-level Distance Matrix status was not OK."""

    def __init__(self, status: str) -> None:
        super().__init__(status)
        self.status = status


class ElementStatusError(DistanceError):
    """The route element itself was not OK (e.g. NOT_FOUND, ZERO_RESULTS)."""

    def __init__(self, status: str) -> None:
        super().__init__("Could not calculate distance")
        self.status = status


class MapsNotConfigured(UpstreamCallFailure):
    """No maps API key is configured."""

    status_code = 503


@dataclass
class DistanceResult:
    """Result of a successful Distance Matrix API lookup."""

    duration_text: str
    distance_text: str
    in_traffic: bool = False


def directions_url(destination: str) -> str:
    """Google Maps directions link to `destination`."""
    return f"https://www.google.com/maps/dir/?api=1&destination={quote_plus(destination)}"


class GoogleMapsClient:
    """Thin async wrapper over the Distance Matrix endpoint."""

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def get_distance(self, origin: str, destination: str) -> DistanceResult:
        """Calculate travel time between two locations.

        `origin` is usually "lat,long"; `destination` is a free-text address.
        """
        if not origin or not origin.strip() or not destination or not destination.strip():
            raise MissingLocationError("Missing origin or destination")
        if not self._api_key:
            raise MapsNotConfigured("Maps API key not configured")

        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
                resp = await client.get(
                    _DISTANCE_MATRIX_URL,
                    params={
                        "origins": origin,
                        "destinations": destination,
                        "departure_time": "now",
                        "key": self._api_key,
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Distance Matrix API failed for '%s' → '%s': %s",
                origin, destination, exc,
            )
            raise UpstreamCallFailure("Failed to calculate distance") from exc

        if not isinstance(data, dict):
            raise UpstreamParseFailure("Distance Matrix response is not a JSON object")

        status = data.get("status")
        if status != "OK":
            logger.warning("Distance Matrix API status: %s", status)
            raise DistanceStatusError(str(status))

        rows = data.get("rows") or [{}]
        row = rows[0] if isinstance(rows, list) else None
        if not isinstance(row, dict):
            raise UpstreamParseFailure("Distance Matrix response has no rows")
        elements = row.get("elements") or [{}]
        element = elements[0] if isinstance(elements, list) else None
        if not isinstance(element, dict):
            raise UpstreamParseFailure("Distance Matrix row has no elements")
        if element.get("status") != "OK":
            logger.info(
                "Distance Matrix element status: %s for %s → %s",
                element.get("status"), origin, destination,
            )
            raise ElementStatusError(str(element.get("status")))

        traffic = element.get("duration_in_traffic") or {}
        plain = element.get("duration") or {}
        duration_text = traffic.get("text") or plain.get("text")
        distance_text = (element.get("distance") or {}).get("text")
        if not duration_text or not distance_text:
            raise UpstreamParseFailure("Distance Matrix element missing duration or distance")

        return DistanceResult(
            duration_text=duration_text,
            distance_text=distance_text,
            in_traffic=bool(traffic.get("text")),
        )
