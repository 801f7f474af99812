"""Tests for src.integrations.google_maps — Distance Matrix lookups."""

import httpx
import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from src.core.errors import UpstreamCallFailure, UpstreamParseFailure
from src.integrations.google_maps import (
    DistanceStatusError,
    ElementStatusError,
    GoogleMapsClient,
    MapsNotConfigured,
    MissingLocationError,
    directions_url,
)


def _mock_client(payload=None, side_effect=None):
    mock_resp = MagicMock()
    mock_resp.json.return_value = payload
    mock_resp.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    if side_effect is not None:
        mock_client.get = AsyncMock(side_effect=side_effect)
    else:
        mock_client.get = AsyncMock(return_value=mock_resp)
    return mock_client


def _element(**overrides):
    element = {
        "status": "OK",
        "distance": {"text": "5.2 km"},
        "duration": {"text": "14 mins"},
    }
    element.update(overrides)
    return {"status": "OK", "rows": [{"elements": [element]}]}


class TestGetDistance:
    @pytest.mark.asyncio
    async def test_successful_lookup(self):
        """Plain duration is used when no traffic estimate is present."""
        mock_client = _mock_client(_element())
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            result = await GoogleMapsClient("fake-key").get_distance("32.08,34.78", "Jaffa Port")

        assert result.duration_text == "14 mins"
        assert result.distance_text == "5.2 km"
        assert result.in_traffic is False

    @pytest.mark.asyncio
    async def test_traffic_duration_preferred(self):
        payload = _element(duration_in_traffic={"text": "22 mins"})
        mock_client = _mock_client(payload)
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            result = await GoogleMapsClient("fake-key").get_distance("32.08,34.78", "Jaffa Port")

        assert result.duration_text == "22 mins"
        assert result.in_traffic is True

    @pytest.mark.asyncio
    async def test_sends_departure_time_now(self):
        mock_client = _mock_client(_element())
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            await GoogleMapsClient("my-api-key").get_distance("1,2", "Somewhere")

        params = mock_client.get.call_args.kwargs["params"]
        assert params["departure_time"] == "now"
        assert params["origins"] == "1,2"
        assert params["destinations"] == "Somewhere"
        assert params["key"] == "my-api-key"

    @pytest.mark.asyncio
    async def test_missing_origin(self):
        with pytest.raises(MissingLocationError):
            await GoogleMapsClient("fake-key").get_distance("", "Jaffa Port")

    @pytest.mark.asyncio
    async def test_missing_destination(self):
        with pytest.raises(MissingLocationError):
            await GoogleMapsClient("fake-key").get_distance("1,2", "  ")

    @pytest.mark.asyncio
    async def test_no_api_key(self):
        client = GoogleMapsClient("")
        assert client.configured is False
        with pytest.raises(MapsNotConfigured) as exc_info:
            await client.get_distance("1,2", "Jaffa Port")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_top_level_status(self):
        mock_client = _mock_client({"status": "REQUEST_DENIED", "rows": []})
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(DistanceStatusError) as exc_info:
                await GoogleMapsClient("fake-key").get_distance("1,2", "Jaffa Port")
        assert exc_info.value.status == "REQUEST_DENIED"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_element_status(self):
        mock_client = _mock_client(_element(status="ZERO_RESULTS"))
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ElementStatusError) as exc_info:
                await GoogleMapsClient("fake-key").get_distance("1,2", "Atlantis")
        assert exc_info.value.message == "Could not calculate distance"

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        mock_client = _mock_client(side_effect=httpx.ConnectTimeout("timed out"))
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(UpstreamCallFailure):
                await GoogleMapsClient("fake-key").get_distance("1,2", "Jaffa Port")

    @pytest.mark.asyncio
    async def test_element_without_distance(self):
        payload = {"status": "OK", "rows": [{"elements": [{"status": "OK", "duration": {"text": "3 mins"}}]}]}
        mock_client = _mock_client(payload)
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(UpstreamParseFailure):
                await GoogleMapsClient("fake-key").get_distance("1,2", "Jaffa Port")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        ["not", "an", "object"],
        {"status": "OK", "rows": ["bad row"]},
        {"status": "OK", "rows": [{"elements": ["bad element"]}]},
    ])
    async def test_malformed_body(self, payload):
        mock_client = _mock_client(payload)
        with patch("src.integrations.google_maps.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(UpstreamParseFailure):
                await GoogleMapsClient("fake-key").get_distance("1,2", "Jaffa Port")


class TestDirectionsUrl:
    def test_destination_is_encoded(self):
        url = directions_url("12 Herzl St, Tel Aviv")
        assert url.startswith("https://www.google.com/maps/dir/?api=1&destination=")
        assert "12+Herzl+St%2C+Tel+Aviv" in url
