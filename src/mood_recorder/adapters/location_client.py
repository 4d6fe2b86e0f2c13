"""HTTP geolocation client."""

from dataclasses import dataclass

import httpx

from mood_recorder.domain.records import Coordinate
from mood_recorder.services.recorder import LocationProvider


@dataclass
class HttpxLocationProvider(LocationProvider):
    """Looks up an approximate coordinate from an IP geolocation endpoint."""

    url: str
    http_client: httpx.AsyncClient
    timeout: float = 5.0

    @classmethod
    def create(cls, url: str, timeout: float = 5.0) -> "HttpxLocationProvider":
        """Create a provider with a managed httpx session."""
        return cls(url=url, http_client=httpx.AsyncClient(), timeout=timeout)

    async def get_current_coordinate(self) -> Coordinate | None:
        """Return the coordinate reported by the endpoint, if any."""
        response = await self.http_client.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        payload = response.json()
        if payload.get("status", "success") != "success":
            return None
        latitude = payload.get("lat", payload.get("latitude"))
        longitude = payload.get("lon", payload.get("longitude"))
        if not isinstance(latitude, int | float) or not isinstance(
            longitude, int | float
        ):
            return None
        return Coordinate(latitude=float(latitude), longitude=float(longitude))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
