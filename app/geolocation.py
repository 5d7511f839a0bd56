"""Geolocation collaborator for click events.

No geolocation provider is wired in; the locator answers ``Unknown`` for
every field and only the country ends up on the recorded click.
"""

from pydantic import BaseModel

from app.models import UNKNOWN_LOCATION

__all__ = ["GeoLocation", "UnknownGeolocator"]


class GeoLocation(BaseModel):
    country: str = UNKNOWN_LOCATION
    region: str = UNKNOWN_LOCATION
    city: str = UNKNOWN_LOCATION


class UnknownGeolocator:
    """Locator that never resolves an address."""

    def locate(self, client_ip: str | None = None) -> GeoLocation:
        return GeoLocation()
