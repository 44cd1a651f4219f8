"""
Best-effort geolocation for alert dispatch.

Providers return a GeoLocation or None; they never raise, since a missing
location must not stop an alert from going out.
"""

import logging

import requests

from .config import GEOLOCATION_TIMEOUT_SECONDS, GEOLOCATION_URL
from .data_structures import GeoLocation

logger = logging.getLogger(__name__)


class IpGeolocationProvider:
    """Looks up an approximate position from the public IP address."""

    def __init__(self, url=GEOLOCATION_URL, timeout=GEOLOCATION_TIMEOUT_SECONDS, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def locate(self):
        try:
            r = self.session.get(self.url, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
            lat, lon = (float(v) for v in data["loc"].split(","))
        except (requests.RequestException, ValueError, KeyError, AttributeError) as e:
            logger.warning("Geolocation not available: %s", e)
            return None
        return GeoLocation(latitude=lat, longitude=lon, accuracy=data.get("accuracy"))


class StaticGeolocationProvider:
    """A fixed, operator-configured position."""

    def __init__(self, latitude, longitude, accuracy=None):
        self.location = GeoLocation(latitude=latitude, longitude=longitude, accuracy=accuracy)

    def locate(self):
        return self.location


def parse_location(text):
    """Parse "lat,lon" into a StaticGeolocationProvider (used by the CLI)."""
    lat, lon = (float(part) for part in text.split(","))
    return StaticGeolocationProvider(lat, lon)
