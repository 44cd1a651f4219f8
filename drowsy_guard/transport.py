"""
Alert transports.

HttpAlertTransport posts the dispatch payload to the alert server's
/api/alert endpoint. SimulatedAlertTransport answers the same way locally so
the detector can run without a server.
"""

import logging
import math

import requests

from .config import DEFAULT_POLICE_CONTACT, TRANSPORT_TIMEOUT_SECONDS
from .data_structures import TransportResponse
from .exceptions import TransportError

logger = logging.getLogger(__name__)

POLICE_STATIONS = [
    ("City North Police Station", "+91 44 2345 6789"),
    ("Metro East Police Station", "+91 44 9876 5432"),
    ("South Side Precinct", "+91 44 1122 3344"),
    ("West Hub Police Station", "+91 44 5566 7788"),
]
HEADQUARTERS = ("Central Police Headquarters", DEFAULT_POLICE_CONTACT)


def find_nearby_police_station(location):
    """
    Pick a station for the given location.

    Deterministic by coordinates; a real deployment would ask a places service.
    """
    if location is None or not location.latitude:
        return HEADQUARTERS
    index = math.floor((abs(location.latitude) + abs(location.longitude)) * 10) % len(POLICE_STATIONS)
    return POLICE_STATIONS[index]


class HttpAlertTransport:
    """Sends alerts to the alert server over HTTP."""

    def __init__(self, base_url, timeout=TRANSPORT_TIMEOUT_SECONDS, session=None):
        self.url = base_url.rstrip("/") + "/api/alert"
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, record):
        try:
            r = self.session.post(self.url, json=record.to_payload(), timeout=self.timeout)
            r.raise_for_status()
            result = r.json()
        except requests.RequestException as e:
            raise TransportError(f"Network error sending alert: {e}") from e
        except ValueError as e:
            raise TransportError(f"Malformed response from alert server: {e}") from e

        logger.debug("Alert API result %s", result)
        details = result.get("details") or {}
        return TransportResponse(
            success=bool(result.get("success")),
            authority=details.get("policeStation"),
            contacts_count=int(details.get("contactsCount", 0)),
            status=result.get("status", ""),
        )


class SimulatedAlertTransport:
    """Logs the alert instead of sending it, and resolves a police station locally."""

    def __init__(self):
        self.sent = []

    def send(self, record):
        station, station_phone = find_nearby_police_station(record.location)
        police = record.police_contact
        if not police or police == DEFAULT_POLICE_CONTACT:
            police = station_phone

        logger.info("[SIMULATION] --- %s DISPATCHED ---", record.kind.value.upper())
        logger.info("[SIMULATION] Time: %s", record.timestamp)
        logger.info("[SIMULATION] Message: %s", record.message)
        logger.info("[SIMULATION] Notifying Police: %s (%s)", station, police)
        logger.info("[SIMULATION] Notifying Contacts: %s", ", ".join(record.contacts) or "None")

        self.sent.append(record)
        return TransportResponse(
            success=True,
            authority=station,
            contacts_count=len(record.contacts),
            status="Alert successfully dispatched to emergency services",
        )
