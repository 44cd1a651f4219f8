"""
Alert Dispatcher Module
Sends remote alerts (contacts + police) when the alert engine activates

- One outbound alert per cooldown window (2 minutes, shared by all alert kinds)
- Location is best-effort: a failed lookup still sends the alert
- Delivery runs in the background; results come back through poll()
"""

import logging
import queue
import re
import threading
import time
from datetime import datetime, timezone

from .config import (
    DEFAULT_POLICE_CONTACT,
    DISPATCH_COOLDOWN_MS,
    DISPATCH_SHARED_COOLDOWN,
    GEOLOCATION_TIMEOUT_SECONDS,
    UNKNOWN_LOCATION,
)
from .data_structures import (
    AlertKind,
    DispatchOutcome,
    DispatchRecord,
    DispatchStatus,
)
from .exceptions import TransportError

logger = logging.getLogger(__name__)

ALERT_MESSAGES = {
    AlertKind.FAINT: (
        "CRITICAL FAINT ALERT: Driver appears to have fainted or lost consciousness. "
        "Immediate emergency response required."
    ),
    AlertKind.DROWSINESS: (
        "DROWSINESS ALERT: Driver is showing signs of extreme fatigue "
        "or eyes remain closed for too long."
    ),
}

_CONTACT_SEPARATORS = re.compile(r"[,;\n]+")


def parse_contacts(text):
    """Split a comma/semicolon/newline separated contact string, dropping blanks."""
    if not text:
        return []
    return [c.strip() for c in _CONTACT_SEPARATORS.split(text) if c.strip()]


def build_message(kind, location_text):
    return f"{ALERT_MESSAGES[kind]} Location: {location_text}."


def _monotonic_ms():
    return time.monotonic() * 1000.0


def _run_in_thread(fn):
    threading.Thread(target=fn, daemon=True).start()


class AlertDispatcher:
    """
    Builds and submits alert payloads, enforcing the dispatch cooldown.

    The cooldown timestamp is only written by poll(), which the detection
    loop calls once per tick; background workers just post outcomes.
    """

    def __init__(self, settings, transport, geolocation=None,
                 cooldown_ms=DISPATCH_COOLDOWN_MS,
                 shared_cooldown=DISPATCH_SHARED_COOLDOWN,
                 clock=_monotonic_ms, run_async=_run_in_thread,
                 geolocation_timeout=GEOLOCATION_TIMEOUT_SECONDS):
        self.settings = settings
        self.transport = transport
        self.geolocation = geolocation
        self.geolocation_timeout = geolocation_timeout
        self.cooldown_ms = cooldown_ms
        self.shared_cooldown = shared_cooldown
        self.clock = clock
        self.run_async = run_async

        self._last_sent_ms = {}
        self._outcomes = queue.Queue()

        # Operator-facing status of the most recent attempt
        self.status = None
        self.last_alert_time = None
        self.sent_count = 0

    def _cooldown_key(self, kind):
        return None if self.shared_cooldown else kind

    def in_cooldown(self, kind, now=None):
        now = self.clock() if now is None else now
        last = self._last_sent_ms.get(self._cooldown_key(kind))
        return last is not None and (now - last) < self.cooldown_ms

    def dispatch(self, kind, metadata=None):
        """
        Start a dispatch for `kind`.

        Returns a SENDING outcome when the attempt was started, or a SUPPRESSED
        outcome (with no transport call) during cooldown. Only a confirmed
        send starts the cooldown, so an attempt still in flight blocks nothing.
        """
        now = self.clock()
        key = self._cooldown_key(kind)
        if self.in_cooldown(kind, now):
            logger.info("[DISPATCH] %s alert recently sent; skipping duplicate", kind.value)
            return DispatchOutcome(kind, DispatchStatus.SUPPRESSED,
                                   "Alert recently sent", attempted_at_ms=now)

        record = DispatchRecord(
            kind=kind,
            contacts=parse_contacts(self.settings.emergency_contacts),
            police_contact=self.settings.police_contact or DEFAULT_POLICE_CONTACT,
            message=ALERT_MESSAGES[kind],
            timestamp=datetime.now(timezone.utc).isoformat(),
            metadata=dict(metadata or {}),
        )
        outcome = DispatchOutcome(kind, DispatchStatus.SENDING,
                                  f"Dispatching {kind.value} Alert...", attempted_at_ms=now)
        self.status = outcome
        self.run_async(lambda: self._deliver(record, now, key))
        return outcome

    def _locate(self):
        """
        Look up the vehicle position, giving up after geolocation_timeout.

        The provider runs on its own daemon thread so a hung lookup cannot
        hold the alert back; its late result is discarded.
        """
        if self.geolocation is None:
            return None
        found = []
        lookup = threading.Thread(target=lambda: found.append(self.geolocation.locate()),
                                  daemon=True)
        lookup.start()
        lookup.join(self.geolocation_timeout)
        if lookup.is_alive():
            logger.warning("Geolocation timed out after %.1fs; sending without location",
                           self.geolocation_timeout)
            return None
        return found[0] if found else None

    def _deliver(self, record, attempted_at, key):
        """Worker body: locate, finish the message, send, post the outcome."""
        kind = record.kind
        try:
            location = self._locate()
            record.location = location
            location_text = location.describe() if location is not None else UNKNOWN_LOCATION
            record.message = build_message(kind, location_text)

            response = self.transport.send(record)
            if response.success:
                outcome = DispatchOutcome(
                    kind, DispatchStatus.SENT,
                    f"{kind.value} Alert sent! Notified {response.authority}.",
                    attempted_at_ms=attempted_at,
                    authority=response.authority,
                    contacts_count=response.contacts_count,
                )
            else:
                outcome = DispatchOutcome(kind, DispatchStatus.ERROR,
                                          "Failed to dispatch alert.", attempted_at_ms=attempted_at)
        except TransportError as e:
            logger.error("Failed to send alert: %s", e)
            outcome = DispatchOutcome(kind, DispatchStatus.ERROR,
                                      "Network error sending alert.", attempted_at_ms=attempted_at)
        except Exception:
            logger.exception("Unexpected error while dispatching %s alert", kind.value)
            outcome = DispatchOutcome(kind, DispatchStatus.ERROR,
                                      "Failed to dispatch alert.", attempted_at_ms=attempted_at)

        self._outcomes.put((key, outcome))

    def poll(self):
        """
        Apply finished dispatches. Call from the detection loop.

        Returns:
            List of DispatchOutcome completed since the last poll
        """
        completed = []
        while True:
            try:
                key, outcome = self._outcomes.get_nowait()
            except queue.Empty:
                break
            if outcome.status is DispatchStatus.SENT:
                last = self._last_sent_ms.get(key)
                if last is None or outcome.attempted_at_ms > last:
                    self._last_sent_ms[key] = outcome.attempted_at_ms
                self.sent_count += 1
                self.last_alert_time = datetime.now().strftime("%H:%M:%S")
                logger.info("[DISPATCH] %s (%d contacts)", outcome.details, outcome.contacts_count)
            else:
                logger.warning("[DISPATCH] %s", outcome.details)
            self.status = outcome
            completed.append(outcome)
        return completed
