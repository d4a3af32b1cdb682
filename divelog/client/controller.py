"""Live dive session: start, log events, stop.

One controller per logging view. It holds the active dive id, the captured
start instant, the current depth and the events logged in this view (most
recent first), and talks to the service through a gateway.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional

from divelog.client.clock import SessionClock, parse_instant, utc_now
from divelog.client.errors import GatewayError, SessionError, ValidationError

logger = logging.getLogger(__name__)

DIVE_STARTED = "Dive Started"
DIVE_ENDED = "Dive Ended"
COMPLETED = "completed"

# Quick-action button label -> event type written to the log
QUICK_ACTIONS = {
    "Left Surface": "Leaving the Surface",
    "On Bottom": "Arrived Worksite",
    "Start Work": "Start Work",
    "Stop Work": "Stop Work",
    "Left Bottom": "Leaving Worksite",
    "On Surface": "On Surface",
    "Observation": "Observation",
    "Incident": "INCIDENT",
}
# Only logged together with a description
DESCRIBED_ACTIONS = frozenset({"Observation", "Incident"})

STOP_PROMPT = "Are you sure you want to end this dive?"


def whole_minutes(start: datetime, end: datetime) -> int:
    """Floor of the minutes between two instants; negative when ``end`` precedes ``start``."""
    return math.floor((end - start).total_seconds() / 60)


def format_bottom_time(minutes: int) -> str:
    return f"{minutes} minutes"


class DiveSessionController:
    def __init__(
        self,
        gateway,
        now: Callable[[], datetime] = utc_now,
        confirm: Optional[Callable[[str], bool]] = None,
        clock: Optional[SessionClock] = None,
    ):
        self.gateway = gateway
        self._now = now
        self._confirm = confirm or (lambda message: True)
        self.clock = clock or SessionClock(now=now)
        self.active_dive_id: Optional[str] = None
        self.start_instant: Optional[datetime] = None
        self.depth = 0.0
        self.events: list[dict] = []

    @property
    def active(self) -> bool:
        return self.active_dive_id is not None

    @property
    def elapsed(self) -> int:
        return self.clock.elapsed

    # ── lifecycle ─────────────────────────────────────────────────────────────

    def start_session(self, job_id, diver_id, supervisor_id) -> dict:
        if not job_id or not diver_id:
            raise ValidationError("Please select a Job and a Diver")
        if not supervisor_id:
            raise ValidationError("A signed-in supervisor is required to start a dive")
        if self.active:
            raise SessionError(f"Dive {self.active_dive_id} is already in progress")

        started = self._now()
        try:
            self.gateway.ensure_profile(supervisor_id)
            dive = self.gateway.create_dive(job_id, diver_id, supervisor_id, started_at=started)
        except GatewayError:
            logger.exception("Failed to start dive for job %s, diver %s", job_id, diver_id)
            raise

        self.active_dive_id = dive["id"]
        self.start_instant = started
        self.depth = 0.0
        self.events = []
        self.clock.start(started)
        try:
            self.log_event(DIVE_STARTED, "Commenced dive operation")
        except GatewayError:
            # the dive row exists, so the session stays open without its marker
            logger.warning("Dive %s started without a '%s' entry", self.active_dive_id, DIVE_STARTED)
        return dive

    def log_event(
        self,
        event_type: str,
        description: Optional[str] = None,
        time_override=None,
        depth_override: Optional[float] = None,
    ) -> dict:
        if not self.active:
            raise SessionError("No dive in progress")
        event_time = parse_instant(time_override) if time_override is not None else self._now()
        depth = self.depth if depth_override is None else depth_override
        try:
            row = self.gateway.insert_event(
                self.active_dive_id, event_type, description, event_time, depth,
            )
        except GatewayError:
            logger.exception("Error logging %r for dive %s", event_type, self.active_dive_id)
            raise
        self.events.insert(0, row)
        return row

    def set_depth(self, value: float) -> float:
        self.depth = max(0.0, float(value))
        return self.depth

    def stop_session(self) -> Optional[dict]:
        """End the dive. Does nothing without an active session or when the
        confirmation is declined. On failure the session stays active."""
        if not self.active or not self._confirm(STOP_PROMPT):
            return None

        stopped = self._now()
        self.log_event(DIVE_ENDED, "Completed dive operation", time_override=stopped)
        dive = self._close_dive(stopped, whole_minutes(self.start_instant, stopped))
        self._clear()
        return dive

    def complete_session_manually(self, iso_timestamp) -> Optional[dict]:
        """Close the dive at a backfilled time. Appends no marker; the caller
        logs the closing entry first. A time before the start yields a
        negative bottom time, which is stored as given."""
        if not self.active:
            return None
        ended = parse_instant(iso_timestamp)
        dive = self._close_dive(ended, whole_minutes(self.start_instant, ended))
        self._clear()
        return dive

    def resume(self, supervisor_id) -> bool:
        """Pick up the supervisor's in-progress dive after a reload.

        The persisted dive row is the source of truth: the start instant comes
        from it, the event log from its stored events and the depth from the
        latest event."""
        if self.active:
            return True
        if not supervisor_id:
            raise ValidationError("Supervisor is required to resume a dive")
        dive = self.gateway.find_active_dive(supervisor_id=supervisor_id)
        if dive is None:
            return False
        events = self.gateway.list_events(dive["id"])

        self.active_dive_id = dive["id"]
        self.start_instant = parse_instant(dive["started_at"])
        self.events = list(reversed(events))
        self.depth = float(events[-1]["depth"]) if events else 0.0
        self.clock.start(self.start_instant)
        logger.info("Resumed dive %s started at %s", self.active_dive_id, self.start_instant.isoformat())
        return True

    def close(self) -> None:
        self.clock.stop()

    # ── shortcuts used by the logging screen ──────────────────────────────────

    def quick_action(self, label: str, description: Optional[str] = None) -> Optional[dict]:
        if label not in QUICK_ACTIONS:
            raise ValidationError(f"Unknown quick action {label!r}")
        if label in DESCRIBED_ACTIONS and not description:
            return None
        return self.log_event(QUICK_ACTIONS[label], description)

    def log_manual_entry(
        self,
        hhmm: str,
        depth: float,
        event_type: str,
        description: str = "",
        close_dive: bool = False,
        tz: Optional[tzinfo] = None,
    ) -> dict:
        """Backfill a missed entry at ``HH:MM`` today, optionally closing the dive there.

        ``HH:MM`` is wall-clock time in ``tz``, the machine's local zone when
        omitted, on that zone's current date. The stored time is UTC."""
        if not event_type:
            raise ValidationError("Event type is required")
        try:
            hours, minutes = (int(part) for part in hhmm.split(":")[:2])
            local = self._now().astimezone(tz).replace(hour=hours, minute=minutes, second=0, microsecond=0)
        except ValueError:
            raise ValidationError(f"Invalid time {hhmm!r}, expected HH:MM")
        event_time = local.astimezone(timezone.utc)

        event = self.log_event(event_type, description, time_override=event_time,
                               depth_override=max(0.0, float(depth)))
        if close_dive:
            self.complete_session_manually(event_time.isoformat())
        return event

    # ── internals ─────────────────────────────────────────────────────────────

    def _close_dive(self, ended: datetime, minutes: int) -> dict:
        try:
            return self.gateway.update_dive(
                self.active_dive_id,
                ended_at=ended,
                status=COMPLETED,
                bottom_time=format_bottom_time(minutes),
            )
        except GatewayError:
            logger.exception("Failed to close dive %s", self.active_dive_id)
            raise

    def _clear(self) -> None:
        self.clock.stop()
        self.active_dive_id = None
        self.start_instant = None
        self.depth = 0.0
        self.events = []
