"""
Dive session controller tests against an in-memory gateway.
"""
from datetime import timedelta, timezone

import pytest

from divelog.client.clock import SessionClock
from divelog.client.controller import DIVE_ENDED, DIVE_STARTED, QUICK_ACTIONS, DiveSessionController
from divelog.client.errors import GatewayError, SessionError, ValidationError


class FakeGateway:
    """Records calls; ``fail`` maps a method name to the error it raises."""

    def __init__(self):
        self.calls = []
        self.events = []
        self.dives = {}
        self.fail = {}
        self._ids = 0

    def _next_id(self, prefix):
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def _check(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if name in self.fail:
            raise self.fail[name]

    def ensure_profile(self, user_id):
        self._check("ensure_profile", user_id)
        return {"id": user_id}

    def create_dive(self, job_id, diver_id, supervisor_id=None, started_at=None):
        self._check("create_dive", job_id, diver_id, supervisor_id, started_at=started_at)
        dive = {
            "id": self._next_id("dive"),
            "job_id": job_id,
            "diver_id": diver_id,
            "supervisor_id": supervisor_id,
            "started_at": started_at.isoformat(),
            "status": "in_progress",
        }
        self.dives[dive["id"]] = dive
        return dive

    def insert_event(self, dive_id, event_type, description=None, event_time=None, depth=0):
        self._check("insert_event", dive_id, event_type)
        row = {
            "id": self._next_id("event"),
            "dive_id": dive_id,
            "event_type": event_type,
            "description": description,
            "event_time": event_time,
            "depth": depth,
        }
        self.events.append(row)
        return row

    def update_dive(self, dive_id, **fields):
        self._check("update_dive", dive_id, **fields)
        self.dives[dive_id].update(fields)
        return self.dives[dive_id]

    def find_active_dive(self, supervisor_id=None, job_id=None, diver_id=None):
        self._check("find_active_dive", supervisor_id)
        for dive in self.dives.values():
            if dive["status"] == "in_progress" and dive["supervisor_id"] == supervisor_id:
                return dive
        return None

    def list_events(self, dive_id):
        self._check("list_events", dive_id)
        return sorted((e for e in self.events if e["dive_id"] == dive_id), key=lambda e: e["event_time"])

    def persisted(self, dive_id):
        return [e for e in self.events if e["dive_id"] == dive_id]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def controller(gateway, fake_now):
    ctl = DiveSessionController(gateway, now=fake_now, clock=SessionClock(now=fake_now, interval=60))
    yield ctl
    ctl.close()


def _start(controller):
    return controller.start_session("job-1", "diver-1", "sup-1")


# ── start ─────────────────────────────────────────────────────────────────────


def test_start_session(controller, gateway, fake_now):
    dive = _start(controller)

    assert controller.active
    assert controller.active_dive_id == dive["id"]
    assert controller.start_instant == fake_now()
    assert controller.depth == 0
    assert [e["event_type"] for e in controller.events] == [DIVE_STARTED]
    assert controller.events[0]["description"] == "Commenced dive operation"
    assert [c[0] for c in gateway.calls] == ["ensure_profile", "create_dive", "insert_event"]
    assert gateway.calls[1][2]["started_at"] == fake_now()
    assert controller.clock.running


@pytest.mark.parametrize("job, diver, sup", [("", "d", "s"), ("j", None, "s"), ("j", "d", "")])
def test_start_requires_all_ids(controller, gateway, job, diver, sup):
    with pytest.raises(ValidationError):
        controller.start_session(job, diver, sup)
    assert gateway.calls == []


def test_start_twice_is_rejected(controller):
    _start(controller)
    with pytest.raises(SessionError):
        _start(controller)


def test_failed_dive_insert_leaves_no_session(controller, gateway):
    gateway.fail["create_dive"] = GatewayError(409, "Diver already has a dive in progress on this job")
    with pytest.raises(GatewayError):
        _start(controller)
    assert not controller.active
    assert controller.events == []
    assert not controller.clock.running


def test_failed_profile_provisioning_blocks_start(controller, gateway):
    gateway.fail["ensure_profile"] = GatewayError(403, "Insufficient permissions")
    with pytest.raises(GatewayError):
        _start(controller)
    assert "create_dive" not in [c[0] for c in gateway.calls]


def test_missing_start_marker_keeps_session(controller, gateway):
    gateway.fail["insert_event"] = GatewayError(0, "connection reset")
    _start(controller)
    assert controller.active
    assert controller.events == []


# ── events ────────────────────────────────────────────────────────────────────


def test_log_event_requires_session(controller):
    with pytest.raises(SessionError):
        controller.log_event("Observation")


def test_events_display_newest_first(controller, fake_now):
    _start(controller)
    for label in ("Left Surface", "On Bottom", "Start Work"):
        fake_now.advance(5)
        controller.quick_action(label)
    assert [e["event_type"] for e in controller.events] == [
        "Start Work", "Arrived Worksite", "Leaving the Surface", DIVE_STARTED,
    ]


def test_failed_append_is_not_shown(controller, gateway):
    _start(controller)
    gateway.fail["insert_event"] = GatewayError(500, "boom")
    with pytest.raises(GatewayError):
        controller.log_event("Observation", "Visibility poor")
    assert len(controller.events) == 1


def test_event_uses_current_depth(controller, gateway):
    _start(controller)
    controller.set_depth(18.5)
    controller.log_event("Observation", "Anode wastage")
    assert gateway.events[-1]["depth"] == 18.5


def test_set_depth_clamps_negative(controller):
    assert controller.set_depth(-3) == 0
    assert controller.set_depth("12.5") == 12.5


def test_quick_action_mapping(controller, gateway):
    _start(controller)
    for label, event_type in QUICK_ACTIONS.items():
        controller.quick_action(label, description="note")
        assert gateway.events[-1]["event_type"] == event_type


def test_described_actions_need_text(controller, gateway):
    _start(controller)
    assert controller.quick_action("Incident") is None
    assert controller.quick_action("Observation", "") is None
    assert len(gateway.events) == 1


def test_unknown_quick_action(controller):
    _start(controller)
    with pytest.raises(ValidationError):
        controller.quick_action("Panic")


# ── stop ──────────────────────────────────────────────────────────────────────


def test_stop_without_session_is_noop(controller, gateway):
    assert controller.stop_session() is None
    assert gateway.calls == []


def test_stop_declined(gateway, fake_now):
    prompts = []
    ctl = DiveSessionController(
        gateway, now=fake_now, confirm=lambda msg: prompts.append(msg) or False,
        clock=SessionClock(now=fake_now, interval=60),
    )
    try:
        _start(ctl)
        assert ctl.stop_session() is None
        assert ctl.active
        assert prompts == ["Are you sure you want to end this dive?"]
    finally:
        ctl.close()


@pytest.mark.parametrize("seconds, minutes", [(0, 0), (59, 0), (60, 1), (3599, 59), (5430, 90)])
def test_bottom_time_floors_minutes(controller, gateway, fake_now, seconds, minutes):
    dive = _start(controller)
    fake_now.advance(seconds)
    controller.stop_session()
    assert gateway.dives[dive["id"]]["bottom_time"] == f"{minutes} minutes"


def test_full_dive_scenario(controller, gateway, fake_now):
    start = fake_now()
    dive = _start(controller)

    fake_now.advance(5)
    controller.quick_action("On Bottom")
    controller.set_depth(30)
    fake_now.advance(5)
    controller.quick_action("Start Work")
    fake_now.advance(60)

    stopped_at = fake_now()
    seen = []
    original = controller._clear

    def _clear_spy():
        seen.append(len(controller.events))
        original()

    controller._clear = _clear_spy
    result = controller.stop_session()

    persisted = [(e["event_type"], e["depth"]) for e in gateway.persisted(dive["id"])]
    assert persisted == [
        (DIVE_STARTED, 0),
        ("Arrived Worksite", 0),
        ("Start Work", 30),
        (DIVE_ENDED, 30),
    ]
    assert gateway.events[-1]["event_time"] == start + timedelta(seconds=70)
    assert result["status"] == "completed"
    assert result["ended_at"] == stopped_at
    assert result["bottom_time"] == "1 minutes"
    assert seen == [4]

    assert not controller.active
    assert controller.start_instant is None
    assert controller.depth == 0
    assert controller.events == []
    assert controller.elapsed == 0


def test_next_session_starts_fresh(controller, gateway):
    _start(controller)
    controller.set_depth(40)
    controller.stop_session()

    _start(controller)
    assert controller.depth == 0
    assert len(controller.events) == 1


def test_failed_close_keeps_session(controller, gateway):
    _start(controller)
    gateway.fail["update_dive"] = GatewayError(0, "timeout")
    with pytest.raises(GatewayError):
        controller.stop_session()
    assert controller.active
    assert controller.clock.running


# ── manual completion and entries ─────────────────────────────────────────────


def test_manual_completion_before_start_is_negative(controller, gateway, fake_now):
    dive = _start(controller)
    early = (fake_now() - timedelta(minutes=10)).isoformat()
    controller.complete_session_manually(early)

    assert gateway.dives[dive["id"]]["bottom_time"] == "-10 minutes"
    assert [e["event_type"] for e in gateway.persisted(dive["id"])] == [DIVE_STARTED]
    assert not controller.active


def test_manual_completion_without_session(controller, gateway):
    assert controller.complete_session_manually("2024-03-10T09:00:00Z") is None
    assert gateway.calls == []


def test_manual_entry_backfills_time_today(controller, gateway, fake_now):
    _start(controller)
    controller.log_manual_entry("07:45", 12, "Leaving the Surface", "Missed entry", tz=timezone.utc)
    row = gateway.events[-1]
    assert row["event_time"] == fake_now().replace(hour=7, minute=45, second=0, microsecond=0)
    assert row["depth"] == 12
    assert controller.active


def test_manual_entry_reads_supervisor_wall_clock(controller, gateway, fake_now):
    _start(controller)
    rig_time = timezone(timedelta(hours=-3))
    # 08:00 UTC is 05:00 on the rig
    controller.log_manual_entry("04:50", 6, "Leaving the Surface", tz=rig_time)
    row = gateway.events[-1]
    assert row["event_time"] == fake_now().replace(hour=7, minute=50, second=0, microsecond=0)
    assert row["event_time"].utcoffset() == timedelta(0)


def test_manual_entry_can_close_dive(controller, gateway, fake_now):
    dive = _start(controller)
    controller.log_manual_entry("08:42", 0, "On Surface", close_dive=True, tz=timezone.utc)
    assert gateway.dives[dive["id"]]["status"] == "completed"
    assert gateway.dives[dive["id"]]["bottom_time"] == "42 minutes"
    assert not controller.active


@pytest.mark.parametrize("hhmm, event_type", [("8h30", "On Surface"), ("08:30", "")])
def test_manual_entry_validation(controller, hhmm, event_type):
    _start(controller)
    with pytest.raises(ValidationError):
        controller.log_manual_entry(hhmm, 0, event_type)


# ── resume ────────────────────────────────────────────────────────────────────


def test_resume_rehydrates_from_persisted_dive(controller, gateway, fake_now):
    dive = _start(controller)
    fake_now.advance(30)
    controller.set_depth(22)
    controller.quick_action("On Bottom")
    started = controller.start_instant

    fresh = DiveSessionController(gateway, now=fake_now, clock=SessionClock(now=fake_now, interval=60))
    try:
        fake_now.advance(90)
        assert fresh.resume("sup-1") is True
        assert fresh.active_dive_id == dive["id"]
        assert fresh.start_instant == started
        assert fresh.depth == 22
        assert [e["event_type"] for e in fresh.events] == ["Arrived Worksite", DIVE_STARTED]
        assert fresh.elapsed == 120
    finally:
        fresh.close()


def test_resume_without_open_dive(controller):
    assert controller.resume("sup-9") is False
    assert not controller.active


@pytest.mark.parametrize("supervisor_id", [None, ""])
def test_resume_requires_supervisor(controller, gateway, supervisor_id):
    _start(controller)
    fresh = DiveSessionController(gateway)
    calls_before = len(gateway.calls)
    with pytest.raises(ValidationError):
        fresh.resume(supervisor_id)
    assert not fresh.active
    assert len(gateway.calls) == calls_before
