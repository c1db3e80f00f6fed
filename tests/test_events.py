"""Tests for event and logsheet recording."""

from demin_sim.recording.events import (
    EventKind,
    LogsheetAction,
    Severity,
    TickRecorder,
    format_clock_time,
)


class TestClockTime:
    def test_morning_shift(self):
        assert format_clock_time(0, 6) == "06:00"
        assert format_clock_time(95, 6) == "07:35"

    def test_night_shift_wraps_midnight(self):
        assert format_clock_time(119, 22) == "23:59"
        assert format_clock_time(120, 22) == "00:00"
        assert format_clock_time(480, 22) == "06:00"


class TestTickRecorder:
    def test_event_stamped_with_tick(self):
        recorder = TickRecorder(42, shift_start_hour=14)
        event = recorder.event(EventKind.EXHAUSTION, "SBA-A", "exhausted", Severity.WARNING, True)
        assert recorder.events == [event]
        assert event.timestamp == 42
        assert event.to_dict() == {
            "timestamp": 42,
            "type": "EXHAUSTION",
            "message": "exhausted",
            "equipmentId": "SBA-A",
            "severity": "warning",
            "forced": True,
        }

    def test_logsheet_entry_carries_clock_and_levels(self):
        recorder = TickRecorder(42, shift_start_hour=14)
        entry = recorder.log(
            LogsheetAction.TRANSFER_STARTED, "DMT-C", "why", "what", 0.7, 0.5
        )
        assert entry.actual_time == "14:42"
        assert entry.to_dict()["dgLevel"] == 0.7
        assert entry.to_dict()["action"] == "TRANSFER_STARTED"

    def test_events_default_to_info_and_discretionary(self):
        event = TickRecorder(1).event(EventKind.STATUS_CHANGE, "SAC-D", "moved")
        assert event.severity is Severity.INFO
        assert not event.forced
