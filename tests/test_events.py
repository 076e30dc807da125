"""Tests for lifecycle notifications."""

import asyncio

import pytest

from preaching_timer.models.state import TimerPhase
from preaching_timer.timer.events import EventNotifier, TimerEvents


class Recorder:
    def __init__(self):
        self.finished = 0
        self.phases: list[TimerPhase] = []
        self.emergencies: list[int] = []

    def events(self) -> TimerEvents:
        return TimerEvents(
            on_finish=self.on_finish,
            on_phase_change=self.phases.append,
            on_emergency=self.emergencies.append,
        )

    def on_finish(self):
        self.finished += 1


class TestEventNotifier:
    def test_missing_handlers_are_skipped(self):
        notifier = EventNotifier()
        notifier.finished()
        notifier.phase_changed(TimerPhase.MAIN)
        notifier.emergency(30)

    def test_failing_handler_is_contained(self):
        def broken():
            raise RuntimeError("boom")

        EventNotifier(TimerEvents(on_finish=broken)).finished()

    @pytest.mark.asyncio
    async def test_async_handler_runs_in_background(self):
        calls = []

        async def on_phase_change(phase):
            calls.append(phase)

        EventNotifier(TimerEvents(on_phase_change=on_phase_change)).phase_changed(TimerPhase.MAIN)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert calls == [TimerPhase.MAIN]


class TestTimerEvents:
    def test_on_finish_fires_once_per_session(self, make_timer, run_for):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        run_for(timer, 1500)
        assert recorder.finished == 1

    def test_on_finish_fires_once_when_first_tick_is_late(self, make_timer, clock):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        clock.advance(1600)
        timer.tick()
        clock.advance(5)
        timer.tick()
        assert recorder.finished == 1
        assert recorder.phases == [TimerPhase.FINISHED]

    def test_no_phase_event_when_duration_grows(self, make_timer, run_for):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        run_for(timer, 300)
        timer.set_duration(3600)
        run_for(timer, 5)
        assert recorder.phases == [TimerPhase.MAIN]

    def test_on_finish_fires_again_for_next_session(self, make_timer, run_for):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        run_for(timer, 1300)
        timer.stop()
        timer.start()
        run_for(timer, 1200)
        assert recorder.finished == 2

    def test_phase_changes_in_order(self, make_timer, run_for):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        run_for(timer, 1200)
        assert recorder.phases == [TimerPhase.MAIN, TimerPhase.CONCLUSION, TimerPhase.FINISHED]

    def test_skip_reports_phase_changes(self, make_timer):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        timer.skip()
        timer.skip()
        timer.skip()
        assert recorder.phases == [TimerPhase.MAIN, TimerPhase.CONCLUSION, TimerPhase.FINISHED]
        assert recorder.finished == 0

    def test_emergency_fires_once(self, make_timer, run_for):
        recorder = Recorder()
        timer = make_timer(events=recorder.events())
        timer.start()
        run_for(timer, 1199)
        assert recorder.emergencies == [59]

    def test_failing_finish_handler_does_not_break_timer(self, make_timer, run_for):
        def broken():
            raise RuntimeError("boom")

        timer = make_timer(events=TimerEvents(on_finish=broken))
        timer.start()
        run_for(timer, 1210)
        assert timer.snapshot().time_remaining == -10

    def test_phase_alerts_use_phase_colors(self, timer, run_for, alert):
        timer.start()
        run_for(timer, 960)
        assert alert.calls == [(200, 0.8, 3, "#3B82F6"), (200, 0.8, 3, "#10B981")]

    def test_failing_visual_alert_does_not_break_timer(self, make_timer, run_for):
        class BrokenAlert:
            def trigger(self, duration_ms, intensity, repeat_count, color):
                raise RuntimeError("no display")

        timer = make_timer(visual_alert=BrokenAlert())
        timer.start()
        run_for(timer, 1200)
        assert timer.snapshot().is_finished
