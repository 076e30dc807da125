"""Tests for progress and display projections."""

import pytest

from preaching_timer.models.state import TimerPhase, TimerState, TimerStatus
from preaching_timer.timer.projections import (
    display_color,
    format_time,
    is_emergency,
    phase_progress,
    total_progress,
)


def idle_state(**overrides) -> TimerState:
    fields = dict(
        total_duration=1200,
        time_remaining=1200,
        introduction_duration=240,
        main_duration=720,
        conclusion_duration=240,
    )
    fields.update(overrides)
    return TimerState(**fields)


class TestFormatTime:
    @pytest.mark.parametrize(
        "seconds, text",
        [(1200, "20:00"), (65, "01:05"), (0, "00:00"), (-1, "-00:01"), (-300, "-05:00")],
    )
    def test_format(self, seconds, text):
        assert format_time(seconds) == text


class TestProgress:
    def test_scenario_e(self, timer, clock):
        timer.start()
        clock.advance(60)
        # No tick needed: progress is computed at read time
        progress = timer.progress()
        assert progress.total_progress == pytest.approx(0.05)
        assert progress.phase_progress == pytest.approx(0.25)
        assert progress.time_elapsed == 60

    def test_idle_progress_is_zero(self, timer):
        progress = timer.progress()
        assert progress.total_progress == 0
        assert progress.phase_progress == 0

    def test_total_progress_is_clamped(self):
        assert total_progress(idle_state(), 5000) == 1.0

    def test_main_phase_progress(self):
        state = idle_state(current_phase=TimerPhase.MAIN)
        assert phase_progress(state, 600) == pytest.approx(0.5)

    def test_conclusion_phase_progress(self):
        state = idle_state(current_phase=TimerPhase.CONCLUSION)
        assert phase_progress(state, 1080) == pytest.approx(0.5)

    def test_finished_phase_progress(self):
        state = idle_state(current_phase=TimerPhase.FINISHED)
        assert phase_progress(state, 1300) == 0.0

    def test_progress_frozen_while_paused(self, timer, clock):
        timer.start()
        clock.advance(120)
        timer.pause()
        clock.advance(600)
        assert timer.progress().time_elapsed == 120


class TestDisplay:
    def test_phase_colors(self):
        assert display_color(idle_state()) == "#FCD34D"
        assert display_color(idle_state(current_phase=TimerPhase.MAIN)) == "#3B82F6"
        assert display_color(idle_state(current_phase=TimerPhase.CONCLUSION)) == "#10B981"

    def test_overtime_color(self):
        state = idle_state(
            status=TimerStatus.FINISHED,
            current_phase=TimerPhase.FINISHED,
            time_remaining=-10,
        )
        assert display_color(state) == "#EF4444"

    def test_emergency_in_last_minute(self):
        assert is_emergency(idle_state(time_remaining=59, is_running=True))
        assert not is_emergency(idle_state(time_remaining=60, is_running=True))
        assert not is_emergency(idle_state(time_remaining=30, is_running=False))

    def test_emergency_through_overtime(self, timer, run_for):
        timer.start()
        run_for(timer, 1250)
        assert timer.visual_state().is_emergency
        run_for(timer, 250)
        assert not timer.visual_state().is_emergency

    def test_visual_state(self, timer, run_for):
        timer.start()
        run_for(timer, 1230)
        visual = timer.visual_state()
        assert visual.display_time == "-00:30"
        assert visual.display_color == "#EF4444"
        assert visual.phase_label == "finished"
