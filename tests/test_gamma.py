"""Tests for the GammaController."""
from __future__ import annotations

from bluelightfilter.commands import CommandError
from bluelightfilter.gamma import GammaController
from bluelightfilter.models import GammaPreset

from conftest import FakeRunner


class TestPresets:
    def test_xrandr_values(self):
        assert GammaPreset.NEUTRAL.xrandr_value == "1.0:1.0:1.0"
        assert GammaPreset.NIGHT.xrandr_value == "1.0:0.9:0.8"
        assert GammaPreset.CLOUDY.xrandr_value == "1.0:0.95:0.85"


class TestListDisplays:
    def test_connected_only_sorted(self, runner):
        assert GammaController(runner).list_displays() == ["DP-1", "eDP-1"]

    def test_enumerated_on_every_call(self, runner):
        controller = GammaController(runner)

        controller.list_displays()
        controller.list_displays()

        assert runner.calls.count(("xrandr", "--current")) == 2


class TestApply:
    def test_starts_neutral(self, runner):
        assert GammaController(runner).current is GammaPreset.NEUTRAL

    def test_applies_to_every_display(self, runner):
        controller = GammaController(runner)

        assert controller.apply(GammaPreset.NIGHT) is True

        assert runner.gamma_calls() == [
            ("xrandr", "--output", "DP-1", "--gamma", "1.0:0.9:0.8"),
            ("xrandr", "--output", "eDP-1", "--gamma", "1.0:0.9:0.8"),
        ]
        assert controller.current is GammaPreset.NIGHT

    def test_same_preset_twice_writes_once(self, runner):
        controller = GammaController(runner)

        controller.apply(GammaPreset.NIGHT)
        second = controller.apply(GammaPreset.NIGHT)

        assert second is False
        assert len(runner.gamma_calls()) == 2  # one per display, first call only

    def test_neutral_at_start_is_a_no_op(self, runner):
        assert GammaController(runner).apply(GammaPreset.NEUTRAL) is False
        assert runner.calls == []

    def test_no_displays_leaves_state_unchanged(self, caplog):
        runner = FakeRunner({("xrandr", "--current"): "Screen 0: minimum 8 x 8\n"})
        controller = GammaController(runner)

        assert controller.apply(GammaPreset.CLOUDY) is False

        assert controller.current is GammaPreset.NEUTRAL
        assert "No connected displays found" in caplog.text

    def test_enumeration_failure_leaves_state_unchanged(self, failing_runner):
        controller = GammaController(failing_runner)

        assert controller.apply(GammaPreset.NIGHT) is False
        assert controller.current is GammaPreset.NEUTRAL

    def test_one_display_failing_does_not_stop_others(self, runner, caplog):
        runner.outputs[("xrandr", "--output", "DP-1", "--gamma", "1.0:0.9:0.8")] = CommandError(
            "xrandr exited with 1: BadMatch"
        )
        controller = GammaController(runner)

        assert controller.apply(GammaPreset.NIGHT) is True

        assert ("xrandr", "--output", "eDP-1", "--gamma", "1.0:0.9:0.8") in runner.calls
        assert controller.current is GammaPreset.NIGHT
        assert "Failed to apply gamma to DP-1" in caplog.text

    def test_failed_display_not_retried_until_preset_changes(self, runner):
        runner.outputs[("xrandr", "--output", "DP-1", "--gamma", "1.0:0.9:0.8")] = CommandError("boom")
        controller = GammaController(runner)

        controller.apply(GammaPreset.NIGHT)
        controller.apply(GammaPreset.NIGHT)
        controller.apply(GammaPreset.CLOUDY)

        assert runner.gamma_calls().count(("xrandr", "--output", "DP-1", "--gamma", "1.0:0.9:0.8")) == 1
        assert ("xrandr", "--output", "DP-1", "--gamma", "1.0:0.95:0.85") in runner.calls


class TestReset:
    def test_reset_ignores_tracked_state(self, runner):
        controller = GammaController(runner)
        controller.current = GammaPreset.NEUTRAL

        controller.reset()

        assert runner.gamma_calls() == [
            ("xrandr", "--output", "DP-1", "--gamma", "1.0:1.0:1.0"),
            ("xrandr", "--output", "eDP-1", "--gamma", "1.0:1.0:1.0"),
        ]

    def test_reset_from_cloudy(self, runner):
        controller = GammaController(runner)
        controller.apply(GammaPreset.CLOUDY)
        runner.calls.clear()

        controller.reset()

        assert runner.calls == [
            ("xrandr", "--current"),
            ("xrandr", "--output", "DP-1", "--gamma", "1.0:1.0:1.0"),
            ("xrandr", "--output", "eDP-1", "--gamma", "1.0:1.0:1.0"),
        ]
        assert controller.current is GammaPreset.NEUTRAL

    def test_reset_without_displays(self, failing_runner):
        controller = GammaController(failing_runner)

        controller.reset()

        assert controller.current is GammaPreset.NEUTRAL
