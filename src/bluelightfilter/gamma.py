"""Apply gamma presets to every connected display through xrandr."""

import logging
import re

from bluelightfilter.commands import CommandError, Runner, run_command
from bluelightfilter.models import GammaPreset

_LOGGER = logging.getLogger(__name__)

_CONNECTED_RE = re.compile(r"^(\S+)\s+connected", re.MULTILINE)


class GammaController:
    """Owns the applied preset and skips writes that would not change it.

    Displays are enumerated on every call since outputs can be hot-plugged.
    """

    def __init__(self, run: Runner = run_command) -> None:
        self._run = run
        self.current = GammaPreset.NEUTRAL

    def list_displays(self) -> list[str]:
        """Names of the connected outputs, e.g. ``["DP-1", "eDP-1"]``."""
        output = self._run(["xrandr", "--current"])
        return sorted(set(_CONNECTED_RE.findall(output)))

    def _set_gamma(self, display: str, preset: GammaPreset) -> bool:
        try:
            self._run(["xrandr", "--output", display, "--gamma", preset.xrandr_value])
        except CommandError as err:
            _LOGGER.error("Failed to apply gamma to %s: %s", display, err)
            return False
        return True

    def apply(self, preset: GammaPreset) -> bool:
        """Apply ``preset`` to all displays unless it is already the current one.

        A failure on one display does not stop the others, and the preset is
        recorded as current afterwards either way; that display is only
        retried on the next preset change.

        Returns:
            True when displays were written to.
        """
        if preset == self.current:
            _LOGGER.debug("Gamma unchanged: %s", preset.xrandr_value)
            return False

        try:
            displays = self.list_displays()
        except CommandError as err:
            _LOGGER.error("Cannot enumerate displays: %s", err)
            return False
        if not displays:
            _LOGGER.error("No connected displays found")
            return False

        for display in displays:
            if self._set_gamma(display, preset):
                _LOGGER.info("Applied gamma %s to %s", preset.xrandr_value, display)
        self.current = preset
        return True

    def reset(self) -> None:
        """Set every display back to neutral, whatever the tracked state says."""
        try:
            displays = self.list_displays()
        except CommandError as err:
            _LOGGER.error("Cannot enumerate displays for reset: %s", err)
            displays = []
        for display in displays:
            if self._set_gamma(display, GammaPreset.NEUTRAL):
                _LOGGER.info(
                    "Reset gamma to %s on %s", GammaPreset.NEUTRAL.xrandr_value, display
                )
        self.current = GammaPreset.NEUTRAL
