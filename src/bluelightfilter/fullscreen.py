"""Fullscreen detection over whichever X11 introspection tool is installed.

Strategies are ranked; the first one whose executables are all on PATH is
picked once at startup. Every strategy answers the same two questions: how
big is the focused window, and how big is the screen.
"""

import logging
import re
from collections.abc import Sequence

from bluelightfilter.commands import CommandError, Runner, is_installed, run_command

_LOGGER = logging.getLogger(__name__)

_DIMENSIONS_RE = re.compile(r"dimensions:\s+(\d+)x(\d+)")
_ACTIVE_WINDOW_RE = re.compile(r"window id # (0x[0-9a-fA-F]+)")
_DESKTOP_GEOMETRY_RE = re.compile(r"DG:\s+(\d+)x(\d+)")
_FULLSCREEN_HINT = "_NET_WM_STATE_FULLSCREEN"

Size = tuple[int, int]


def _active_window_id_from_xprop(run: Runner) -> str:
    """Focused window id as reported by the window manager (``0x...``)."""
    output = run(["xprop", "-root", "_NET_ACTIVE_WINDOW"])
    match = _ACTIVE_WINDOW_RE.search(output)
    if match is None or int(match.group(1), 16) == 0:
        raise ValueError("No active window")
    return match.group(1)


def _screen_size_from_xdpyinfo(run: Runner) -> Size:
    """Size of the whole X screen; with several monitors this spans all of them."""
    match = _DIMENSIONS_RE.search(run(["xdpyinfo"]))
    if match is None:
        raise ValueError("No screen dimensions in xdpyinfo output")
    return int(match.group(1)), int(match.group(2))


class FullscreenStrategy:
    """One introspection mechanism. Subclasses supply the two size queries."""

    name = "base"
    executables: tuple[str, ...] = ()

    def __init__(self, run: Runner = run_command) -> None:
        self._run = run

    def is_available(self) -> bool:
        return all(is_installed(exe) for exe in self.executables)

    def active_window_size(self) -> Size:
        raise NotImplementedError

    def screen_size(self) -> Size:
        raise NotImplementedError

    def is_fullscreen(self) -> bool:
        window_width, window_height = self.active_window_size()
        screen_width, screen_height = self.screen_size()
        return window_width >= screen_width and window_height >= screen_height


class XdotoolStrategy(FullscreenStrategy):
    name = "xdotool"
    executables = ("xdotool", "xdpyinfo")

    def active_window_size(self) -> Size:
        window_id = self._run(["xdotool", "getactivewindow"]).strip()
        if not window_id:
            raise ValueError("No active window")
        output = self._run(["xdotool", "getwindowgeometry", "--shell", window_id])
        fields = dict(
            line.split("=", 1) for line in output.splitlines() if "=" in line
        )
        return int(fields["WIDTH"]), int(fields["HEIGHT"])

    def screen_size(self) -> Size:
        return _screen_size_from_xdpyinfo(self._run)


class WmctrlStrategy(FullscreenStrategy):
    """Best effort: the window manager's fullscreen hint, then its own geometry.

    A window carrying ``_NET_WM_STATE_FULLSCREEN`` counts as fullscreen.
    Otherwise the frame geometry from ``wmctrl -l -G`` is compared with the
    current desktop. Not every window manager sets the hint or reports the
    frame the same way, so this can miss fullscreen windows on some of them.
    """

    name = "wmctrl"
    executables = ("wmctrl", "xprop")

    def has_fullscreen_hint(self) -> bool:
        window_id = _active_window_id_from_xprop(self._run)
        output = self._run(["xprop", "-id", window_id, "_NET_WM_STATE"])
        return _FULLSCREEN_HINT in output

    def is_fullscreen(self) -> bool:
        if self.has_fullscreen_hint():
            return True
        return super().is_fullscreen()

    def active_window_size(self) -> Size:
        active_id = int(_active_window_id_from_xprop(self._run), 16)
        # <id> <desktop> <x> <y> <width> <height> <host> <title...>
        for line in self._run(["wmctrl", "-l", "-G"]).splitlines():
            parts = line.split()
            if len(parts) >= 6 and int(parts[0], 16) == active_id:
                return int(parts[4]), int(parts[5])
        raise ValueError("Active window not listed by wmctrl")

    def screen_size(self) -> Size:
        for line in self._run(["wmctrl", "-d"]).splitlines():
            parts = line.split()
            if len(parts) > 1 and parts[1] == "*":
                match = _DESKTOP_GEOMETRY_RE.search(line)
                if match is not None:
                    return int(match.group(1)), int(match.group(2))
        raise ValueError("No current desktop geometry in wmctrl output")


class XwininfoStrategy(FullscreenStrategy):
    name = "xwininfo"
    executables = ("xwininfo", "xprop", "xdpyinfo")

    def active_window_size(self) -> Size:
        window_id = _active_window_id_from_xprop(self._run)
        output = self._run(["xwininfo", "-id", window_id])
        width = re.search(r"^\s*Width:\s+(\d+)", output, re.MULTILINE)
        height = re.search(r"^\s*Height:\s+(\d+)", output, re.MULTILINE)
        if width is None or height is None:
            raise ValueError("No geometry in xwininfo output")
        return int(width.group(1)), int(height.group(1))

    def screen_size(self) -> Size:
        return _screen_size_from_xdpyinfo(self._run)


DEFAULT_STRATEGIES: tuple[type[FullscreenStrategy], ...] = (
    XdotoolStrategy,
    WmctrlStrategy,
    XwininfoStrategy,
)


def select_strategy(
    strategies: Sequence[type[FullscreenStrategy]] = DEFAULT_STRATEGIES,
    run: Runner = run_command,
) -> FullscreenStrategy | None:
    """Return the first available strategy, in preference order, or None."""
    for strategy_cls in strategies:
        strategy = strategy_cls(run)
        if strategy.is_available():
            _LOGGER.info("Fullscreen detection via %s", strategy.name)
            return strategy
    _LOGGER.warning(
        "No fullscreen detection tool available (%s)",
        ", ".join(cls.name for cls in strategies),
    )
    return None


class FullscreenDetector:
    """Report whether the focused window covers the screen. Fails open."""

    def __init__(
        self, strategy: FullscreenStrategy | None, enabled: bool = True
    ) -> None:
        self.strategy = strategy
        self.enabled = enabled

    def is_fullscreen(self) -> bool:
        if not self.enabled or self.strategy is None:
            return False
        try:
            return self.strategy.is_fullscreen()
        except (CommandError, KeyError, ValueError) as err:
            _LOGGER.debug("Fullscreen check via %s failed: %s", self.strategy.name, err)
            return False
