"""Thin subprocess layer for the X11 tools (xrandr, xdotool, wmctrl, xwininfo)."""

import logging
import shutil
import subprocess
from collections.abc import Callable, Sequence

_LOGGER = logging.getLogger(__name__)

COMMAND_TIMEOUT_SECONDS = 5

Runner = Callable[[Sequence[str]], str]


class CommandError(Exception):
    """External tool missing, timed out, or exited non-zero."""


def run_command(args: Sequence[str]) -> str:
    """Run an external tool and return its stdout.

    Args:
        args: Command and arguments, e.g. ``["xrandr", "--current"]``.

    Returns:
        Captured standard output as text.

    Raises:
        CommandError: When the executable is missing, times out, or fails.
    """
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=COMMAND_TIMEOUT_SECONDS,
            check=False,
        )
    except FileNotFoundError as err:
        raise CommandError(f"{args[0]} not found in PATH") from err
    except subprocess.TimeoutExpired as err:
        raise CommandError(f"{args[0]} timed out") from err

    if result.returncode != 0:
        raise CommandError(
            f"{' '.join(args)} exited with {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout


def is_installed(executable: str) -> bool:
    return shutil.which(executable) is not None


def missing_tools(executables: Sequence[str]) -> list[str]:
    """Return the executables from ``executables`` that are not on PATH."""
    missing = [name for name in executables if not is_installed(name)]
    if missing:
        _LOGGER.debug("Missing tools: %s", ", ".join(missing))
    return missing
