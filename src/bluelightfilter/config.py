"""Runtime configuration: .env file and environment defaults, CLI flags on top."""

import argparse
import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv

from bluelightfilter.commands import missing_tools
from bluelightfilter.models import Config

DEFAULT_LOCATION = "Santiago, Chile"
REQUIRED_TOOLS = ("xrandr",)

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(Exception):
    """Startup cannot proceed (e.g. a required tool is missing)."""


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY


def _default_cache_dir(env: Mapping[str, str]) -> Path:
    base = env.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / "bluelightfilter"


def build_parser() -> argparse.ArgumentParser:
    """CLI flags. Single-dash long options are kept alongside the GNU-style ones."""
    parser = argparse.ArgumentParser(
        prog="bluelightfilter",
        description=(
            "Adjust screen warmth based on time of day, weather, "
            "and fullscreen applications."
        ),
    )
    parser.add_argument("-location", "--location", help="Location name, e.g. 'Santiago, Chile'")
    parser.add_argument(
        "-nofs",
        "--no-fullscreen",
        dest="no_fullscreen",
        action="store_true",
        default=None,
        help="Disable fullscreen detection",
    )
    parser.add_argument(
        "-noweather",
        "--no-weather",
        dest="no_weather",
        action="store_true",
        default=None,
        help="Disable weather checks",
    )
    parser.add_argument(
        "-cleancache",
        "--clean-cache",
        dest="clean_cache",
        action="store_true",
        help="Clear cached coordinates, sun times and weather on start",
    )
    parser.add_argument("-sunrise", "--sunrise", metavar="HH:MM", help="Manual sunrise time")
    parser.add_argument("-sunset", "--sunset", metavar="HH:MM", help="Manual sunset time")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_config(
    argv: list[str] | None = None, env: Mapping[str, str] | None = None
) -> Config:
    """Build a Config from CLI arguments and the environment.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``).
        env: Environment mapping. When None, ``.env`` is loaded into
            ``os.environ`` first and that is used.

    Returns:
        Config with CLI values taking precedence over environment values.
    """
    if env is None:
        load_dotenv()
        env = os.environ
    args = build_parser().parse_args(argv)

    no_fullscreen = args.no_fullscreen
    if no_fullscreen is None:
        no_fullscreen = _env_flag(env, "BLUELIGHTFILTER_NO_FULLSCREEN")
    no_weather = args.no_weather
    if no_weather is None:
        no_weather = _env_flag(env, "BLUELIGHTFILTER_NO_WEATHER")

    cache_dir = env.get("BLUELIGHTFILTER_CACHE_DIR")
    log_file = env.get("BLUELIGHTFILTER_LOG_FILE")

    return Config(
        location=args.location or env.get("BLUELIGHTFILTER_LOCATION") or DEFAULT_LOCATION,
        cache_dir=Path(cache_dir).expanduser() if cache_dir else _default_cache_dir(env),
        log_file=Path(log_file).expanduser() if log_file else Path.home() / "tmp" / "bluelightfilter.log",
        no_fullscreen=no_fullscreen,
        no_weather=no_weather,
        clean_cache=args.clean_cache,
        manual_sunrise=args.sunrise or env.get("BLUELIGHTFILTER_SUNRISE") or None,
        manual_sunset=args.sunset or env.get("BLUELIGHTFILTER_SUNSET") or None,
        verbose=args.verbose,
    )


def check_required_tools() -> None:
    """Raise ConfigurationError when a tool the daemon cannot run without is missing."""
    missing = missing_tools(REQUIRED_TOOLS)
    if missing:
        raise ConfigurationError(f"Required tool not installed: {', '.join(missing)}")
