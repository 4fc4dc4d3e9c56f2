"""CLI entry point for the daemon.

Run:
    bluelightfilter -location "Santiago, Chile" -noweather
    uv run python -m bluelightfilter -sunrise 07:30 -sunset 19:45
"""

import logging
import signal
import sys
from pathlib import Path

import httpx

from bluelightfilter.cache import CacheStore
from bluelightfilter.config import ConfigurationError, check_required_tools, load_config
from bluelightfilter.fullscreen import FullscreenDetector, select_strategy
from bluelightfilter.gamma import GammaController
from bluelightfilter.geolocation import GeolocationResolver
from bluelightfilter.loop import ControlLoop
from bluelightfilter.suntimes import SunTimesResolver
from bluelightfilter.weather import WeatherClassifier

_LOGGER = logging.getLogger(__name__)

EXIT_CONFIGURATION_ERROR = 1
EXIT_SIGNAL = 130

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGHUP, signal.SIGTERM)


def setup_logging(log_file: Path, verbose: bool = False) -> None:
    """Log to the console and to ``log_file``, which is truncated on every start."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))
    except OSError as err:
        print(f"Cannot open log file {log_file}: {err}", file=sys.stderr)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def install_signal_handlers(gamma: GammaController) -> None:
    """Reset every display to neutral and exit on interrupt, hangup or terminate."""

    def _handle_signal(signum: int, _frame: object) -> None:
        _LOGGER.info("Received signal %d, resetting displays", signum)
        gamma.reset()
        sys.exit(EXIT_SIGNAL)

    for signum in TERMINATION_SIGNALS:
        signal.signal(signum, _handle_signal)


def main(argv: list[str] | None = None) -> None:
    config = load_config(argv)
    setup_logging(config.log_file, config.verbose)
    _LOGGER.info("Starting bluelightfilter")

    try:
        check_required_tools()
    except ConfigurationError as err:
        _LOGGER.error("%s", err)
        sys.exit(EXIT_CONFIGURATION_ERROR)

    cache = CacheStore(config.cache_dir)
    if config.clean_cache:
        cache.clear()

    gamma = GammaController()
    install_signal_handlers(gamma)

    strategy = None if config.no_fullscreen else select_strategy()
    with httpx.Client(follow_redirects=True) as client:
        loop = ControlLoop(
            config=config,
            geolocation=GeolocationResolver(client, cache),
            sun_times=SunTimesResolver(client, cache),
            weather=WeatherClassifier(client, cache, enabled=not config.no_weather),
            fullscreen=FullscreenDetector(strategy, enabled=not config.no_fullscreen),
            gamma=gamma,
        )
        loop.run()
