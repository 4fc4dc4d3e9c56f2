"""Adjustment control loop: one polling scheduler for every data source."""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from bluelightfilter.fullscreen import FullscreenDetector
from bluelightfilter.gamma import GammaController
from bluelightfilter.geolocation import GeolocationResolver
from bluelightfilter.models import (
    Config,
    Coordinates,
    GammaPreset,
    LoopState,
    SunTimes,
    WeatherState,
)
from bluelightfilter.suntimes import SunTimesResolver
from bluelightfilter.weather import WeatherClassifier

_LOGGER = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 3
SUN_TIMES_INTERVAL = timedelta(seconds=600)
WEATHER_INTERVAL = timedelta(seconds=3600)

_DAYTIME_PRESETS: dict[WeatherState, GammaPreset] = {
    WeatherState.CLEAR: GammaPreset.NEUTRAL,
    WeatherState.UNKNOWN: GammaPreset.NEUTRAL,
    WeatherState.CLOUDS: GammaPreset.CLOUDY,
}


def preset_for(daytime: bool, weather: WeatherState) -> GammaPreset:
    """Night is always warm; by day only clouds warm the screen."""
    if not daytime:
        return GammaPreset.NIGHT
    return _DAYTIME_PRESETS[weather]


class ControlLoop:
    """Reconcile fullscreen state, sun times and weather into a gamma preset.

    Each source is polled on its own cadence by comparing "now minus last
    check" against its interval on every iteration. All mutable state lives
    in the LoopState passed to ``step``.
    """

    def __init__(
        self,
        config: Config,
        geolocation: GeolocationResolver,
        sun_times: SunTimesResolver,
        weather: WeatherClassifier,
        fullscreen: FullscreenDetector,
        gamma: GammaController,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.geolocation = geolocation
        self.sun_times = sun_times
        self.weather = weather
        self.fullscreen = fullscreen
        self.gamma = gamma
        self._clock = clock
        self._sleep = sleep

    def _resolve_sun_times(self, coordinates: Coordinates) -> SunTimes:
        return self.sun_times.resolve(
            coordinates,
            manual_sunrise=self.config.manual_sunrise,
            manual_sunset=self.config.manual_sunset,
        )

    def start(self) -> LoopState:
        """Resolve location and today's sun times once, seeding the timers."""
        coordinates = self.geolocation.resolve(self.config.location)
        sun_times = self._resolve_sun_times(coordinates)
        return LoopState(
            coordinates=coordinates,
            sun_times=sun_times,
            last_sun_check=self._clock(),
        )

    def step(self, state: LoopState) -> GammaPreset | None:
        """Run one iteration.

        Returns:
            The preset handed to the gamma controller, or None while a
            fullscreen window keeps the loop suppressed.
        """
        if self.fullscreen.is_fullscreen():
            if state.fullscreen_suppressed:
                return None
            _LOGGER.info("Fullscreen window detected, switching to neutral gamma")
            self.gamma.apply(GammaPreset.NEUTRAL)
            state.fullscreen_suppressed = True
            return GammaPreset.NEUTRAL
        if state.fullscreen_suppressed:
            _LOGGER.info("Fullscreen window gone, resuming adjustments")
            state.fullscreen_suppressed = False

        now = self._clock()
        if now - state.last_sun_check >= SUN_TIMES_INTERVAL:
            state.sun_times = self._resolve_sun_times(state.coordinates)
            state.last_sun_check = self._clock()

        daytime = state.sun_times.is_daytime(now.time())
        if daytime and (
            state.last_weather_check is None
            or now - state.last_weather_check >= WEATHER_INTERVAL
        ):
            state.weather = self.weather.classify(state.coordinates)
            state.last_weather_check = self._clock()

        preset = preset_for(daytime, state.weather)
        self.gamma.apply(preset)
        return preset

    def run(self, state: LoopState | None = None) -> None:
        """Poll forever. Only a termination signal ends the process."""
        if state is None:
            state = self.start()
        _LOGGER.info("Polling every %ss", POLL_INTERVAL_SECONDS)
        while True:
            self.step(state)
            self._sleep(POLL_INTERVAL_SECONDS)
