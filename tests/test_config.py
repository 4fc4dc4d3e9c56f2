"""Tests for configuration loading."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from bluelightfilter.config import (
    DEFAULT_LOCATION,
    ConfigurationError,
    check_required_tools,
    load_config,
)


class TestLoadConfig:
    def test_defaults(self):
        config = load_config([], env={"XDG_CACHE_HOME": "/var/cache/me"})

        assert config.location == DEFAULT_LOCATION
        assert config.cache_dir == Path("/var/cache/me/bluelightfilter")
        assert config.log_file == Path.home() / "tmp" / "bluelightfilter.log"
        assert config.no_fullscreen is False
        assert config.no_weather is False
        assert config.clean_cache is False
        assert config.manual_sunrise is None
        assert config.manual_sunset is None

    def test_single_dash_flags(self):
        config = load_config(
            [
                "-location",
                "Valparaíso, Chile",
                "-nofs",
                "-noweather",
                "-cleancache",
                "-sunrise",
                "06:45",
                "-sunset",
                "20:30",
            ],
            env={},
        )

        assert config.location == "Valparaíso, Chile"
        assert config.no_fullscreen is True
        assert config.no_weather is True
        assert config.clean_cache is True
        assert config.manual_sunrise == "06:45"
        assert config.manual_sunset == "20:30"

    def test_long_flags(self):
        config = load_config(["--location", "Oslo", "--no-weather", "--verbose"], env={})

        assert config.location == "Oslo"
        assert config.no_weather is True
        assert config.verbose is True

    def test_environment_values(self):
        env = {
            "BLUELIGHTFILTER_LOCATION": "Lisbon, Portugal",
            "BLUELIGHTFILTER_CACHE_DIR": "/tmp/blf-cache",
            "BLUELIGHTFILTER_LOG_FILE": "/tmp/blf.log",
            "BLUELIGHTFILTER_NO_FULLSCREEN": "yes",
            "BLUELIGHTFILTER_NO_WEATHER": "0",
            "BLUELIGHTFILTER_SUNSET": "19:00",
        }

        config = load_config([], env=env)

        assert config.location == "Lisbon, Portugal"
        assert config.cache_dir == Path("/tmp/blf-cache")
        assert config.log_file == Path("/tmp/blf.log")
        assert config.no_fullscreen is True
        assert config.no_weather is False
        assert config.manual_sunset == "19:00"

    def test_cli_overrides_environment(self):
        env = {"BLUELIGHTFILTER_LOCATION": "Lisbon, Portugal", "BLUELIGHTFILTER_SUNSET": "19:00"}

        config = load_config(["-location", "Porto", "-sunset", "21:00"], env=env)

        assert config.location == "Porto"
        assert config.manual_sunset == "21:00"

    def test_unknown_option_exits(self):
        with pytest.raises(SystemExit) as exc_info:
            load_config(["-bogus"], env={})

        assert exc_info.value.code == 2


class TestRequiredTools:
    def test_xrandr_present(self):
        with patch("bluelightfilter.commands.shutil.which", return_value="/usr/bin/xrandr"):
            check_required_tools()

    def test_xrandr_missing(self):
        with patch("bluelightfilter.commands.shutil.which", return_value=None):
            with pytest.raises(ConfigurationError, match="xrandr"):
                check_required_tools()
