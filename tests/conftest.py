"""Shared fixtures: fake subprocess runner, fake clock, mock HTTP transport."""
from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

import httpx
import pytest

from bluelightfilter.cache import CacheStore
from bluelightfilter.commands import CommandError

XRANDR_CURRENT = """\
Screen 0: minimum 320 x 200, current 3840 x 1080, maximum 16384 x 16384
eDP-1 connected primary 1920x1080+0+0 (normal left inverted right x axis y axis) 309mm x 174mm
   1920x1080     60.01*+
HDMI-1 disconnected (normal left inverted right x axis y axis)
DP-1 connected 1920x1080+1920+0 (normal left inverted right x axis y axis) 527mm x 296mm
   1920x1080     60.00*+
"""


class FakeRunner:
    """Stands in for ``run_command``: canned outputs keyed by argv, calls recorded."""

    def __init__(self, outputs: dict[tuple[str, ...], str | Exception] | None = None):
        self.outputs = dict(outputs or {})
        self.calls: list[tuple[str, ...]] = []

    def __call__(self, args: Sequence[str]) -> str:
        key = tuple(args)
        self.calls.append(key)
        result = self.outputs.get(key, "")
        if isinstance(result, Exception):
            raise result
        return result

    def gamma_calls(self) -> list[tuple[str, ...]]:
        return [call for call in self.calls if "--gamma" in call]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingHandler:
    """MockTransport handler returning one canned response, or raising."""

    def __init__(self, response: httpx.Response | Exception | None = None):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        if self.response is None:
            raise httpx.ConnectError("network unreachable", request=request)
        return self.response


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def cache(tmp_path) -> CacheStore:
    """Cache store in a per-test temporary directory."""
    return CacheStore(tmp_path / "cache")


@pytest.fixture
def runner() -> FakeRunner:
    """Runner answering ``xrandr --current`` with two connected displays."""
    return FakeRunner({("xrandr", "--current"): XRANDR_CURRENT})


@pytest.fixture
def failing_runner() -> FakeRunner:
    """Runner where every tool is missing."""
    runner = FakeRunner()
    runner.outputs = _AlwaysFail()
    return runner


class _AlwaysFail(dict):
    def get(self, key, default=None):
        return CommandError(f"{key[0]} not found in PATH")
