"""Shared pytest fixtures for the PerfSteps test suite."""

from typing import Iterable, List, Optional

import pytest

from perfsteps import MeasureRegistry
from perfsteps.probe import CLOCK_SCRIPT
from perfsteps_serve.__main__ import build_registry
from perfsteps_serve.logging.dual_logger import DualLoggerProvider
from perfsteps_serve.test_context import TestContext


class FakeProbe:
    """Probe reporting a fixed duration once ended"""

    def __init__(self, name: str, duration: float):
        self.name = name
        self.duration: Optional[float] = None
        self._fixed_duration = duration
        self.calls: List[str] = []

    def start(self) -> None:
        self.calls.append('start')

    def end(self) -> None:
        self.calls.append('end')
        self.duration = self._fixed_duration

    def store(self) -> None:
        self.calls.append('store')


class FakeDriver:
    """Browser driver answering the clock script from a list of readings"""

    def __init__(self, readings: Iterable[float]):
        self._readings = iter(readings)
        self.scripts: List[str] = []

    def execute_script(self, script: str) -> float:
        self.scripts.append(script)
        assert script == CLOCK_SCRIPT
        return next(self._readings)


@pytest.fixture
def probes():
    """Probes created by the fake_registry fixture, by name"""
    return {}


@pytest.fixture
def fake_registry(probes):
    """Factory for a MeasureRegistry whose probes all report the given duration"""
    def make(duration: float) -> MeasureRegistry:
        def factory(name: str) -> FakeProbe:
            probe = FakeProbe(name, duration)
            probes.setdefault(name, []).append(probe)
            return probe
        return MeasureRegistry(factory)
    return make


@pytest.fixture
def logger_provider():
    return DualLoggerProvider()


@pytest.fixture
def test_context(tmp_path, logger_provider):
    """Context with a report directory and a driver ticking 250ms per reading"""
    context = TestContext(
        report_dir=tmp_path / "reports",
        driver=FakeDriver(1000.0 + 250.0 * i for i in range(1000)),
        logger=logger_provider.get_logger("TestContext")
    )
    context.initialize(role="local", platform="python", scenario="Fixture scenario", test_run_id="1_1")
    yield context
    context.cleanup()


@pytest.fixture
def step_registry(test_context, logger_provider):
    return build_registry(test_context, logger_provider)
