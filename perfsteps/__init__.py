"""
PerfSteps - named performance measures for browser-driven test scenarios
"""

from .exceptions import (
    DriverException,
    ExpectationException,
    InvalidDurationError,
    MeasureNotFoundError,
    MeasureNotStoppedError,
    PerfStepsException,
    UnknownComparisonError,
)
from .measures import MeasureRegistry
from .probe import (
    BrowserDriver,
    LocalClockDriver,
    MeasureStore,
    PerformanceMeasure,
    PerformanceProbe,
)
from .types import Comparison, parse_comparison, parse_duration

__version__ = "0.1.0"

__all__ = [
    'Comparison',
    'parse_comparison',
    'parse_duration',
    'MeasureRegistry',
    'BrowserDriver',
    'LocalClockDriver',
    'MeasureStore',
    'PerformanceMeasure',
    'PerformanceProbe',
    'PerfStepsException',
    'DriverException',
    'MeasureNotFoundError',
    'MeasureNotStoppedError',
    'ExpectationException',
    'InvalidDurationError',
    'UnknownComparisonError',
]
