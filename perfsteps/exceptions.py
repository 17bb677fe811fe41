"""
Exception types for PerfSteps

Driver errors cover lookups that cannot be satisfied, expectation errors
cover measured durations that miss their threshold.
"""

from typing import Optional


class PerfStepsException(Exception):
    """Base exception for all PerfSteps errors"""
    pass


class DriverException(PerfStepsException):
    """Raised when a measure cannot be resolved or used"""
    pass


class MeasureNotFoundError(DriverException):
    """Raised when a step refers to a measure that was never started"""
    
    def __init__(self, name: str):
        super().__init__(f"'{name}' performance measure does not exist.")
        self.name = name


class MeasureNotStoppedError(DriverException):
    """Raised when a measure is read or stored before it was stopped"""
    
    def __init__(self, name: str):
        super().__init__(f"'{name}' performance measure has not been stopped.")
        self.name = name


class ExpectationException(PerfStepsException, AssertionError):
    """Raised when a measured duration does not satisfy its comparison"""
    
    def __init__(self, measure: str, duration: Optional[float]):
        super().__init__(f"Expected duration for '{measure}' failed! (took {duration}ms)")
        self.measure = measure
        self.duration = duration


class InvalidDurationError(PerfStepsException, ValueError):
    """Raised when a duration string is not '<number> seconds|milliseconds'"""
    pass


class UnknownComparisonError(PerfStepsException, ValueError):
    """Raised when a comparison string is not in the step vocabulary"""
    pass
