"""
Performance step definitions

Implements steps that time browser interactions and check the measured
duration against a threshold.
"""

from perfsteps import Comparison, parse_comparison, parse_duration
from perfsteps.types import COMPARISON_PATTERN, DURATION_PATTERN

from .base import BaseSteps
from ..step_registry import when, then, parsers


class PerformanceSteps(BaseSteps):
    """Step definitions for performance measures"""
    
    @when(parsers.re(r'I start measuring "(?P<name>[^"]+)"'))
    def start_measuring(self, name: str):
        """Start a named measure"""
        self.test_context.measures.start(name)
        
    @when(parsers.re(r'I stop measuring "(?P<name>[^"]+)"'))
    def stop_measuring(self, name: str):
        """Stop a named measure"""
        self.test_context.measures.stop(name)
        
    @then(parsers.re(
        rf'"(?P<name>[^"]+)" should have taken (?P<comparison>{COMPARISON_PATTERN}) (?P<expected>{DURATION_PATTERN})',
        converters={'comparison': parse_comparison, 'expected': parse_duration}
    ))
    def should_have_taken(self, name: str, comparison: Comparison, expected: float):
        """Assert how long a measure took"""
        duration = self.test_context.measures.assert_duration(name, comparison, expected)
        return {'measure': name, 'duration': duration}
