"""
Value types and text parsers for performance steps
"""

import re
from enum import Enum

from .exceptions import InvalidDurationError, UnknownComparisonError


# Step text patterns, shared by the parsers and the step bindings
DURATION_PATTERN = r"\d+(?:\.\d+)? (?:seconds|milliseconds)"
COMPARISON_PATTERN = r"less than|more than|exactly"

_DURATION_RE = re.compile(r"(?P<value>\d+(?:\.\d+)?) (?P<unit>seconds|milliseconds)")


class Comparison(Enum):
    """Comparison operator between a measured and an expected duration"""
    LESS_THAN = "less than"
    MORE_THAN = "more than"
    EXACTLY = "exactly"
    
    def evaluate(self, actual: float, expected: float) -> bool:
        """Apply the operator as actual <op> expected"""
        if self is Comparison.LESS_THAN:
            return actual < expected
        if self is Comparison.MORE_THAN:
            return actual > expected
        if self is Comparison.EXACTLY:
            return actual == expected
        raise UnknownComparisonError(f"Unhandled comparison: {self!r}")
    
    def __call__(self, actual: float, expected: float) -> bool:
        return self.evaluate(actual, expected)


def parse_duration(text: str) -> float:
    """
    Parse '<number> seconds' or '<number> milliseconds' into milliseconds
    
    Args:
        text: Duration text as it appears in the step
        
    Returns:
        Duration in milliseconds
    """
    match = _DURATION_RE.fullmatch(text.strip())
    if not match:
        raise InvalidDurationError(f"Invalid duration: '{text}'")
        
    value = float(match.group('value'))
    if match.group('unit') == 'seconds':
        value *= 1000
        
    return value


def parse_comparison(text: str) -> Comparison:
    """Parse 'less than', 'more than' or 'exactly' into a Comparison"""
    try:
        return Comparison(text)
    except ValueError:
        raise UnknownComparisonError(f"Unknown comparison: '{text}'") from None
